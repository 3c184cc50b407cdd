"""
community_sdk.community
=======================

High-level client for one community contract.

Reads go through a cached `StateSynchronizer`; writes go through a two-phase
pipeline:

1. validate the action locally (no I/O for bad input)
2. charge the action fee to a weighted holder of the main contract
3. dry-run the action and only then commit it

Example
-------
    from community_sdk import Community

    async with Community(signer=my_signer) as community:
        await community.bind_contract("<community contract id>")
        state = await community.get_state()
        tx_id = await community.transfer("<target address>", 100)
"""

from __future__ import annotations

import json
import logging
import random
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from .config import CommunityConfig
from .contracts.reader import ContractReader, RpcContractReader
from .errors import (
    ActionRejectedError,
    InvalidActionParameterError,
    UnboundContractError,
    WalletNotSetError,
)
from .fees import FeeCharger, FeeChargeRecord, default_tags
from .ledger.client import GatewayLedgerClient, LedgerClient, winston_to_ar
from .ledger.signer import Signer
from .rpc.http import AsyncRpcClient
from .selector import RandomFn, select_weighted_holder
from .sync import StateSynchronizer
from .types.actions import (
    ACTION_TYPES,
    ActionRequest,
    CastVote,
    Finalize,
    IncreaseVault,
    Lock,
    ProposeVote,
    Transfer,
    Unlock,
    to_number,
)
from .types.state import StateSnapshot, VaultEntry

CREATE_ACTION = "CreateCommunity"


def _whole(value: Any, parameter: str, message: str) -> int:
    num = to_number(value, parameter=parameter)
    if not isinstance(num, int):
        raise InvalidActionParameterError(message, parameter, value)
    return num


def _trim(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, Mapping):
        return {_trim(k): _trim(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_trim(v) for v in value]
    return value


class Community:
    """
    Parameters
    ----------
    config : endpoints, contract ids, fee sizes and refresh cadence.
    ledger : ledger client; a `GatewayLedgerClient` on `config.gateway_url` by default.
    reader : contract evaluator; an `RpcContractReader` on `config.evaluator_url` by default.
    signer : wallet used for fees and writes; reads work without one.
    rng    : random draw used for fee recipient selection.
    """

    def __init__(
        self,
        *,
        config: Optional[CommunityConfig] = None,
        ledger: Optional[LedgerClient] = None,
        reader: Optional[ContractReader] = None,
        signer: Optional[Signer] = None,
        rng: RandomFn = random.random,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._config = config or CommunityConfig.from_env()
        self._log = logger or logging.getLogger("community_sdk.community")
        cfg = self._config

        self._owned: List[Any] = []
        if ledger is None:
            ledger = GatewayLedgerClient(
                cfg.gateway_url,
                timeout=cfg.request_timeout,
                max_retries=cfg.max_retries,
                backoff_base=cfg.backoff_base,
            )
            self._owned.append(ledger)
        if reader is None:
            rpc = AsyncRpcClient(
                cfg.evaluator_url,
                timeout=cfg.request_timeout,
                max_retries=cfg.max_retries,
                backoff_base=cfg.backoff_base,
                headers=cfg.http_headers(),
            )
            self._owned.append(rpc)
            reader = RpcContractReader(rpc, ledger)

        self._ledger: LedgerClient = ledger
        self._reader: ContractReader = reader
        self._signer = signer
        self._rng = rng
        self._state = StateSynchronizer(
            reader, refresh_interval=cfg.refresh_interval, reload_timeout=cfg.reload_timeout
        )
        self._fee_state = StateSynchronizer(
            reader,
            contract_id=cfg.main_contract,
            refresh_interval=cfg.refresh_interval,
            reload_timeout=cfg.reload_timeout,
        )
        self._fees = FeeCharger(
            ledger,
            self._fee_state,
            fee_bytes=cfg.action_fee_bytes,
            app_name=cfg.app_name,
            app_version=cfg.app_version,
            rng=rng,
        )
        # State prepared by set_state() and submitted by create().
        self._pending: Optional[StateSnapshot] = None

    # ------------------------------------------------------------------ Lifecycle

    async def __aenter__(self) -> "Community":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        await self.close()

    async def close(self) -> None:
        await self._state.close()
        await self._fee_state.close()
        for transport in self._owned:
            await transport.aclose()
        self._owned.clear()

    # ------------------------------------------------------------------ Accessors

    @property
    def config(self) -> CommunityConfig:
        return self._config

    @property
    def contract_id(self) -> Optional[str]:
        return self._state.contract_id

    @property
    def synchronizer(self) -> StateSynchronizer:
        return self._state

    @property
    def fee_synchronizer(self) -> StateSynchronizer:
        return self._fee_state

    @property
    def wallet_address(self) -> Optional[str]:
        return self._signer.address if self._signer is not None else None

    def get_main_contract_id(self) -> str:
        return self._config.main_contract

    def set_wallet(self, signer: Signer) -> str:
        self._signer = signer
        return signer.address

    def _require_wallet(self) -> Signer:
        if self._signer is None:
            raise WalletNotSetError()
        return self._signer

    def _require_contract(self) -> str:
        contract_id = self._state.contract_id
        if not contract_id:
            raise UnboundContractError()
        return contract_id

    # ------------------------------------------------------------------ State

    async def bind_contract(self, contract_id: str) -> StateSnapshot:
        """Point this client at `contract_id`; raises (and stays unbound) if it can't be read."""
        try:
            return await self._state.bind(contract_id)
        except Exception:
            self._log.warning("could not bind community %s", contract_id, exc_info=True)
            raise

    async def get_state(self, use_cache: bool = True) -> StateSnapshot:
        return await self._state.get_state(use_cache)

    async def select_weighted_holder(
        self,
        balances: Optional[Mapping[str, int]] = None,
        vault: Optional[Mapping[str, Sequence[VaultEntry]]] = None,
    ) -> Optional[str]:
        """Pick a holder of this community (or of the given balances/vault) by weight."""
        if balances is None or vault is None:
            state = await self.get_state()
            balances = state.balances if balances is None else balances
            vault = state.vault if vault is None else vault
        return select_weighted_holder(balances, vault, rng=self._rng)

    # ------------------------------------------------------------------ Read-only queries

    async def get(self, query: Optional[Mapping[str, Any]] = None) -> Any:
        """Run a read-only contract function, `{"function": "balance"}` by default."""
        contract_id = self._require_contract()
        return await self._reader.interact_read(
            contract_id, dict(query or {"function": "balance"}), caller=self.wallet_address
        )

    async def _query(self, function: str, target: Optional[str], field: str) -> Any:
        target = target or self.wallet_address
        res = await self.get({"function": function, "target": target})
        return res[field]

    async def get_balance(self, target: Optional[str] = None) -> int:
        return await self._query("balance", target, "balance")

    async def get_unlocked_balance(self, target: Optional[str] = None) -> int:
        return await self._query("unlockedBalance", target, "balance")

    async def get_vault_balance(self, target: Optional[str] = None) -> int:
        return await self._query("vaultBalance", target, "balance")

    async def get_role(self, target: Optional[str] = None) -> str:
        return await self._query("role", target, "role")

    # ------------------------------------------------------------------ Costs

    async def _price(self, byte_size: int, in_ar: bool, decimals: int, trim: bool) -> str:
        winston = await self._ledger.get_price(byte_size)
        if in_ar:
            return winston_to_ar(winston, decimals=decimals, trim=trim)
        return str(winston)

    async def get_action_cost(self, in_ar: bool = False, *, decimals: int = 12, trim: bool = True) -> str:
        return await self._price(self._config.action_fee_bytes, in_ar, decimals, trim)

    async def get_create_cost(self, in_ar: bool = False, *, decimals: int = 12, trim: bool = True) -> str:
        state = self._pending or self._state.snapshot
        if state is None:
            raise InvalidActionParameterError("No state set. Use set_state() first.")
        byte_size = len(json.dumps(state.to_dict()).encode("utf-8"))
        return await self._price(byte_size + self._config.create_fee_bytes, in_ar, decimals, trim)

    # ------------------------------------------------------------------ Creation

    def set_state(
        self,
        name: str,
        ticker: str,
        balances: Mapping[str, int],
        quorum: Union[int, str] = 50,
        support: Union[int, str] = 50,
        vote_length: Union[int, str] = 2000,
        lock_min_length: Union[int, str] = 720,
        lock_max_length: Union[int, str] = 10000,
        vault: Optional[Mapping[str, Sequence[Mapping[str, int]]]] = None,
        votes: Optional[Sequence[Mapping[str, Any]]] = None,
        roles: Optional[Mapping[str, str]] = None,
    ) -> StateSnapshot:
        """
        Validate and stage the initial state of a new community for `create()`.

        quorum and support are whole percentages (1-99) and are stored as
        fractions; lengths are in blocks.
        """
        self._require_wallet()

        name = str(name).strip()
        ticker = str(ticker).strip()
        balances = _trim(dict(balances))
        vault = _trim(dict(vault or {}))
        votes = _trim(list(votes or []))
        roles = _trim(dict(roles or {}))

        if len(name) < 3:
            raise InvalidActionParameterError("Community Name must be at least 3 characters.", "name", name)
        if len(ticker) < 3:
            raise InvalidActionParameterError("Ticker must be at least 3 characters.", "ticker", ticker)
        if not balances:
            raise InvalidActionParameterError("At least one account needs to be specified.", "balances", balances)
        for addr, bal in balances.items():
            if isinstance(bal, bool) or not isinstance(bal, int) or bal < 1:
                raise InvalidActionParameterError("Address balances must be a positive integer.", addr, bal)

        q = _whole(quorum, "quorum", "Quorum must be an integer between 1-99.")
        if q < 1 or q > 99:
            raise InvalidActionParameterError("Quorum must be an integer between 1-99.", "quorum", quorum)
        s = _whole(support, "support", "Support must be an integer between 1-99.")
        if s < 1 or s > 99:
            raise InvalidActionParameterError("Support must be an integer between 1-99.", "support", support)
        vl = _whole(vote_length, "voteLength", "Vote Length must be a positive integer.")
        if vl < 1:
            raise InvalidActionParameterError("Vote Length must be a positive integer.", "voteLength", vote_length)
        lmin = _whole(lock_min_length, "lockMinLength", "Lock Min Length must be a positive integer.")
        if lmin < 1:
            raise InvalidActionParameterError(
                "Lock Min Length must be a positive integer.", "lockMinLength", lock_min_length
            )
        lmax_msg = "Lock Max Length must be a positive integer, greater than lockMinLength."
        lmax = _whole(lock_max_length, "lockMaxLength", lmax_msg)
        if lmax < lmin:
            raise InvalidActionParameterError(lmax_msg, "lockMaxLength", lock_max_length)

        for addr, entries in vault.items():
            for entry in entries:
                bal = entry.get("balance")
                if isinstance(bal, bool) or not isinstance(bal, int) or bal < 1:
                    raise InvalidActionParameterError("Vault balance must be a positive integer.", addr, bal)

        settings: Dict[str, Any] = {
            "quorum": q / 100,
            "support": s / 100,
            "voteLength": vl,
            "lockMinLength": lmin,
            "lockMaxLength": lmax,
        }
        self._pending = StateSnapshot.from_dict(
            {
                "name": name,
                "ticker": ticker,
                "balances": balances,
                "vault": vault,
                "votes": votes,
                "roles": roles,
                "settings": settings,
            }
        )
        return self._pending

    async def create(self) -> str:
        """Charge the creation fee, deploy the staged state and bind to the new contract."""
        signer = self._require_wallet()
        pending = self._pending
        if pending is None:
            raise InvalidActionParameterError("No state set. Use set_state() first.")

        await self._fees.charge_fee(
            CREATE_ACTION,
            signer=signer,
            contract_id=self._state.contract_id or "",
            ticker=pending.ticker,
            byte_size=self._config.create_fee_bytes,
        )
        payload = json.dumps(pending.to_dict(settings_as_pairs=True))
        contract_id = await self._reader.create_from_payload(self._config.contract_src, payload, signer=signer)
        await self._state.adopt(contract_id, pending)
        self._pending = None
        self._log.info("created community %s (%s)", contract_id, pending.ticker)
        return contract_id

    # ------------------------------------------------------------------ Writes

    async def charge_fee(self, action: str, *, byte_size: Optional[int] = None) -> FeeChargeRecord:
        """Charge the fee for `action` on the bound community without running an action."""
        signer = self._require_wallet()
        contract_id = self._require_contract()
        state = await self.get_state()
        return await self._fees.charge_fee(
            action, signer=signer, contract_id=contract_id, ticker=state.ticker, byte_size=byte_size
        )

    async def submit_action(self, request: ActionRequest) -> str:
        """
        Validate, charge the fee for, dry-run and commit `request`.

        Returns the id of the action transaction. The fee transaction is
        always acknowledged before the action is dry-run or committed.
        """
        if not isinstance(request, ACTION_TYPES):
            raise TypeError(f"unsupported action request: {type(request).__name__}")
        signer = self._require_wallet()
        contract_id = self._require_contract()

        settings = (await self.get_state()).settings if request.needs_settings() else None
        request = request.validate(settings)

        state = await self.get_state()
        await self._fees.charge_fee(
            request.action_name, signer=signer, contract_id=contract_id, ticker=state.ticker
        )
        return await self._interact(request, signer=signer, contract_id=contract_id, ticker=state.ticker)

    async def _interact(self, request: ActionRequest, *, signer: Signer, contract_id: str, ticker: str) -> str:
        payload = request.to_input()
        res = await self._reader.dry_run_write(contract_id, payload, caller=signer.address)
        if not res.ok:
            raise ActionRejectedError(res.result, request.action_name)

        tags = default_tags(
            app_name=self._config.app_name,
            app_version=self._config.app_version,
            contract_id=contract_id,
            ticker=ticker,
        )
        tags.append(("Action", request.action_name))
        return await self._reader.commit_write(contract_id, payload, signer=signer, tags=tags)

    async def transfer(self, target: str, qty: int) -> str:
        return await self.submit_action(Transfer(target=target, qty=qty))

    async def lock_balance(self, qty: int, lock_length: int) -> str:
        """Lock `qty` tokens for `lock_length` blocks to earn voting weight."""
        return await self.submit_action(Lock(qty=qty, lock_length=lock_length))

    async def unlock_vault(self) -> str:
        """Unlock every vault entry that is past its lock period."""
        return await self.submit_action(Unlock())

    async def increase_vault(self, vault_id: int, lock_length: int) -> str:
        return await self.submit_action(IncreaseVault(vault_id=vault_id, lock_length=lock_length))

    async def propose_vote(self, params: Union[ProposeVote, Mapping[str, Any]]) -> str:
        if not isinstance(params, ProposeVote):
            params = ProposeVote.from_dict(params)
        return await self.submit_action(params)

    async def vote(self, vote_id: int, cast: str) -> str:
        """Cast 'yay' or 'nay' on an active vote."""
        return await self.submit_action(CastVote(vote_id=vote_id, cast=cast))

    async def finalize(self, vote_id: int) -> str:
        return await self.submit_action(Finalize(vote_id=vote_id))


__all__ = ["Community", "CREATE_ACTION"]
