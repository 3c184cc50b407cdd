"""
community_sdk.fees
==================

Fee phase of every community write.

`FeeCharger.charge_fee(action, ...)`:
1. quotes the storage price of a fixed reference size (the fee)
2. checks the wallet balance covers it
3. picks a recipient among the fee contract's holders, weighted by holdings
4. builds, tags, signs and submits the value transfer

and returns a `FeeChargeRecord` only once the gateway acknowledged the
transfer. Any failure raises before an action transaction can be created.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .errors import (
    InsufficientBalanceError,
    NoEligibleFeeRecipientError,
    TransactionSubmissionError,
)
from .ledger.client import LedgerClient
from .ledger.signer import Signer
from .selector import RandomFn, select_weighted_holder
from .sync import StateSynchronizer


@dataclass(frozen=True)
class FeeChargeRecord:
    action: str
    fee: int
    recipient: str
    tx_id: str


def default_tags(
    *, app_name: str, app_version: str, contract_id: str, ticker: str
) -> List[Tuple[str, str]]:
    """Identifying tags attached to every fee and action transaction."""
    return [
        ("App-Name", app_name),
        ("App-Version", app_version),
        ("Community-Contract", contract_id),
        ("Community-Ticker", ticker),
    ]


class FeeCharger:
    def __init__(
        self,
        ledger: LedgerClient,
        fee_state: StateSynchronizer,
        *,
        fee_bytes: int,
        app_name: str,
        app_version: str,
        rng: RandomFn = random.random,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._ledger = ledger
        self._fee_state = fee_state
        self._fee_bytes = int(fee_bytes)
        self._app_name = app_name
        self._app_version = app_version
        self._rng = rng
        self._log = logger or logging.getLogger("community_sdk.fees")

    @property
    def fee_bytes(self) -> int:
        return self._fee_bytes

    async def quote(self, byte_size: Optional[int] = None) -> int:
        return await self._ledger.get_price(self._fee_bytes if byte_size is None else int(byte_size))

    async def select_recipient(self) -> str:
        state = await self._fee_state.get_state()
        recipient = select_weighted_holder(state.balances, state.vault, rng=self._rng)
        if recipient is None:
            raise NoEligibleFeeRecipientError(self._fee_state.contract_id)
        return recipient

    async def charge_fee(
        self,
        action: str,
        *,
        signer: Signer,
        contract_id: str,
        ticker: str,
        byte_size: Optional[int] = None,
    ) -> FeeChargeRecord:
        fee = await self.quote(byte_size)
        balance = await self._ledger.get_balance(signer.address)
        self._log.debug("fee check for %s: balance=%s fee=%s", action, balance, fee)
        if int(balance) < int(fee):
            raise InsufficientBalanceError(signer.address, int(balance), int(fee))

        recipient = await self.select_recipient()

        tx = await self._ledger.create_transaction({"target": recipient, "quantity": str(fee)}, signer)
        tags = default_tags(
            app_name=self._app_name, app_version=self._app_version, contract_id=contract_id, ticker=ticker
        )
        for key, value in tags:
            self._ledger.add_tag(tx, key, value)
        self._ledger.add_tag(tx, "Action", action)

        await self._ledger.sign(tx, signer)
        res = await self._ledger.submit(tx)
        if not res.ok:
            raise TransactionSubmissionError(
                "Error while submitting a transaction.", status=res.status, tx_id=tx.id, action=action
            )
        assert tx.id is not None
        self._log.info("charged %s fee of %s to %s (tx %s)", action, fee, recipient, tx.id)
        return FeeChargeRecord(action=action, fee=int(fee), recipient=recipient, tx_id=tx.id)


__all__ = ["FeeCharger", "FeeChargeRecord", "default_tags"]
