"""
community_sdk.contracts.reader
==============================

Boundary to the contract evaluator.

The SDK never executes contract code itself. It consumes:

- `read_state(contract_id)` -> fully replayed `StateSnapshot`
- `dry_run_write(contract_id, input, caller=...)` -> `DryRunResult` (no commit)
- `commit_write(contract_id, input, signer=..., tags=...)` -> interaction tx id
- `create_from_payload(source_id, payload_json, signer=...)` -> new contract id
- `interact_read(contract_id, query, caller=...)` -> read-only query result

`RpcContractReader` implements reads and dry-runs against a JSON-RPC evaluator
service and writes interactions/contracts as ledger transactions through a
`LedgerClient`.
"""

from __future__ import annotations

import json
import logging
import secrets
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Protocol, Sequence, Tuple

from ..errors import RpcError, TransactionSubmissionError
from ..ledger.client import LedgerClient
from ..ledger.signer import Signer
from ..rpc.http import AsyncRpcClient
from ..types.state import StateSnapshot

# Tags the evaluator indexes interactions and contracts by.
INTERACTION_APP = "SmartWeaveAction"
CONTRACT_APP = "SmartWeaveContract"
PROTOCOL_VERSION = "0.3.0"


@dataclass(frozen=True)
class DryRunResult:
    """Outcome of applying an input to the current state without committing it."""

    type: str
    result: Any = None
    state: Optional[Dict[str, Any]] = field(default=None, compare=False)

    @property
    def ok(self) -> bool:
        return self.type == "ok"

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "DryRunResult":
        return cls(type=str(d.get("type", "error")), result=d.get("result"), state=d.get("state"))


class ContractReader(Protocol):
    async def read_state(self, contract_id: str) -> StateSnapshot: ...

    async def dry_run_write(
        self, contract_id: str, action: Mapping[str, Any], *, caller: Optional[str] = None
    ) -> DryRunResult: ...

    async def commit_write(
        self,
        contract_id: str,
        action: Mapping[str, Any],
        *,
        signer: Signer,
        tags: Sequence[Tuple[str, str]] = (),
    ) -> str: ...

    async def create_from_payload(self, source_id: str, payload_json: str, *, signer: Signer) -> str: ...

    async def interact_read(
        self, contract_id: str, query: Mapping[str, Any], *, caller: Optional[str] = None
    ) -> Any: ...


class RpcContractReader:
    def __init__(self, rpc: AsyncRpcClient, ledger: LedgerClient, *, logger: Optional[logging.Logger] = None) -> None:
        self._rpc = rpc
        self._ledger = ledger
        self._log = logger or logging.getLogger("community_sdk.contracts")

    # ------------------------------------------------------------------ reads

    async def read_state(self, contract_id: str) -> StateSnapshot:
        res = await self._rpc.request("contract.readState", [contract_id])
        if not isinstance(res, dict):
            raise RpcError(method="contract.readState", code=-32603, message="unexpected state payload", data=res)
        return StateSnapshot.from_dict(res)

    async def dry_run_write(
        self, contract_id: str, action: Mapping[str, Any], *, caller: Optional[str] = None
    ) -> DryRunResult:
        res = await self._rpc.request(
            "contract.dryRunWrite",
            {"contractId": contract_id, "input": dict(action), "caller": caller},
        )
        if not isinstance(res, dict):
            raise RpcError(method="contract.dryRunWrite", code=-32603, message="unexpected dry-run payload", data=res)
        return DryRunResult.from_dict(res)

    async def interact_read(
        self, contract_id: str, query: Mapping[str, Any], *, caller: Optional[str] = None
    ) -> Any:
        return await self._rpc.request(
            "contract.interactRead",
            {"contractId": contract_id, "input": dict(query), "caller": caller},
        )

    # ------------------------------------------------------------------ writes

    async def _post(self, fields: Mapping[str, Any], tags: Sequence[Tuple[str, str]], signer: Signer, what: str) -> str:
        tx = await self._ledger.create_transaction(fields, signer)
        for key, value in tags:
            self._ledger.add_tag(tx, key, value)
        await self._ledger.sign(tx, signer)
        res = await self._ledger.submit(tx)
        if not res.ok:
            raise TransactionSubmissionError(
                "Error while submitting a transaction.", status=res.status, tx_id=tx.id, action=what
            )
        assert tx.id is not None
        return tx.id

    async def commit_write(
        self,
        contract_id: str,
        action: Mapping[str, Any],
        *,
        signer: Signer,
        tags: Sequence[Tuple[str, str]] = (),
    ) -> str:
        all_tags = [
            ("App-Name", INTERACTION_APP),
            ("App-Version", PROTOCOL_VERSION),
            ("Contract", contract_id),
            ("Input", json.dumps(dict(action), separators=(",", ":"))),
            *tags,
        ]
        # The payload lives in the Input tag; data only has to be non-empty.
        tx_id = await self._post({"data": secrets.token_hex(2)}, all_tags, signer, str(action.get("function")))
        self._log.debug("interaction %s submitted on %s", tx_id, contract_id)
        return tx_id

    async def create_from_payload(self, source_id: str, payload_json: str, *, signer: Signer) -> str:
        tags = [
            ("App-Name", CONTRACT_APP),
            ("App-Version", PROTOCOL_VERSION),
            ("Contract-Src", source_id),
            ("Content-Type", "application/json"),
        ]
        return await self._post({"data": payload_json}, tags, signer, "CreateContract")


__all__ = ["ContractReader", "RpcContractReader", "DryRunResult"]
