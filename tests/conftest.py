"""
Shared pytest fixtures:
- FakeSigner: deterministic signer with a fixed address
- FakeLedger: in-memory ledger client recording every call
- FakeReader: in-memory contract evaluator with per-contract states,
  read counters, an optional gate to hold reads open, and scripted dry-runs
- A shared `calls` log so tests can assert cross-collaborator ordering
"""
from __future__ import annotations

import asyncio
import hashlib
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import pytest

from community_sdk.config import CommunityConfig
from community_sdk.contracts.reader import DryRunResult
from community_sdk.ledger.client import SubmitResult
from community_sdk.ledger.transaction import Transaction, b64url_encode
from community_sdk.types.state import StateSnapshot

MAIN = "main-contract"
COMMUNITY = "community-contract"
WALLET = "wallet-address"


def community_state(**overrides: Any) -> Dict[str, Any]:
    state: Dict[str, Any] = {
        "name": "Test Community",
        "ticker": "TEST",
        "balances": {"alice": 100, "bob": 50},
        "vault": {"alice": [{"balance": 10, "start": 1, "end": 1000}]},
        "votes": [],
        "roles": {"alice": "Owner"},
        "settings": [
            ["quorum", 0.5],
            ["support", 0.5],
            ["voteLength", 2000],
            ["lockMinLength", 720],
            ["lockMaxLength", 10000],
        ],
    }
    state.update(overrides)
    return state


MAIN_STATE = community_state(name="Main", ticker="MAIN", balances={"holder-1": 70, "holder-2": 30}, vault={})


# ---------- FAKE COLLABORATORS ----------

class FakeSigner:
    def __init__(self, address: str = WALLET) -> None:
        self._address = address

    @property
    def address(self) -> str:
        return self._address

    @property
    def owner(self) -> str:
        return "owner-" + self._address

    async def sign(self, message: bytes) -> bytes:
        return hashlib.sha256(self._address.encode() + message).digest()


class FakeLedger:
    def __init__(self, calls: List[Tuple[str, Any]], *, price: int = 1_000, balance: int = 10_000, status: int = 200) -> None:
        self.calls = calls
        self.price = price
        self.balance = balance
        self.status = status
        self.submitted: List[Transaction] = []

    async def get_price(self, byte_size: int, target: Optional[str] = None) -> int:
        self.calls.append(("get_price", byte_size))
        return self.price

    async def get_balance(self, address: str) -> int:
        self.calls.append(("get_balance", address))
        return self.balance

    async def create_transaction(self, fields: Mapping[str, Any], signer: Any) -> Transaction:
        self.calls.append(("create_transaction", dict(fields)))
        return Transaction(owner=signer.owner, target=str(fields.get("target", "")), quantity=str(fields.get("quantity", "0")))

    async def sign(self, tx: Transaction, signer: Any) -> None:
        sig = await signer.sign(tx.signature_data())
        tx.signature = b64url_encode(sig)
        tx.id = b64url_encode(hashlib.sha256(sig).digest())

    def add_tag(self, tx: Transaction, key: str, value: str) -> None:
        tx.add_tag(key, value)

    async def submit(self, tx: Transaction) -> SubmitResult:
        self.calls.append(("submit", tx.id))
        self.submitted.append(tx)
        return SubmitResult(status=self.status)


class FakeReader:
    def __init__(self, calls: List[Tuple[str, Any]], states: Optional[Dict[str, Union[Mapping[str, Any], Exception]]] = None) -> None:
        self.calls = calls
        self.states: Dict[str, Union[Mapping[str, Any], Exception]] = dict(states or {})
        self.read_counts: Dict[str, int] = {}
        self.gate: Optional[asyncio.Event] = None
        self.dry_run_result = DryRunResult(type="ok", result=None)
        self.commits: List[Tuple[str, Dict[str, Any], List[Tuple[str, str]]]] = []
        self.created: List[Tuple[str, str]] = []
        self.query_result: Any = {"balance": 0}

    async def read_state(self, contract_id: str) -> StateSnapshot:
        self.read_counts[contract_id] = self.read_counts.get(contract_id, 0) + 1
        self.calls.append(("read_state", contract_id))
        if self.gate is not None:
            await self.gate.wait()
        raw = self.states.get(contract_id)
        if raw is None:
            raise LookupError(f"unknown contract {contract_id}")
        if isinstance(raw, Exception):
            raise raw
        return StateSnapshot.from_dict(raw)

    async def dry_run_write(self, contract_id: str, action: Mapping[str, Any], *, caller: Optional[str] = None) -> DryRunResult:
        self.calls.append(("dry_run_write", dict(action)))
        return self.dry_run_result

    async def commit_write(
        self, contract_id: str, action: Mapping[str, Any], *, signer: Any, tags: Sequence[Tuple[str, str]] = ()
    ) -> str:
        self.calls.append(("commit_write", dict(action)))
        self.commits.append((contract_id, dict(action), list(tags)))
        return f"action-tx-{len(self.commits)}"

    async def create_from_payload(self, source_id: str, payload_json: str, *, signer: Any) -> str:
        self.calls.append(("create_from_payload", source_id))
        self.created.append((source_id, payload_json))
        return "new-community"

    async def interact_read(self, contract_id: str, query: Mapping[str, Any], *, caller: Optional[str] = None) -> Any:
        self.calls.append(("interact_read", dict(query)))
        return self.query_result


# ---------- FIXTURES ----------

@pytest.fixture()
def calls() -> List[Tuple[str, Any]]:
    return []


@pytest.fixture()
def ledger(calls: List[Tuple[str, Any]]) -> FakeLedger:
    return FakeLedger(calls)


@pytest.fixture()
def reader(calls: List[Tuple[str, Any]]) -> FakeReader:
    return FakeReader(calls, {MAIN: MAIN_STATE, COMMUNITY: community_state()})


@pytest.fixture()
def signer() -> FakeSigner:
    return FakeSigner()


@pytest.fixture()
def config() -> CommunityConfig:
    return CommunityConfig(
        gateway_url="http://gateway.test",
        evaluator_url="http://evaluator.test/rpc",
        main_contract=MAIN,
        refresh_interval=60.0,
        reload_timeout=5.0,
    )
