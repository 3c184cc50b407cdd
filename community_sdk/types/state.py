"""
community_sdk.types.state
=========================

Client-side view of a community contract's state.

The contract stores `settings` as a list of `[key, value]` pairs; on read we
turn it into a plain dict and on creation we turn it back into pairs.
Snapshots are frozen: callers get read references, and a new reload produces
a new snapshot rather than mutating the cached one.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

Balances = Dict[str, int]
Vault = Dict[str, List["VaultEntry"]]
Settings = Dict[str, Any]

# Named numeric parameters every community carries.
SETTING_KEYS: Tuple[str, ...] = ("quorum", "support", "voteLength", "lockMinLength", "lockMaxLength")

SettingsInput = Union[Mapping[str, Any], Iterable[Sequence[Any]], None]


def _settings_to_dict(raw: SettingsInput) -> Dict[str, Any]:
    if raw is None:
        return {}
    if isinstance(raw, Mapping):
        return dict(raw)
    out: Dict[str, Any] = {}
    for pair in raw:
        key, value = pair[0], pair[1]
        out[str(key)] = value
    return out


@dataclass(frozen=True)
class VaultEntry:
    """A locked balance: `balance` tokens locked from block `start` to `end`."""

    balance: int
    start: int = 0
    end: int = 0

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "VaultEntry":
        return cls(
            balance=d.get("balance", 0),
            start=int(d.get("start", 0) or 0),
            end=int(d.get("end", 0) or 0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"balance": self.balance, "start": self.start, "end": self.end}


@dataclass(frozen=True)
class Vote:
    """A vote record as kept in the contract's `votes` list."""

    status: str = "active"
    type: str = ""
    id: Optional[int] = None
    total_weight: int = 0
    recipient: Optional[str] = None
    target: Optional[str] = None
    qty: Optional[int] = None
    key: Optional[str] = None
    value: Any = None
    note: str = ""
    yays: int = 0
    nays: int = 0
    voted: Tuple[str, ...] = ()
    start: int = 0
    lock_length: Optional[int] = None

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "Vote":
        return cls(
            status=str(d.get("status", "active")),
            type=str(d.get("type", "")),
            id=d.get("id"),
            total_weight=int(d.get("totalWeight", 0) or 0),
            recipient=d.get("recipient"),
            target=d.get("target"),
            qty=d.get("qty"),
            key=d.get("key"),
            value=d.get("value"),
            note=str(d.get("note", "") or ""),
            yays=int(d.get("yays", 0) or 0),
            nays=int(d.get("nays", 0) or 0),
            voted=tuple(d.get("voted", ()) or ()),
            start=int(d.get("start", 0) or 0),
            lock_length=d.get("lockLength"),
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "status": self.status,
            "type": self.type,
            "note": self.note,
            "yays": self.yays,
            "nays": self.nays,
            "voted": list(self.voted),
            "start": self.start,
            "totalWeight": self.total_weight,
        }
        optional = {
            "id": self.id,
            "recipient": self.recipient,
            "target": self.target,
            "qty": self.qty,
            "key": self.key,
            "value": self.value,
            "lockLength": self.lock_length,
        }
        out.update({k: v for k, v in optional.items() if v is not None})
        return out


@dataclass(frozen=True)
class StateSnapshot:
    """
    Fully replayed community state at the time it was read.

    `balances` and `vault` keep the contract's insertion order, which the
    weighted holder selection depends on.
    """

    name: str = ""
    ticker: str = ""
    balances: Balances = field(default_factory=dict)
    vault: Vault = field(default_factory=dict)
    votes: List[Vote] = field(default_factory=list)
    roles: Dict[str, str] = field(default_factory=dict)
    settings: Settings = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "StateSnapshot":
        vault_raw = d.get("vault") or {}
        return cls(
            name=str(d.get("name", "") or ""),
            ticker=str(d.get("ticker", "") or ""),
            balances=dict(d.get("balances") or {}),
            vault={
                addr: [VaultEntry.from_dict(e) for e in (entries or [])]
                for addr, entries in vault_raw.items()
            },
            votes=[Vote.from_dict(v) for v in (d.get("votes") or [])],
            roles=dict(d.get("roles") or {}),
            settings=_settings_to_dict(d.get("settings")),
        )

    def setting(self, key: str, default: Any = None) -> Any:
        return self.settings.get(key, default)

    def settings_pairs(self) -> List[List[Any]]:
        return [[k, v] for k, v in self.settings.items()]

    def to_dict(self, *, settings_as_pairs: bool = True) -> Dict[str, Any]:
        """Serialize back to the contract's JSON shape."""
        return {
            "name": self.name,
            "ticker": self.ticker,
            "balances": dict(self.balances),
            "vault": {addr: [e.to_dict() for e in entries] for addr, entries in self.vault.items()},
            "votes": [v.to_dict() for v in self.votes],
            "roles": dict(self.roles),
            "settings": self.settings_pairs() if settings_as_pairs else dict(self.settings),
        }


__all__ = ["StateSnapshot", "VaultEntry", "Vote", "Balances", "Vault", "Settings", "SETTING_KEYS"]
