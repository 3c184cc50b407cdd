"""
community_sdk.types.actions
===========================

The closed set of write actions a community accepts.

Each action is a frozen dataclass that knows:
- `action_name`: the value of the `Action` tag on its fee transaction
- `function`: the contract function it invokes
- `validate(settings)`: input checks done before any network call; returns a
  normalized copy or raises `InvalidActionParameterError`
- `to_input()`: the JSON payload passed to the contract

`ActionRequest` is the union of all of them; `ACTION_TYPES` is the same set as
a tuple for runtime checks.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Any, ClassVar, Dict, Mapping, Optional, Tuple, Union

from ..errors import InvalidActionParameterError

Settings = Optional[Mapping[str, Any]]

VOTE_TYPES: Tuple[str, ...] = ("mint", "mintLocked", "burnVault", "indicative", "set")
NUMERIC_SETTINGS: Tuple[str, ...] = ("quorum", "support", "lockMinLength", "lockMaxLength")
PERCENT_SETTINGS: Tuple[str, ...] = ("quorum", "support")
LOCK_SETTINGS: Tuple[str, ...] = ("lockMinLength", "lockMaxLength")


def to_number(value: Any, *, parameter: str) -> Union[int, float]:
    """Coerce numbers and numeric strings; whole floats collapse to int."""
    if isinstance(value, bool):
        return int(value)
    num: Union[int, float]
    if isinstance(value, (int, float)):
        num = value
    elif isinstance(value, str):
        s = value.strip()
        try:
            num = int(s, 10)
        except ValueError:
            try:
                num = float(s)
            except ValueError:
                raise InvalidActionParameterError("Value must be a number.", parameter, value) from None
    else:
        raise InvalidActionParameterError("Value must be a number.", parameter, value)
    if isinstance(num, float):
        if not math.isfinite(num):
            raise InvalidActionParameterError("Value must be a finite number.", parameter, value)
        if num.is_integer():
            return int(num)
    return num


def _positive_int(value: Any, parameter: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise InvalidActionParameterError(f"{parameter} must be a positive integer.", parameter, value)
    return value


def _index(value: Any, parameter: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidActionParameterError(f"{parameter} must be a non-negative integer.", parameter, value)
    return value


def _address(value: Any, parameter: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidActionParameterError(f"{parameter} must be a wallet address.", parameter, value)
    return value.strip()


class _Action:
    action_name: ClassVar[str]
    function: ClassVar[str]

    def needs_settings(self) -> bool:
        """True when validation compares against the community's current settings."""
        return False

    def validate(self, settings: Settings = None) -> Any:
        return self

    def to_input(self) -> Dict[str, Any]:
        raise NotImplementedError


@dataclass(frozen=True)
class Transfer(_Action):
    target: str
    qty: int

    action_name: ClassVar[str] = "transfer"
    function: ClassVar[str] = "transfer"

    def validate(self, settings: Settings = None) -> "Transfer":
        return replace(self, target=_address(self.target, "target"), qty=_positive_int(self.qty, "qty"))

    def to_input(self) -> Dict[str, Any]:
        return {"function": self.function, "target": self.target, "qty": self.qty}


@dataclass(frozen=True)
class Lock(_Action):
    """Lock `qty` tokens in the vault for `lock_length` blocks to gain voting weight."""

    qty: int
    lock_length: int

    action_name: ClassVar[str] = "lockBalance"
    function: ClassVar[str] = "lock"

    def validate(self, settings: Settings = None) -> "Lock":
        _positive_int(self.qty, "qty")
        _positive_int(self.lock_length, "lockLength")
        return self

    def to_input(self) -> Dict[str, Any]:
        return {"function": self.function, "qty": self.qty, "lockLength": self.lock_length}


@dataclass(frozen=True)
class Unlock(_Action):
    """Release every vault entry whose lock period is over."""

    action_name: ClassVar[str] = "unlockVault"
    function: ClassVar[str] = "unlock"

    def to_input(self) -> Dict[str, Any]:
        return {"function": self.function}


@dataclass(frozen=True)
class IncreaseVault(_Action):
    vault_id: int
    lock_length: int

    action_name: ClassVar[str] = "increaseVault"
    function: ClassVar[str] = "increaseVault"

    def validate(self, settings: Settings = None) -> "IncreaseVault":
        _index(self.vault_id, "id")
        _positive_int(self.lock_length, "lockLength")
        return self

    def to_input(self) -> Dict[str, Any]:
        return {"function": self.function, "id": self.vault_id, "lockLength": self.lock_length}


@dataclass(frozen=True)
class ProposeVote(_Action):
    """
    Open a new vote.

    `type` is one of VOTE_TYPES. For `set` votes, `key`/`value` name the
    setting to change; numeric settings are coerced, and quorum/support are
    given as a percentage in (0, 100) and submitted as a fraction.
    """

    type: str
    note: str = ""
    key: Optional[str] = None
    value: Any = None
    recipient: Optional[str] = None
    target: Optional[str] = None
    qty: Optional[int] = None
    lock_length: Optional[int] = None

    action_name: ClassVar[str] = "proposeVote"
    function: ClassVar[str] = "propose"

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "ProposeVote":
        """Build from the contract's camelCase vote params (`function` is ignored)."""
        return cls(
            type=str(d.get("type", "")),
            note=str(d.get("note", "") or ""),
            key=d.get("key"),
            value=d.get("value"),
            recipient=d.get("recipient"),
            target=d.get("target"),
            qty=d.get("qty"),
            lock_length=d.get("lockLength"),
        )

    def needs_settings(self) -> bool:
        return self.type == "set" and self.key in LOCK_SETTINGS

    def validate(self, settings: Settings = None) -> "ProposeVote":
        if self.type not in VOTE_TYPES:
            raise InvalidActionParameterError("Invalid vote type.", "type", self.type)
        if self.type in ("mint", "mintLocked"):
            _address(self.recipient, "recipient")
            _positive_int(self.qty, "qty")
        if self.type == "mintLocked":
            _positive_int(self.lock_length, "lockLength")
        if self.type == "burnVault":
            _address(self.target, "target")
        if self.type != "set":
            return self

        if not isinstance(self.key, str) or not self.key:
            raise InvalidActionParameterError("A setting key is required.", "key", self.key)
        if self.key not in NUMERIC_SETTINGS:
            return self

        value = to_number(self.value, parameter=self.key)
        if self.key in PERCENT_SETTINGS:
            if value <= 0 or value >= 100:
                raise InvalidActionParameterError("Invalid value.", self.key, self.value)
            value = value / 100
        elif self.key == "lockMinLength":
            current_max = (settings or {}).get("lockMaxLength")
            if value < 1 or (current_max is not None and value > current_max):
                raise InvalidActionParameterError("Invalid minimum lock length.", self.key, self.value)
        elif self.key == "lockMaxLength":
            current_min = (settings or {}).get("lockMinLength")
            if value < 1 or (current_min is not None and value < current_min):
                raise InvalidActionParameterError("Invalid maximum lock length.", self.key, self.value)
        return replace(self, value=value)

    def to_input(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"function": self.function, "type": self.type, "note": self.note}
        optional = {
            "key": self.key,
            "value": self.value,
            "recipient": self.recipient,
            "target": self.target,
            "qty": self.qty,
            "lockLength": self.lock_length,
        }
        out.update({k: v for k, v in optional.items() if v is not None})
        return out


@dataclass(frozen=True)
class CastVote(_Action):
    vote_id: int
    cast: str

    action_name: ClassVar[str] = "vote"
    function: ClassVar[str] = "vote"

    def validate(self, settings: Settings = None) -> "CastVote":
        _index(self.vote_id, "id")
        if self.cast not in ("yay", "nay"):
            raise InvalidActionParameterError("Cast must be 'yay' or 'nay'.", "cast", self.cast)
        return self

    def to_input(self) -> Dict[str, Any]:
        return {"function": self.function, "id": self.vote_id, "cast": self.cast}


@dataclass(frozen=True)
class Finalize(_Action):
    vote_id: int

    action_name: ClassVar[str] = "finalize"
    function: ClassVar[str] = "finalize"

    def validate(self, settings: Settings = None) -> "Finalize":
        _index(self.vote_id, "id")
        return self

    def to_input(self) -> Dict[str, Any]:
        return {"function": self.function, "id": self.vote_id}


ActionRequest = Union[Transfer, Lock, Unlock, IncreaseVault, ProposeVote, CastVote, Finalize]
ACTION_TYPES: Tuple[type, ...] = (Transfer, Lock, Unlock, IncreaseVault, ProposeVote, CastVote, Finalize)


__all__ = [
    "ActionRequest",
    "ACTION_TYPES",
    "Transfer",
    "Lock",
    "Unlock",
    "IncreaseVault",
    "ProposeVote",
    "CastVote",
    "Finalize",
    "VOTE_TYPES",
    "to_number",
]
