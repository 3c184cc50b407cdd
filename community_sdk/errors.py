"""
Typed error classes for the Community SDK.

Every failure the SDK raises derives from `CommunityError`, so callers can
catch one base class or pick the specific failure mode:

- `UnboundContractError`        no community contract bound yet
- `InvalidActionParameterError` bad input, raised before any network call
- `InsufficientBalanceError`    wallet cannot cover the action fee
- `NoEligibleFeeRecipientError` fee contract has no holder with weight > 0
- `TransactionSubmissionError`  the gateway did not accept a transaction
- `ActionRejectedError`         the dry-run predicted a contract error
- `ReloadFailedError`           reading contract state failed or timed out
- `RpcError`                    JSON-RPC / transport failure
- `WalletNotSetError`           a write needs a signer and none is set
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

__all__ = [
    "CommunityError",
    "UnboundContractError",
    "WalletNotSetError",
    "InvalidActionParameterError",
    "InsufficientBalanceError",
    "NoEligibleFeeRecipientError",
    "TransactionSubmissionError",
    "ActionRejectedError",
    "ReloadFailedError",
    "RpcError",
]


class CommunityError(Exception):
    """Base class for all SDK errors."""


class UnboundContractError(CommunityError):
    """Raised when state is requested before a community contract is bound."""

    def __init__(self, message: str = "No community set. Use bind_contract() to load a community.") -> None:
        Exception.__init__(self, message)


class WalletNotSetError(CommunityError):
    """Raised when a write is attempted without a signer."""

    def __init__(
        self,
        message: str = "You first need to set the user wallet, pass signer= to Community() or call set_wallet().",
    ) -> None:
        Exception.__init__(self, message)


@dataclass(slots=True)
class InvalidActionParameterError(CommunityError):
    """
    Raised when an action or state field fails validation.

    Always raised before any network round trip, so nothing was charged.
    """

    message: str
    parameter: Optional[str] = None
    value: Optional[Any] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        where = f" [{self.parameter}={self.value!r}]" if self.parameter else ""
        return f"InvalidActionParameterError{where}: {self.message}"


@dataclass(slots=True)
class InsufficientBalanceError(CommunityError):
    """Raised when the wallet balance is below the fee for an action."""

    address: Optional[str]
    balance: int
    fee: int

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"Not enough balance: wallet={self.address} balance={self.balance} fee={self.fee}"


@dataclass(slots=True)
class NoEligibleFeeRecipientError(CommunityError):
    """Raised when no holder of the fee contract can be selected."""

    contract_id: Optional[str]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"No eligible fee recipient in contract {self.contract_id}"


@dataclass(slots=True)
class TransactionSubmissionError(CommunityError):
    """
    Raised when a transaction is not acknowledged with a success status.

    Fields:
      - status: HTTP status returned by the gateway (None for transport errors)
      - tx_id: id of the signed transaction, if it got that far
      - action: action name the transaction belonged to
    """

    message: str
    status: Optional[int] = None
    tx_id: Optional[str] = None
    action: Optional[str] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        bits = [self.message]
        if self.action:
            bits.append(f"action={self.action}")
        if self.status is not None:
            bits.append(f"status={self.status}")
        if self.tx_id:
            bits.append(f"tx={self.tx_id}")
        return "TransactionSubmissionError: " + " ".join(bits)


@dataclass(slots=True)
class ActionRejectedError(CommunityError):
    """Raised when the dry-run of an action reports an error outcome."""

    reason: Any
    action: Optional[str] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        prefix = f"[{self.action}] " if self.action else ""
        return f"{prefix}{self.reason}"


@dataclass(slots=True)
class ReloadFailedError(CommunityError):
    """Raised to the reload caller and every waiter when a state read fails."""

    contract_id: Optional[str]
    message: str

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"Reload of {self.contract_id} failed: {self.message}"


@dataclass(slots=True)
class RpcError(CommunityError):
    """Raised when a JSON-RPC call returns an error object or the transport fails."""

    method: Optional[str]
    code: int
    message: str
    data: Optional[Any] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        parts = [f"RPC[{self.method or '-'}] code={self.code} msg={self.message!r}"]
        if self.data is not None:
            parts.append(f"data={self.data!r}")
        return " ".join(parts)
