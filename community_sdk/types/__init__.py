"""
Typed data shapes used across the SDK.

- `state`   : StateSnapshot / VaultEntry / Vote (contract state as read)
- `actions` : the closed ActionRequest variant for contract writes
"""

from .actions import (  # noqa: F401
    ACTION_TYPES,
    ActionRequest,
    CastVote,
    Finalize,
    IncreaseVault,
    Lock,
    ProposeVote,
    Transfer,
    Unlock,
)
from .state import StateSnapshot, VaultEntry, Vote  # noqa: F401

__all__ = [
    "StateSnapshot", "VaultEntry", "Vote",
    "ActionRequest", "ACTION_TYPES",
    "Transfer", "Lock", "Unlock", "IncreaseVault", "ProposeVote", "CastVote", "Finalize",
]
