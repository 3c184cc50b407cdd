"""
Community SDK for Python.
Convenience exports for the most common client APIs.
"""

from .version import __version__  # noqa: F401

# Core config & errors
from .config import CommunityConfig  # noqa: F401
from .errors import (  # noqa: F401
    ActionRejectedError,
    CommunityError,
    InsufficientBalanceError,
    InvalidActionParameterError,
    NoEligibleFeeRecipientError,
    ReloadFailedError,
    RpcError,
    TransactionSubmissionError,
    UnboundContractError,
    WalletNotSetError,
)

# Data model
from .types.state import StateSnapshot, VaultEntry, Vote  # noqa: F401
from .types.actions import (  # noqa: F401
    ActionRequest,
    CastVote,
    Finalize,
    IncreaseVault,
    Lock,
    ProposeVote,
    Transfer,
    Unlock,
)

# Collaborators
from .ledger.client import GatewayLedgerClient, LedgerClient, winston_to_ar  # noqa: F401
from .ledger.signer import Signer  # noqa: F401
from .contracts.reader import ContractReader, DryRunResult, RpcContractReader  # noqa: F401

# Core
from .selector import select_weighted_holder  # noqa: F401
from .sync import StateSynchronizer  # noqa: F401
from .fees import FeeCharger, FeeChargeRecord  # noqa: F401
from .community import Community  # noqa: F401

__all__ = [
    "__version__",
    # Core
    "CommunityConfig",
    "CommunityError", "UnboundContractError", "WalletNotSetError", "InvalidActionParameterError",
    "InsufficientBalanceError", "NoEligibleFeeRecipientError", "TransactionSubmissionError",
    "ActionRejectedError", "ReloadFailedError", "RpcError",
    # Data model
    "StateSnapshot", "VaultEntry", "Vote",
    "ActionRequest", "Transfer", "Lock", "Unlock", "IncreaseVault", "ProposeVote", "CastVote", "Finalize",
    # Collaborators
    "GatewayLedgerClient", "LedgerClient", "winston_to_ar", "Signer",
    "ContractReader", "DryRunResult", "RpcContractReader",
    # Components
    "select_weighted_holder", "StateSynchronizer", "FeeCharger", "FeeChargeRecord", "Community",
]
