"""
Ledger access: transactions, signer protocol and the HTTP gateway client.
"""

from .client import GatewayLedgerClient, LedgerClient, SubmitResult, winston_to_ar  # noqa: F401
from .signer import Signer  # noqa: F401
from .transaction import Tag, Transaction  # noqa: F401

__all__ = ["GatewayLedgerClient", "LedgerClient", "SubmitResult", "winston_to_ar", "Signer", "Tag", "Transaction"]
