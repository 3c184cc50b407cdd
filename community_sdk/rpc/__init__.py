"""
RPC transports.

- `http` : async JSON-RPC over HTTP (httpx)
"""

from .http import AsyncRpcClient  # noqa: F401

__all__ = ["AsyncRpcClient"]
