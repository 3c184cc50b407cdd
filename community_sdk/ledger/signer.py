"""
Signer protocol.

Key storage and the signature scheme live outside the SDK: anything with an
`address`, an `owner` (public key, base64url) and an async `sign(bytes)` works,
e.g. a hardware wallet bridge or a browser extension proxy.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Signer(Protocol):
    @property
    def address(self) -> str: ...

    @property
    def owner(self) -> str: ...

    async def sign(self, message: bytes) -> bytes: ...


__all__ = ["Signer"]
