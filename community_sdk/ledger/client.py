"""
community_sdk.ledger.client
===========================

Ledger gateway access: price quotes, wallet balances, transaction creation,
signing and submission.

`LedgerClient` is the protocol the rest of the SDK consumes; the
`GatewayLedgerClient` implementation talks to an HTTP gateway:

    GET  /price/{bytes}[/{target}]   -> winston (plain text integer)
    GET  /wallet/{address}/balance   -> winston (plain text integer)
    GET  /tx_anchor                  -> anchor for `last_tx`
    POST /tx                         -> 200/202 on acceptance

Reads are retried on transient failures; `submit` is attempted exactly once
and its status is reported back to the caller unchanged.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal
from typing import Any, Mapping, Optional, Protocol

import httpx

from ..errors import RpcError
from ..rpc.http import is_retriable_http, jitter_backoff
from ..version import user_agent
from .signer import Signer
from .transaction import Transaction, b64url_encode

WINSTON_PER_AR = 10**12
SUCCESS_STATUSES = (200, 202)


def winston_to_ar(winston: int | str, *, decimals: int = 12, trim: bool = True) -> str:
    """Format a winston amount as AR, e.g. 1500000000000 -> '1.5'."""
    value = Decimal(int(winston)) / Decimal(WINSTON_PER_AR)
    quant = Decimal(1).scaleb(-int(decimals))
    out = format(value.quantize(quant, rounding=ROUND_DOWN), "f")
    if trim and "." in out:
        out = out.rstrip("0").rstrip(".")
    return out


def ar_to_winston(ar: int | float | str) -> int:
    return int(Decimal(str(ar)) * WINSTON_PER_AR)


@dataclass(frozen=True)
class SubmitResult:
    status: int
    body: str = ""

    @property
    def ok(self) -> bool:
        return self.status in SUCCESS_STATUSES


class LedgerClient(Protocol):
    async def get_price(self, byte_size: int, target: Optional[str] = None) -> int: ...

    async def get_balance(self, address: str) -> int: ...

    async def create_transaction(self, fields: Mapping[str, Any], signer: Signer) -> Transaction: ...

    async def sign(self, tx: Transaction, signer: Signer) -> None: ...

    async def submit(self, tx: Transaction) -> SubmitResult: ...

    def add_tag(self, tx: Transaction, key: str, value: str) -> None: ...


class GatewayLedgerClient:
    def __init__(
        self,
        url: str,
        *,
        timeout: float = 30.0,
        max_retries: int = 3,
        backoff_base: float = 0.25,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._url = url.rstrip("/")
        self._max_retries = int(max_retries)
        self._backoff_base = float(backoff_base)
        self._client = httpx.AsyncClient(
            base_url=self._url,
            timeout=timeout,
            headers={"User-Agent": user_agent()},
            transport=transport,
        )
        self._log = logger or logging.getLogger("community_sdk.ledger")

    @property
    def url(self) -> str:
        return self._url

    async def __aenter__(self) -> "GatewayLedgerClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------ reads

    async def _get_text(self, path: str) -> str:
        last_exc: Optional[Exception] = None
        for attempt in range(1, self._max_retries + 2):
            try:
                r = await self._client.get(path)
                if not is_retriable_http(r.status_code):
                    if r.status_code >= 400:
                        raise RpcError(method=f"GET {path}", code=r.status_code, message=r.text[:256] or "HTTP error")
                    return r.text.strip()
                last_exc = RuntimeError(f"HTTP {r.status_code}")
            except (httpx.TimeoutException, httpx.NetworkError) as e:
                last_exc = e
            if attempt > self._max_retries:
                break
            await asyncio.sleep(jitter_backoff(self._backoff_base, attempt))
        raise RpcError(method=f"GET {path}", code=-32098, message="gateway transport failed", data=str(last_exc))

    async def _get_int(self, path: str) -> int:
        text = await self._get_text(path)
        try:
            return int(text)
        except ValueError:
            raise RpcError(method=f"GET {path}", code=-32603, message="unexpected non-integer payload", data=text[:64]) from None

    async def get_price(self, byte_size: int, target: Optional[str] = None) -> int:
        path = f"/price/{int(byte_size)}"
        if target:
            path += f"/{target}"
        return await self._get_int(path)

    async def get_balance(self, address: str) -> int:
        return await self._get_int(f"/wallet/{address}/balance")

    async def get_anchor(self) -> str:
        return await self._get_text("/tx_anchor")

    # ------------------------------------------------------------------ writes

    async def create_transaction(self, fields: Mapping[str, Any], signer: Signer) -> Transaction:
        """
        Build an unsigned transaction from `fields` (target, quantity, data).

        `owner`, `last_tx` and `reward` are filled in when not provided.
        """
        data = fields.get("data") or b""
        if isinstance(data, str):
            data = data.encode("utf-8")
        tx = Transaction(
            owner=fields.get("owner") or signer.owner,
            target=str(fields.get("target") or ""),
            quantity=str(fields.get("quantity") or "0"),
            data=bytes(data),
        )
        tx.last_tx = fields.get("last_tx") or await self.get_anchor()
        reward = fields.get("reward")
        if reward is None:
            reward = await self.get_price(tx.data_size, tx.target or None)
        tx.reward = str(reward)
        return tx

    async def sign(self, tx: Transaction, signer: Signer) -> None:
        signature = await signer.sign(tx.signature_data())
        tx.signature = b64url_encode(signature)
        tx.id = b64url_encode(hashlib.sha256(signature).digest())

    def add_tag(self, tx: Transaction, key: str, value: str) -> None:
        tx.add_tag(key, value)

    async def submit(self, tx: Transaction) -> SubmitResult:
        if not tx.id or not tx.signature:
            raise ValueError("transaction must be signed before submission")
        try:
            r = await self._client.post("/tx", json=tx.to_dict())
        except (httpx.TimeoutException, httpx.NetworkError) as e:
            self._log.warning("submit of tx %s failed: %s", tx.id, e)
            return SubmitResult(status=0, body=str(e))
        return SubmitResult(status=r.status_code, body=r.text[:512])


__all__ = [
    "LedgerClient",
    "GatewayLedgerClient",
    "SubmitResult",
    "winston_to_ar",
    "ar_to_winston",
    "WINSTON_PER_AR",
]
