from __future__ import annotations

"""
HTTP JSON-RPC client (async).

- Built on httpx.AsyncClient; one connection pool per client.
- Retries idempotent calls on transient transport failures and 429/5xx HTTP.
- Calls made with `retry=False` (writes) are attempted exactly once.

Example:
    from community_sdk.rpc.http import AsyncRpcClient
    async with AsyncRpcClient("http://127.0.0.1:1984/rpc") as rpc:
        state = await rpc.request("contract.readState", ["<contract id>"])
"""

import asyncio
import logging
import random
import time
from dataclasses import dataclass, field
from itertools import count
from typing import Any, Dict, Iterator, Mapping, Optional, Sequence, Union

import httpx

from ..errors import RpcError
from ..version import user_agent

JSON = Union[dict, list, str, int, float, bool, None]
Params = Union[Sequence[Any], Mapping[str, Any], None]

TRANSPORT_ERROR = -32098
INTERNAL_ERROR = -32603


def _now_ms() -> int:
    return int(time.time() * 1000)


def is_retriable_http(status: int) -> bool:
    # Typical transient HTTP statuses: 429/502/503/504
    return status in (429, 502, 503, 504)


def jitter_backoff(base: float, attempt: int, jitter: float = 0.1) -> float:
    # Exponential backoff with jitter in [0, jitter]
    return base * (2 ** max(attempt - 1, 0)) + random.random() * jitter


class _Transient(Exception):
    """Internal marker for a failure worth retrying."""


@dataclass
class AsyncRpcClient:
    """Asynchronous JSON-RPC 2.0 client over HTTP."""

    url: str
    timeout: float = 30.0
    max_retries: int = 3
    backoff_base: float = 0.25
    headers: Optional[Mapping[str, str]] = None
    transport: Optional[httpx.AsyncBaseTransport] = None
    logger: Optional[logging.Logger] = None
    _id_counter: Iterator[int] = field(default_factory=lambda: count(start=_now_ms()))
    _client: Optional[httpx.AsyncClient] = field(init=False, default=None)

    def __post_init__(self) -> None:
        merged_headers: Dict[str, str] = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": user_agent(),
        }
        if self.headers:
            merged_headers.update(dict(self.headers))
        self._client = httpx.AsyncClient(timeout=self.timeout, headers=merged_headers, transport=self.transport)
        self._log = self.logger or logging.getLogger("community_sdk.rpc")

    # --- context manager -------------------------------------------------

    async def __aenter__(self) -> "AsyncRpcClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # --- public API ------------------------------------------------------

    async def request(self, method: str, params: Params = None, *, retry: bool = True) -> JSON:
        """Perform a single JSON-RPC request and return `result` or raise RpcError."""
        payload = self._make_payload(method, params)
        attempts = self.max_retries + 1 if retry else 1
        last_exc: Optional[Exception] = None
        for attempt in range(1, attempts + 1):
            try:
                return await self._send_once(method, payload)
            except _Transient as e:
                last_exc = e
                if attempt >= attempts:
                    break
                delay = jitter_backoff(self.backoff_base, attempt)
                self._log.debug("rpc %s transient failure (%s); retry %d in %.2fs", method, e, attempt, delay)
                await asyncio.sleep(delay)
        raise RpcError(method=method, code=TRANSPORT_ERROR, message="RPC transport failed", data=str(last_exc))

    # --- internals -------------------------------------------------------

    def _make_payload(self, method: str, params: Params) -> Dict[str, Any]:
        if params is None:
            params = []
        elif isinstance(params, Mapping):
            params = dict(params)
        elif isinstance(params, Sequence) and not isinstance(params, (str, bytes, bytearray)):
            params = list(params)
        else:
            # Coerce single param into positional list
            params = [params]  # type: ignore[list-item]
        return {"jsonrpc": "2.0", "id": next(self._id_counter), "method": method, "params": params}

    async def _send_once(self, method: str, payload: Dict[str, Any]) -> JSON:
        if self._client is None:
            raise RpcError(method=method, code=INTERNAL_ERROR, message="client is closed")
        try:
            r = await self._client.post(self.url, json=payload)
        except (httpx.TimeoutException, httpx.NetworkError) as e:
            raise _Transient(str(e)) from e
        if is_retriable_http(r.status_code):
            raise _Transient(f"HTTP {r.status_code}")
        # Avoid raise_for_status() to keep error body visible below
        try:
            resp = r.json()
        except ValueError as e:
            raise RpcError(
                method=method,
                code=INTERNAL_ERROR,
                message="Non-JSON response from RPC",
                data=f"HTTP {r.status_code}: {r.text[:256]}",
            ) from e

        if not isinstance(resp, dict):
            raise RpcError(method=method, code=INTERNAL_ERROR, message="Invalid JSON-RPC response type", data=type(resp).__name__)
        if resp.get("error") is not None:
            err = resp["error"] or {}
            raise RpcError(
                method=method,
                code=int(err.get("code", INTERNAL_ERROR)),
                message=str(err.get("message", "Unknown error")),
                data=err.get("data"),
            )
        if "result" not in resp:
            raise RpcError(method=method, code=INTERNAL_ERROR, message="Malformed JSON-RPC response", data=resp)
        return resp["result"]


__all__ = ["AsyncRpcClient", "is_retriable_http", "jitter_backoff"]
