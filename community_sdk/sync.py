"""
community_sdk.sync
==================

Cached, periodically refreshed view of one contract's state.

A `StateSynchronizer` owns everything mutable about a bound contract: its id,
the cached snapshot, the in-flight reload and the background refresh task.
Track several contracts by creating several synchronizers.

Behavior
--------
- The first `get_state()` after binding always reloads, whatever `use_cache`
  says, and then starts the background refresh task.
- Later calls return the cached snapshot when `use_cache` is true, and reload
  otherwise.
- Single flight: while a reload is running every other caller awaits that same
  reload and receives its result or its error. Failed reloads never replace
  the cached snapshot.
- The refresh task reloads every `refresh_interval` seconds until `stop()`,
  `close()` or a rebind. Failed ticks are logged and the loop keeps going.
- `bind()` resets the cache and validates the new id with a full reload; if that
  reload fails the binding is rolled back and the error re-raised.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Optional

from .contracts.reader import ContractReader
from .errors import ReloadFailedError, UnboundContractError
from .types.state import StateSnapshot


class StateSynchronizer:
    def __init__(
        self,
        reader: ContractReader,
        *,
        contract_id: Optional[str] = None,
        refresh_interval: float = 120.0,
        reload_timeout: float = 120.0,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if refresh_interval <= 0:
            raise ValueError("refresh_interval must be positive")
        self._reader = reader
        self._contract_id: Optional[str] = contract_id or None
        self._snapshot: Optional[StateSnapshot] = None
        self._has_loaded_once = False
        self._refresh_interval = float(refresh_interval)
        self._reload_timeout = float(reload_timeout)
        self._lock = asyncio.Lock()
        self._inflight: Optional[asyncio.Task[StateSnapshot]] = None
        # Bumped on every (re)bind so late results from a previous contract are dropped.
        self._generation = 0
        self._refresh_task: Optional[asyncio.Task[None]] = None
        self._stop: Optional[asyncio.Event] = None
        self._log = logger or logging.getLogger("community_sdk.sync")
        self.reload_count = 0

    # ------------------------------------------------------------------ Accessors

    @property
    def contract_id(self) -> Optional[str]:
        return self._contract_id

    @property
    def snapshot(self) -> Optional[StateSnapshot]:
        return self._snapshot

    @property
    def has_loaded_once(self) -> bool:
        return self._has_loaded_once

    @property
    def refresh_in_flight(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    @property
    def refresh_interval(self) -> float:
        return self._refresh_interval

    @property
    def refreshing(self) -> bool:
        return self._refresh_task is not None and not self._refresh_task.done()

    # ------------------------------------------------------------------ Binding

    def _reset(self, contract_id: Optional[str], snapshot: Optional[StateSnapshot] = None) -> int:
        self._generation += 1
        self._contract_id = contract_id or None
        self._snapshot = snapshot
        self._has_loaded_once = False
        self._inflight = None
        return self._generation

    async def bind(self, contract_id: str) -> StateSnapshot:
        """Bind to `contract_id` and load its state; rolls back if the load fails."""
        if not contract_id:
            raise UnboundContractError("Contract id must be a non-empty string.")
        await self.stop()
        generation = self._reset(contract_id)
        try:
            return await self.get_state(use_cache=False)
        except BaseException:
            if self._generation == generation:
                self._reset(None)
            raise

    async def adopt(self, contract_id: str, snapshot: StateSnapshot) -> None:
        """
        Bind to a freshly created contract whose initial state is already known.

        No reload happens now; the next `get_state()` still performs the
        first-load reload once the contract is readable.
        """
        await self.stop()
        self._reset(contract_id, snapshot)

    async def unbind(self) -> None:
        await self.stop()
        self._reset(None)

    # ------------------------------------------------------------------ State

    async def get_state(self, use_cache: bool = True) -> StateSnapshot:
        if not self._contract_id:
            raise UnboundContractError()

        if not self._has_loaded_once:
            generation = self._generation
            snapshot = await self.reload()
            if generation == self._generation:
                self._has_loaded_once = True
                self._start_refresh()
            return snapshot

        if not use_cache or self._snapshot is None:
            return await self.reload()
        return self._snapshot

    async def reload(self) -> StateSnapshot:
        """Reload now, or join the reload already in flight."""
        async with self._lock:
            contract_id = self._contract_id
            if not contract_id:
                raise UnboundContractError()
            task = self._inflight
            if task is None:
                task = asyncio.get_running_loop().create_task(
                    self._load(contract_id, self._generation), name=f"reload:{contract_id}"
                )
                task.add_done_callback(self._on_reload_done)
                self._inflight = task
        # Shielded so a cancelled waiter does not cancel the reload for everyone else.
        return await asyncio.shield(task)

    def _on_reload_done(self, task: asyncio.Task[StateSnapshot]) -> None:
        if self._inflight is task:
            self._inflight = None
        if not task.cancelled():
            # Mark retrieved; every waiter re-raises it on its own.
            task.exception()

    async def _load(self, contract_id: str, generation: int) -> StateSnapshot:
        self.reload_count += 1
        try:
            snapshot = await asyncio.wait_for(self._reader.read_state(contract_id), timeout=self._reload_timeout)
        except asyncio.TimeoutError as e:
            raise ReloadFailedError(contract_id, f"timed out after {self._reload_timeout}s") from e
        except ReloadFailedError:
            raise
        except Exception as e:
            raise ReloadFailedError(contract_id, str(e) or type(e).__name__) from e

        if generation == self._generation:
            self._snapshot = snapshot
        else:
            self._log.debug("dropping state of %s read before a rebind", contract_id)
        return snapshot

    # ------------------------------------------------------------------ Background refresh

    def _start_refresh(self) -> None:
        if self.refreshing:
            return
        self._stop = asyncio.Event()
        self._refresh_task = asyncio.get_running_loop().create_task(
            self._refresh_loop(self._stop), name=f"refresh:{self._contract_id}"
        )

    async def _refresh_loop(self, stop: asyncio.Event) -> None:
        while not stop.is_set():
            try:
                await asyncio.wait_for(stop.wait(), timeout=self._refresh_interval)
                return
            except asyncio.TimeoutError:
                pass

            if not self._contract_id:
                self._log.debug("refresh tick skipped: no contract bound")
                continue
            try:
                await self.reload()
            except Exception:  # noqa: BLE001
                self._log.warning("scheduled refresh of %s failed", self._contract_id, exc_info=True)

    async def stop(self) -> None:
        """Stop the background refresh task, if running."""
        if self._stop is not None:
            self._stop.set()
        task, self._refresh_task = self._refresh_task, None
        if task is None or task is asyncio.current_task():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def close(self) -> None:
        await self.stop()


__all__ = ["StateSynchronizer"]
