import asyncio

import pytest

from community_sdk.errors import ReloadFailedError, UnboundContractError
from community_sdk.sync import StateSynchronizer
from community_sdk.types.state import StateSnapshot

from conftest import COMMUNITY, MAIN, community_state


class SlowReader:
    def __init__(self, delay: float) -> None:
        self.delay = delay

    async def read_state(self, contract_id: str) -> StateSnapshot:
        await asyncio.sleep(self.delay)
        return StateSnapshot.from_dict(community_state())


@pytest.mark.asyncio
async def test_unbound_get_state_raises(reader):
    sync = StateSynchronizer(reader)
    with pytest.raises(UnboundContractError):
        await sync.get_state()
    assert reader.read_counts == {}


@pytest.mark.asyncio
async def test_concurrent_first_calls_share_one_reload(reader):
    sync = StateSynchronizer(reader, contract_id=COMMUNITY)
    reader.gate = asyncio.Event()

    first = asyncio.create_task(sync.get_state())
    second = asyncio.create_task(sync.get_state())
    await asyncio.sleep(0.01)
    assert sync.refresh_in_flight
    reader.gate.set()

    a, b = await asyncio.gather(first, second)
    try:
        assert a is b
        assert a.ticker == "TEST"
        assert reader.read_counts[COMMUNITY] == 1
        assert sync.has_loaded_once
        assert sync.refreshing
        assert not sync.refresh_in_flight
    finally:
        await sync.close()


@pytest.mark.asyncio
async def test_cached_reads_do_not_reload(reader):
    sync = StateSynchronizer(reader, contract_id=COMMUNITY)
    try:
        first = await sync.get_state()
        again = await sync.get_state()
        assert again is first
        assert reader.read_counts[COMMUNITY] == 1

        fresh = await sync.get_state(use_cache=False)
        assert fresh is not first
        assert reader.read_counts[COMMUNITY] == 2
        assert sync.snapshot is fresh
    finally:
        await sync.close()


@pytest.mark.asyncio
async def test_first_call_reloads_even_with_cache_allowed(reader):
    sync = StateSynchronizer(reader, contract_id=COMMUNITY)
    try:
        await sync.get_state(use_cache=True)
        assert reader.read_counts[COMMUNITY] == 1
    finally:
        await sync.close()


@pytest.mark.asyncio
async def test_failed_reload_reaches_every_waiter_and_keeps_cache(reader):
    sync = StateSynchronizer(reader, contract_id=COMMUNITY)
    try:
        cached = await sync.get_state()

        reader.states[COMMUNITY] = RuntimeError("evaluator down")
        reader.gate = asyncio.Event()
        waiters = [asyncio.create_task(sync.get_state(use_cache=False)) for _ in range(3)]
        await asyncio.sleep(0.01)
        reader.gate.set()
        results = await asyncio.gather(*waiters, return_exceptions=True)

        assert all(isinstance(r, ReloadFailedError) for r in results)
        assert "evaluator down" in str(results[0])
        assert reader.read_counts[COMMUNITY] == 2
        assert sync.snapshot is cached
        assert await sync.get_state() is cached
    finally:
        await sync.close()


@pytest.mark.asyncio
async def test_bind_validates_and_rolls_back_on_failure(reader):
    sync = StateSynchronizer(reader)
    reader.states["broken"] = RuntimeError("no such contract")
    try:
        with pytest.raises(ReloadFailedError):
            await sync.bind("broken")
        assert sync.contract_id is None
        assert sync.snapshot is None
        with pytest.raises(UnboundContractError):
            await sync.get_state()

        snapshot = await sync.bind(COMMUNITY)
        assert sync.contract_id == COMMUNITY
        assert snapshot.name == "Test Community"
    finally:
        await sync.close()


@pytest.mark.asyncio
async def test_bind_rejects_empty_id(reader):
    sync = StateSynchronizer(reader)
    with pytest.raises(UnboundContractError):
        await sync.bind("")


@pytest.mark.asyncio
async def test_rebind_replaces_cache_and_restarts_refresh(reader):
    sync = StateSynchronizer(reader)
    try:
        await sync.bind(COMMUNITY)
        assert sync.refreshing
        main = await sync.bind(MAIN)
        assert main.ticker == "MAIN"
        assert (await sync.get_state()).ticker == "MAIN"
        assert sync.refreshing
    finally:
        await sync.close()
    assert not sync.refreshing


@pytest.mark.asyncio
async def test_adopt_sets_snapshot_without_reading(reader):
    sync = StateSynchronizer(reader)
    snapshot = StateSnapshot.from_dict(community_state(ticker="NEW"))
    await sync.adopt(COMMUNITY, snapshot)
    assert sync.snapshot is snapshot
    assert reader.read_counts == {}
    assert not sync.has_loaded_once
    await sync.close()


@pytest.mark.asyncio
async def test_unbind(reader):
    sync = StateSynchronizer(reader, contract_id=COMMUNITY)
    await sync.get_state()
    await sync.unbind()
    assert not sync.refreshing
    with pytest.raises(UnboundContractError):
        await sync.get_state()


@pytest.mark.asyncio
async def test_periodic_refresh_reloads_and_survives_failures(reader):
    sync = StateSynchronizer(reader, contract_id=COMMUNITY, refresh_interval=0.01)
    try:
        await sync.get_state()
        reader.states[COMMUNITY] = RuntimeError("flaky")
        await asyncio.sleep(0.1)
        failed_ticks = reader.read_counts[COMMUNITY]
        assert failed_ticks >= 3
        assert sync.refreshing

        reader.states[COMMUNITY] = community_state(ticker="NEXT")
        await asyncio.sleep(0.1)
        assert reader.read_counts[COMMUNITY] > failed_ticks
        assert sync.snapshot.ticker == "NEXT"
    finally:
        await sync.close()


@pytest.mark.asyncio
async def test_stop_halts_refresh(reader):
    sync = StateSynchronizer(reader, contract_id=COMMUNITY, refresh_interval=0.01)
    await sync.get_state()
    await sync.stop()
    count = reader.read_counts[COMMUNITY]
    await asyncio.sleep(0.05)
    assert reader.read_counts[COMMUNITY] == count
    assert not sync.refreshing


@pytest.mark.asyncio
async def test_reload_timeout_raises_reload_failed():
    sync = StateSynchronizer(SlowReader(1.0), contract_id=COMMUNITY, reload_timeout=0.01)
    try:
        with pytest.raises(ReloadFailedError) as ei:
            await sync.get_state()
        assert "timed out" in str(ei.value)
        assert sync.snapshot is None
        assert not sync.has_loaded_once
    finally:
        await sync.close()


@pytest.mark.asyncio
async def test_cancelled_waiter_does_not_cancel_shared_reload(reader):
    sync = StateSynchronizer(reader, contract_id=COMMUNITY)
    reader.gate = asyncio.Event()
    try:
        doomed = asyncio.create_task(sync.get_state())
        survivor = asyncio.create_task(sync.get_state())
        await asyncio.sleep(0.01)
        doomed.cancel()
        await asyncio.sleep(0)
        reader.gate.set()

        snapshot = await survivor
        assert snapshot.ticker == "TEST"
        assert doomed.cancelled()
        assert reader.read_counts[COMMUNITY] == 1
    finally:
        await sync.close()


def test_refresh_interval_must_be_positive(reader):
    with pytest.raises(ValueError):
        StateSynchronizer(reader, refresh_interval=0)
