"""Test the in-memory session registry."""

import asyncio

import pytest

from peel_n_edit.core import SessionRegistry
from peel_n_edit.utils.errors import SessionNotFoundError


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def registry(session_factory, clock) -> SessionRegistry:
    return SessionRegistry(session_factory, ttl_seconds=60, clock=clock)


@pytest.mark.asyncio
async def test_idle_session_is_evicted_and_active_one_kept(registry, clock, image_a):
    idle_id, idle = await registry.create()
    active_id, active = await registry.create()
    idle.select_file(image_a)
    await idle.wait_idle()

    clock.now += 40
    assert registry.get(active_id) is active

    clock.now += 40
    await registry.create()

    assert idle_id not in registry
    assert active_id in registry
    assert len(registry) == 2
    with pytest.raises(SessionNotFoundError):
        registry.get(idle_id)

    await registry.close_all()


@pytest.mark.asyncio
async def test_eviction_cancels_background_work(registry, clock, image_a, gemini):
    session_id, session = await registry.create()
    gemini.gates["p1"] = asyncio.Event()
    session.select_file(image_a)
    for _ in range(5):
        await asyncio.sleep(0)
    tasks = list(session._tasks)
    assert tasks

    clock.now += 61
    evicted = await registry.cleanup_idle_sessions()

    assert evicted == 1
    assert session_id not in registry
    assert all(task.done() for task in tasks)


@pytest.mark.asyncio
async def test_expired_session_lookup_fails(registry, clock):
    session_id, _ = await registry.create()

    clock.now += 61

    with pytest.raises(SessionNotFoundError, match="expired"):
        registry.get(session_id)
    assert len(registry) == 0

    await registry.close_all()


@pytest.mark.asyncio
async def test_many_abandoned_sessions_do_not_accumulate(registry, clock, image_a):
    for _ in range(50):
        _, session = await registry.create()
        session.select_file(image_a)
        await session.wait_idle()

    clock.now += 61
    await registry.create()

    assert len(registry) == 1

    await registry.close_all()
