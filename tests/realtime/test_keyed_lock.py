import asyncio

import pytest

from regionchat.utils.keyed_lock import KeyedLock


@pytest.mark.asyncio
async def test_same_key_is_serialized_and_entry_dropped_afterwards():
    locks = KeyedLock()
    order = []

    async def worker(name):
        async with locks.hold("msg-1"):
            order.append(f"{name}-in")
            await asyncio.sleep(0)
            order.append(f"{name}-out")

    await asyncio.gather(worker("a"), worker("b"))

    assert order == ["a-in", "a-out", "b-in", "b-out"]
    assert len(locks) == 0

@pytest.mark.asyncio
async def test_entry_survives_while_someone_waits():
    locks = KeyedLock()
    entered = asyncio.Event()

    async def waiter():
        async with locks.hold("alice"):
            entered.set()

    async with locks.hold("alice"):
        task = asyncio.create_task(waiter())
        await asyncio.sleep(0)
        assert len(locks) == 1
        assert not entered.is_set()

    await task
    assert entered.is_set()
    assert len(locks) == 0

@pytest.mark.asyncio
async def test_entry_is_dropped_when_body_raises():
    locks = KeyedLock()
    with pytest.raises(RuntimeError):
        async with locks.hold("k"):
            raise RuntimeError("boom")
    assert len(locks) == 0
