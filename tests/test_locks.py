import asyncio

import pytest

from flipledger.domain.locks import KeyedLock


@pytest.mark.asyncio()
async def test_same_key_is_serialized():
    locks = KeyedLock()
    order = []

    async def worker(name: str):
        async with locks.hold("0xabc"):
            order.append(f"{name}-in")
            await asyncio.sleep(0.01)
            order.append(f"{name}-out")

    await asyncio.gather(worker("a"), worker("b"))
    assert order == ["a-in", "a-out", "b-in", "b-out"]
    assert len(locks) == 0


@pytest.mark.asyncio()
async def test_different_keys_do_not_block():
    locks = KeyedLock()
    release = asyncio.Event()

    async def hold_first():
        async with locks.hold("0xaaa"):
            await release.wait()

    task = asyncio.create_task(hold_first())
    await asyncio.sleep(0)
    assert locks.locked("0xaaa")

    async with locks.hold("0xbbb"):
        assert locks.locked("0xbbb")
    release.set()
    await task
    assert not locks.locked("0xaaa")


@pytest.mark.asyncio()
async def test_lock_released_on_error():
    locks = KeyedLock()
    with pytest.raises(RuntimeError):
        async with locks.hold("0xabc"):
            raise RuntimeError("boom")
    assert len(locks) == 0
