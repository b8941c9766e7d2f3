"""Tests for per-key locks."""

import asyncio

from devconnect.locks import KeyedLocks


class TestKeyedLocks:
    def test_lock_dropped_after_release(self):
        locks = KeyedLocks()

        async def go():
            async with locks.hold("A1"):
                held = "A1" in locks and locks.locked("A1")
            return held

        assert asyncio.run(go()) is True
        assert len(locks) == 0
        assert locks.locked("A1") is False

    def test_kept_while_someone_waits(self):
        locks = KeyedLocks()
        order = []

        async def worker(name, release):
            async with locks.hold("k"):
                order.append(name)
                await release.wait()

        async def go():
            first_done, second_done = asyncio.Event(), asyncio.Event()
            first = asyncio.ensure_future(worker("first", first_done))
            second = asyncio.ensure_future(worker("second", second_done))
            await asyncio.sleep(0.01)
            first_done.set()
            await first
            still_there = "k" in locks
            second_done.set()
            await second
            return still_there

        assert asyncio.run(go()) is True
        assert order == ["first", "second"]
        assert len(locks) == 0

    def test_released_on_error(self):
        locks = KeyedLocks()

        async def go():
            try:
                async with locks.hold("k"):
                    raise RuntimeError("boom")
            except RuntimeError:
                pass

        asyncio.run(go())
        assert len(locks) == 0
