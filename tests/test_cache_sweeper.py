import asyncio
import unittest

from weather_dashboard.cache_store import CacheSweeper


class CountingStore:
    def __init__(self, removed=2, fail=False):
        self.removed = removed
        self.fail = fail
        self.sweeps = 0

    def sweep_expired(self):
        self.sweeps += 1
        if self.fail:
            raise RuntimeError("database is locked")
        return self.removed


class TestCacheSweeper(unittest.IsolatedAsyncioTestCase):
    async def test_sweep_once_returns_removed_count(self):
        sweeper = CacheSweeper(CountingStore(removed=3))
        self.assertEqual(await sweeper.sweep_once(), 3)

    async def test_sweep_failure_is_logged_not_raised(self):
        store = CountingStore(fail=True)
        sweeper = CacheSweeper(store)
        self.assertEqual(await sweeper.sweep_once(), 0)
        self.assertEqual(store.sweeps, 1)

    async def test_runs_periodically_until_stopped(self):
        store = CountingStore()
        sweeper = CacheSweeper(store, interval_seconds=0.01)
        sweeper.start()
        await asyncio.sleep(0.1)
        await sweeper.stop()
        self.assertGreaterEqual(store.sweeps, 2)
        swept = store.sweeps
        await asyncio.sleep(0.05)
        self.assertEqual(store.sweeps, swept)

    async def test_stop_without_start(self):
        sweeper = CacheSweeper(CountingStore())
        await sweeper.stop()
        self.assertFalse(sweeper.running)


if __name__ == "__main__":
    unittest.main()
