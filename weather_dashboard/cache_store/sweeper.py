"""Periodic removal of expired cache entries."""

import asyncio
from typing import Optional

from weather_dashboard.cache_store.base import CacheStore
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="cache_store/sweeper")


class CacheSweeper:
    """Owns the background task that sweeps a cache store on a fixed period.

    Reads already ignore expired rows, so a missed or late sweep only costs
    disk space.
    """

    def __init__(self, store: CacheStore, interval_seconds: float = 3600) -> None:
        self.store = store
        self.interval_seconds = interval_seconds
        self.running = False
        self._task: Optional[asyncio.Task] = None

    async def sweep_once(self) -> int:
        """Run one sweep in a worker thread; failures are logged, not raised."""
        try:
            removed = await asyncio.to_thread(self.store.sweep_expired)
        except Exception as exc:
            logger.error(f"Cache sweep failed: {exc}")
            return 0
        if removed:
            logger.info(f"Removed {removed} expired cache entries")
        return removed

    async def run(self) -> None:
        """Sleep, sweep, repeat until stopped."""
        self.running = True
        logger.info(f"Starting cache sweeper (every {self.interval_seconds}s)")
        while self.running:
            await asyncio.sleep(self.interval_seconds)
            if self.running:
                await self.sweep_once()

    def start(self) -> asyncio.Task:
        """Schedule `run` on the current event loop."""
        if self._task is None or self._task.done():
            self.running = True
            self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self) -> None:
        """Stop the loop and wait for the task to unwind."""
        self.running = False
        logger.info("Stopping cache sweeper")
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            logger.info("Cache sweeper cancelled successfully")
        self._task = None
