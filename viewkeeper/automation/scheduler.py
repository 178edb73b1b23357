"""Cron-driven temp directory cleanup"""

import asyncio
import logging
from datetime import datetime
from typing import Dict, Optional

from croniter import croniter

from viewkeeper.viewonce.store import EvictionResult, TempStore

logger = logging.getLogger(__name__)

DEFAULT_CLEANUP_CRON = "0 */6 * * *"  # every 6 hours


class CleanupScheduler:
    """Periodically evicts stale view-once files

    Sweeps once on start, then on every cron tick. Sweeps never overlap:
    a request that arrives while one is running is skipped.
    """

    def __init__(
        self,
        store: TempStore,
        cron_expression: str = DEFAULT_CLEANUP_CRON,
        max_age: Optional[float] = None,
    ):
        if not croniter.is_valid(cron_expression):
            raise ValueError(f"Invalid cron expression '{cron_expression}'")
        self.store = store
        self.cron_expression = cron_expression
        self.max_age = max_age
        self.running = False
        self.last_run: Optional[datetime] = None
        self.next_run: Optional[datetime] = None
        self.run_count = 0
        self._task: Optional[asyncio.Task] = None
        self._lock = asyncio.Lock()

    def _calculate_next_run(self) -> datetime:
        now = datetime.now()
        self.next_run = croniter(self.cron_expression, now).get_next(datetime)
        return self.next_run

    def _seconds_until_next_run(self) -> float:
        next_run = self._calculate_next_run()
        return max(0.0, (next_run - datetime.now()).total_seconds())

    async def start(self):
        """Run the startup sweep and begin periodic cleanup"""
        if self.running:
            return
        logger.info("Starting view-once cleanup scheduler...")
        self.running = True
        await self.run_once()
        self._task = asyncio.create_task(self._run_loop())
        logger.info(f"✓ Cleanup scheduler started ({self.cron_expression})")

    async def stop(self):
        """Cancel the periodic task and wait for it to exit"""
        logger.info("Stopping view-once cleanup scheduler...")
        self.running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("✓ Cleanup scheduler stopped")

    async def run_once(self, max_age: Optional[float] = None) -> Optional[EvictionResult]:
        """Sweep the temp directory now.

        Returns:
            EvictionResult, or None if a sweep was already in progress or failed
        """
        if self._lock.locked():
            logger.info("Cleanup already in progress, skipping")
            return None
        async with self._lock:
            age = max_age if max_age is not None else self.max_age
            try:
                loop = asyncio.get_running_loop()
                result = await loop.run_in_executor(None, lambda: self.store.evict(age))
            except Exception as e:
                logger.error(f"✗ Temp cleanup failed: {e}", exc_info=True)
                return None
            self.run_count += 1
            self.last_run = datetime.now()
            return result

    async def _run_loop(self):
        while self.running:
            delay = self._seconds_until_next_run()
            logger.debug(f"Next temp cleanup at {self.next_run}")
            await asyncio.sleep(delay)
            await self.run_once()

    def get_stats(self) -> Dict:
        return {
            "running": self.running,
            "cron": self.cron_expression,
            "last_run": self.last_run.isoformat() if self.last_run else None,
            "next_run": self.next_run.isoformat() if self.next_run else None,
            "run_count": self.run_count,
        }
