import asyncio
import logging
from typing import Optional

from jobqueue.scheduler.ticker import run_ticker
from jobqueue.store.memory import JobStore
from jobqueue.utils.clock import Clock

logger = logging.getLogger(__name__)

class SweepService:
    """Runs the maintenance ticker on a fixed interval until stopped."""

    def __init__(self, store: JobStore, clock: Clock, interval: float = 3600.0, retention: float = 86400.0):
        self.store = store
        self.clock = clock
        self.interval = interval
        self.retention = retention
        self._running = False
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._running

    async def start(self):
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._loop(), name=f"{self.store.name}-sweeper")
        logger.info("Sweep service started (every %ss, retention %ss).", self.interval, self.retention)

    async def stop(self):
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Sweep service stopped.")

    async def _loop(self):
        while self._running:
            await asyncio.sleep(self.interval)
            try:
                run_ticker(self.store, self.clock, self.retention)
            except Exception as e:
                logger.error(f"Error in sweep ticker: {e}", exc_info=True)
