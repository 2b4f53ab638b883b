import asyncio
import dataclasses
import logging
from typing import Callable, Optional

from jobqueue.domain.models import WorkerState
from jobqueue.services.events import EventBus
from jobqueue.store.memory import JobStore
from jobqueue.utils.clock import Clock
from jobqueue.workers.guard import ExecutionGuard, Handler
from jobqueue.workers.runner import WorkerRunner

logger = logging.getLogger(__name__)

class WorkerPool:
    """
    Fixed-size set of WorkerRunner loops sharing one store.

    Idle workers sleep on a shared wake-up event with a timeout of at most
    `idle_interval`, shortened to the next delayed job's process_at.
    `notify()` sets the event and may be called from any thread.
    """

    def __init__(
        self,
        store: JobStore,
        events: EventBus,
        clock: Clock,
        guard: ExecutionGuard,
        resolve_handler: Callable[[str], Optional[Handler]],
        concurrency: int = 4,
        idle_interval: float = 1.0,
        error_backoff: float = 5.0,
    ):
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self.store = store
        self.events = events
        self.clock = clock
        self.guard = guard
        self.resolve_handler = resolve_handler
        self.concurrency = concurrency
        self.idle_interval = idle_interval
        self.error_backoff = error_backoff

        self.running = False
        self._tasks: list[asyncio.Task] = []
        self._states: list[WorkerState] = []
        self._wakeup: Optional[asyncio.Event] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    async def start(self):
        if self.running:
            return

        self._loop = asyncio.get_running_loop()
        self._wakeup = asyncio.Event()
        self.running = True

        now = self.clock.now()
        self._states = [WorkerState(id=i, started_at=now) for i in range(self.concurrency)]
        self._tasks = [
            asyncio.create_task(WorkerRunner(self, state).run(), name=f"{self.store.name}-worker-{state.id}")
            for state in self._states
        ]
        logger.info(f"Starting job queue processing ({self.concurrency} workers)")

    async def stop(self, poll_interval: float = 0.1):
        """
        Stops claiming new jobs and waits for in-flight attempts to reach an
        outcome. Idle workers are woken so they notice the stop immediately.
        """
        self.running = False
        self.notify()

        # Only jobs held by live runners are waited for; a job claimed outside
        # the pool or orphaned by a dead runner stays ACTIVE.
        held = self.held_jobs()
        if held:
            logger.info(f"Waiting for {len(held)} active jobs to complete...")
        while self.held_jobs():
            await asyncio.sleep(poll_interval)

        if self._tasks:
            results = await asyncio.gather(*self._tasks, return_exceptions=True)
            for result in results:
                if isinstance(result, BaseException) and not isinstance(result, asyncio.CancelledError):
                    logger.error("Worker exited with %s: %s", type(result).__name__, result)
        self._tasks = []

    def notify(self):
        """Wakes idle workers, e.g. after a job was added."""
        if self._wakeup is None or self._loop is None:
            return

        try:
            current = asyncio.get_running_loop()
        except RuntimeError:
            current = None

        if current is self._loop:
            self._wakeup.set()
        elif not self._loop.is_closed():
            self._loop.call_soon_threadsafe(self._wakeup.set)

    async def wait_for_work(self, timeout: Optional[float] = None):
        """Sleeps until notified, stopped, or the timeout / next delayed job is due."""
        if not self.running:
            return

        if timeout is None:
            timeout = self.idle_interval
            now = self.clock.now()
            next_at = self.store.next_ready_at(now)
            if next_at is not None:
                timeout = min(timeout, max((next_at - now).total_seconds(), 0.0))

        self._wakeup.clear()
        try:
            await asyncio.wait_for(self._wakeup.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            pass

    def held_jobs(self) -> list[str]:
        """Ids of the jobs currently held by runners that are still alive."""
        return [
            state.current_job
            for state, task in zip(self._states, self._tasks)
            if state.current_job is not None and not task.done()
        ]

    def states(self) -> list[WorkerState]:
        return [dataclasses.replace(state) for state in self._states]
