import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta
from typing import Any, Optional, Union

from jobqueue.commands.add_job import add_job
from jobqueue.commands.remove_job import remove_job, sweep_jobs
from jobqueue.domain.errors import InvalidArgumentError, JobNotFoundError
from jobqueue.domain.models import Job, QueueStats, WorkerState
from jobqueue.domain.retry import RetryPolicy
from jobqueue.domain.states import JobEvent, JobStatus
from jobqueue.scheduler.service import SweepService
from jobqueue.services.events import EventBus, Listener
from jobqueue.settings import Settings, settings as default_settings
from jobqueue.store.memory import JobStore
from jobqueue.utils.clock import Clock, SystemClock
from jobqueue.workers.guard import ExecutionGuard, Handler
from jobqueue.workers.pool import WorkerPool

logger = logging.getLogger(__name__)

Duration = Union[float, int, timedelta]

def _seconds(value: Optional[Duration]) -> Optional[float]:
    if isinstance(value, timedelta):
        return value.total_seconds()
    return value

class JobQueue:
    """
    A single in-memory job queue: job store, handler registry, worker pool
    and periodic sweep, owned together so independent queues can coexist.

    Usage:
        queue = JobQueue("images", Settings(CONCURRENCY=2))
        queue.register_handler("resize", resize)
        await queue.start()
        job = queue.add("resize", {"path": "a.png"}, priority=10)
        ...
        await queue.shutdown()
    """

    def __init__(self, name: Optional[str] = None, config: Optional[Settings] = None, clock: Optional[Clock] = None):
        self.config = config or default_settings
        self.name = name or self.config.QUEUE_NAME
        self.clock = clock or SystemClock()

        self.store = JobStore(self.name)
        self.events = EventBus()
        self.retry_policy = RetryPolicy(
            base_delay=self.config.RETRY_DELAY_SECONDS,
            max_delay=self.config.RETRY_MAX_DELAY_SECONDS,
            jitter=self.config.RETRY_JITTER,
        )

        self._handlers: dict[str, Handler] = {}
        self._handlers_lock = threading.Lock()

        self._executor: Optional[ThreadPoolExecutor] = None
        self.guard = ExecutionGuard(self.store, self.events, self.clock, self.retry_policy)
        self.pool = WorkerPool(
            self.store,
            self.events,
            self.clock,
            self.guard,
            self.get_handler,
            concurrency=self.config.CONCURRENCY,
            idle_interval=self.config.IDLE_INTERVAL_SECONDS,
            error_backoff=self.config.ERROR_BACKOFF_SECONDS,
        )
        self.sweeper = SweepService(
            self.store,
            self.clock,
            interval=self.config.CLEANUP_INTERVAL_SECONDS,
            retention=self.config.CLEANUP_RETENTION_SECONDS,
        )
        logger.info(f"Initializing job queue: {self.name}")

    # --- Jobs ---

    def add(
        self,
        job_type: str,
        payload: Any = None,
        *,
        priority: int = 0,
        delay: Duration = 0,
        max_retries: Optional[int] = None,
        timeout: Optional[Duration] = None,
    ) -> Job:
        job = add_job(
            self.store,
            self.events,
            self.clock,
            job_type,
            payload,
            priority=priority,
            delay=_seconds(delay),
            max_retries=self.config.MAX_RETRIES if max_retries is None else max_retries,
            timeout=self.config.JOB_TIMEOUT_SECONDS if timeout is None else _seconds(timeout),
        )
        self.pool.notify()
        return job

    def get(self, job_id: str) -> Job:
        job = self.store.get(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    def list_jobs(self, status: Optional[Union[JobStatus, str]] = None, limit: Optional[int] = 50) -> list[Job]:
        if status is not None:
            try:
                status = JobStatus(status)
            except ValueError:
                raise InvalidArgumentError(f"Unknown job status: {status}")
        return self.store.list_jobs(status, limit)

    def remove(self, job_id: str) -> bool:
        return remove_job(self.store, self.events, job_id)

    def sweep(self, older_than: Duration = 86400) -> int:
        older_than = _seconds(older_than)
        if older_than is None or older_than < 0:
            raise InvalidArgumentError("older_than must be >= 0")
        return sweep_jobs(self.store, self.clock, older_than)

    # --- Handlers ---

    def register_handler(self, job_type: str, handler: Handler) -> None:
        if not isinstance(job_type, str) or not job_type.strip():
            raise InvalidArgumentError("job_type must be a non-empty string")
        if not callable(handler):
            raise InvalidArgumentError("handler must be callable")

        with self._handlers_lock:
            self._handlers[job_type] = handler
        logger.info(f"Registering handler for: {job_type}")
        # Jobs of this type may already be waiting
        self.pool.notify()

    def handler(self, job_type: str):
        """Decorator form of register_handler."""
        def decorator(func: Handler) -> Handler:
            self.register_handler(job_type, func)
            return func
        return decorator

    def get_handler(self, job_type: str) -> Optional[Handler]:
        with self._handlers_lock:
            return self._handlers.get(job_type)

    # --- Observability ---

    def subscribe(self, event: Union[JobEvent, str], listener: Listener):
        return self.events.subscribe(event, listener)

    def unsubscribe(self, event: Union[JobEvent, str], listener: Listener) -> bool:
        return self.events.unsubscribe(event, listener)

    def stats(self) -> QueueStats:
        counts = self.store.counts(self.clock.now())
        durations = self.store.completed_durations_ms()
        avg_duration = round(sum(durations) / len(durations)) if durations else 0

        with self._handlers_lock:
            handlers = sorted(self._handlers)

        return QueueStats(
            waiting=counts[JobStatus.WAITING.value],
            active=counts[JobStatus.ACTIVE.value],
            completed=counts[JobStatus.COMPLETED.value],
            failed=counts[JobStatus.FAILED.value],
            delayed=counts["delayed"],
            total_jobs=self.store.total_added,
            total_in_memory=len(self.store),
            avg_duration_ms=avg_duration,
            per_type=self.store.counts_by_type(),
            is_running=self.is_running,
            workers=self.pool.concurrency,
            handlers=handlers,
        )

    def workers(self) -> list[WorkerState]:
        return self.pool.states()

    # --- Lifecycle ---

    @property
    def is_running(self) -> bool:
        return self.pool.running

    async def start(self):
        if self.pool.running:
            return
        if self._executor is None:
            # Sync handlers get their own threads, apart from the loop's default executor
            self._executor = ThreadPoolExecutor(
                max_workers=self.config.HANDLER_THREADS,
                thread_name_prefix=f"jobqueue-{self.name}",
            )
            self.guard.executor = self._executor
        await self.pool.start()
        await self.sweeper.start()

    async def stop(self):
        logger.info(f"Stopping job queue processing: {self.name}")
        await self.pool.stop(poll_interval=self.config.STOP_POLL_INTERVAL_SECONDS)
        logger.info(f"Job queue stopped: {self.name}")

    async def shutdown(self):
        logger.info("Graceful shutdown initiated...")
        await self.stop()
        await self.sweeper.stop()
        if self._executor is not None:
            # Abandoned handler threads are not joined
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None
            self.guard.executor = None
        logger.info("Queue shutdown complete")

# Named queue registry

_queues: dict[str, JobQueue] = {}
_queues_lock = threading.Lock()

def get_queue(name: str = "default", config: Optional[Settings] = None, clock: Optional[Clock] = None) -> JobQueue:
    """Returns the queue registered under `name`, creating it on first use."""
    with _queues_lock:
        queue = _queues.get(name)
        if queue is None:
            queue = JobQueue(name, config=config, clock=clock)
            _queues[name] = queue
        return queue

def all_queues() -> dict[str, JobQueue]:
    with _queues_lock:
        return dict(_queues)

def drop_queue(name: str) -> Optional[JobQueue]:
    """Forgets a registered queue. The caller is responsible for shutting it down."""
    with _queues_lock:
        return _queues.pop(name, None)
