import logging
import threading
from typing import Any

from jobqueue.domain.models import Job, JobLogEntry
from jobqueue.domain.states import JobStatus, JobEvent
from jobqueue.services.events import EventBus
from jobqueue.store.memory import JobStore
from jobqueue.utils.clock import Clock

logger = logging.getLogger(__name__)

class HandlerContext:
    """
    What a handler sees of its job: the payload plus log/progress side channels.

    `cancelled` is set when the attempt times out. Coroutine handlers are also
    cancelled; thread handlers should poll it if they need to stop early.
    """

    def __init__(self, job: Job, store: JobStore, events: EventBus, clock: Clock):
        self.id = job.id
        self.type = job.type
        self.payload = job.payload
        self.attempts = job.attempts
        self.cancelled = threading.Event()
        self._store = store
        self._events = events
        self._clock = clock

    @property
    def data(self) -> Any:
        return self.payload

    @property
    def is_cancelled(self) -> bool:
        return self.cancelled.is_set()

    def log(self, message: str) -> None:
        if self.is_cancelled:
            return
        entry = JobLogEntry(timestamp=self._clock.now(), message=str(message))
        with self._store.lock:
            job = self._store.live(self.id)
            if job is None or job.status != JobStatus.ACTIVE:
                return
            job.logs.append(entry)
        logger.info(f"Job {self.id}: {message}")

    def progress(self, percent: float) -> None:
        if self.is_cancelled:
            return
        value = int(max(0, min(100, percent)))

        with self._store.lock:
            job = self._store.live(self.id)
            # A late call from an abandoned attempt must not touch the next one
            if job is None or job.status != JobStatus.ACTIVE:
                return
            job.progress = value
            job.updated_at = self._clock.now()
            snapshot = job.snapshot()

        self._events.emit(JobEvent.PROGRESS, snapshot)
