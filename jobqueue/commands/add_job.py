import logging
from datetime import timedelta
from typing import Any

from jobqueue.domain.errors import InvalidArgumentError
from jobqueue.domain.models import Job
from jobqueue.domain.states import JobEvent
from jobqueue.services.events import EventBus
from jobqueue.store.memory import JobStore
from jobqueue.utils.clock import Clock
from jobqueue.api.v1.metrics import JOB_ADDED_TOTAL, QUEUE_DEPTH

logger = logging.getLogger(__name__)

def add_job(
    store: JobStore,
    events: EventBus,
    clock: Clock,
    job_type: str,
    payload: Any = None,
    *,
    priority: int = 0,
    delay: float = 0,
    max_retries: int,
    timeout: float,
) -> Job:
    """
    Validates the options and inserts a WAITING job.
    Delayed jobs get process_at = now + delay and are skipped by the
    dispatcher until then.
    """
    _validate(job_type, priority, delay, max_retries, timeout)

    now = clock.now()
    job = Job(
        type=job_type,
        payload=payload,
        priority=priority,
        created_at=now,
        process_at=now + timedelta(seconds=delay),
        max_retries=max_retries,
        timeout=float(timeout),
    )
    snapshot = store.add(job)

    # Metrics
    JOB_ADDED_TOTAL.labels(queue=store.name, job_type=job_type).inc()
    QUEUE_DEPTH.labels(queue=store.name).inc()

    if delay > 0:
        logger.info(f"Job added: {job_type} ({job.id}), delayed {delay:g}s")
    else:
        logger.info(f"Job added: {job_type} ({job.id})")

    events.emit(JobEvent.ADDED, snapshot)
    return snapshot

def _validate(job_type, priority, delay, max_retries, timeout):
    if not isinstance(job_type, str) or not job_type.strip():
        raise InvalidArgumentError("job_type must be a non-empty string")
    # bool is an int subclass but never a meaningful priority
    if isinstance(priority, bool) or not isinstance(priority, int):
        raise InvalidArgumentError("priority must be an integer")
    if not _is_number(delay) or delay < 0:
        raise InvalidArgumentError("delay must be a number >= 0")
    if isinstance(max_retries, bool) or not isinstance(max_retries, int) or max_retries < 0:
        raise InvalidArgumentError("max_retries must be a non-negative integer")
    if not _is_number(timeout) or timeout <= 0:
        raise InvalidArgumentError("timeout must be a number > 0")

def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)
