import logging
from typing import Optional

from jobqueue.domain.models import Job
from jobqueue.domain.states import JobEvent
from jobqueue.services.events import EventBus
from jobqueue.store.memory import JobStore
from jobqueue.utils.clock import Clock
from jobqueue.api.v1.metrics import QUEUE_DEPTH, JOBS_INFLIGHT, JOB_DISPATCH_COUNT, JOB_START_DELAY

logger = logging.getLogger(__name__)

def lease_job(
    store: JobStore,
    events: EventBus,
    clock: Clock,
    worker_id: int,
) -> Optional[Job]:
    """
    Atomically claims the best ready job for the given worker.

    Selection and the WAITING -> ACTIVE transition happen in one critical
    section of the store, so two workers can never claim the same job.
    """
    now = clock.now()
    job = store.claim_next(now)
    if job is None:
        return None

    # Metrics
    QUEUE_DEPTH.labels(queue=store.name).dec()
    JOBS_INFLIGHT.labels(queue=store.name).inc()
    JOB_DISPATCH_COUNT.labels(queue=store.name, job_type=job.type).inc()

    delay = (now - job.process_at).total_seconds()
    if delay >= 0:
        JOB_START_DELAY.observe(delay)

    logger.debug(f"Worker {worker_id} claimed job {job.id} ({job.type}, priority {job.priority})")
    events.emit(JobEvent.STARTED, job)
    return job
