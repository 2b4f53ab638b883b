import logging
from typing import Any

from jobqueue.domain.errors import JobNotFoundError, InvalidJobStateError
from jobqueue.domain.models import Job
from jobqueue.domain.states import JobStatus, JobEvent
from jobqueue.services.events import EventBus
from jobqueue.store.memory import JobStore
from jobqueue.utils.clock import Clock, elapsed_ms
from jobqueue.api.v1.metrics import JOB_DURATION, JOB_COMPLETE_TOTAL, JOBS_INFLIGHT

logger = logging.getLogger(__name__)

def complete_job(
    store: JobStore,
    events: EventBus,
    clock: Clock,
    job_id: str,
    result: Any,
) -> Job:
    """
    Marks an ACTIVE job as COMPLETED and stores its result.
    Clears any error left over from earlier failed attempts.
    """
    now = clock.now()

    with store.lock:
        job = store.live(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        if job.status != JobStatus.ACTIVE:
            raise InvalidJobStateError(job.status, JobStatus.COMPLETED)

        job.status = JobStatus.COMPLETED
        job.result = result
        job.error = None
        job.error_type = None
        job.completed_at = now
        job.updated_at = now
        job.progress = 100
        job.processing_time_ms = elapsed_ms(job.started_at, now)
        snapshot = job.snapshot()

    # Metrics
    JOBS_INFLIGHT.labels(queue=store.name).dec()
    JOB_COMPLETE_TOTAL.labels(queue=store.name, job_type=snapshot.type).inc()
    JOB_DURATION.labels(queue=store.name).observe(snapshot.processing_time_ms / 1000)

    logger.info(f"Job completed: {snapshot.id} ({snapshot.processing_time_ms:.0f}ms)")
    events.emit(JobEvent.COMPLETED, snapshot)
    return snapshot
