import logging
from datetime import timedelta

from jobqueue.domain.states import JobStatus, JobEvent
from jobqueue.services.events import EventBus
from jobqueue.store.memory import JobStore
from jobqueue.utils.clock import Clock
from jobqueue.api.v1.metrics import QUEUE_DEPTH, JOB_SWEPT_TOTAL

logger = logging.getLogger(__name__)

def remove_job(store: JobStore, events: EventBus, job_id: str) -> bool:
    """
    Removes a WAITING, COMPLETED or FAILED job.
    Returns False (never raises) for unknown or ACTIVE jobs.
    """
    job = store.remove(job_id)
    if job is None:
        return False

    if job.status == JobStatus.WAITING:
        QUEUE_DEPTH.labels(queue=store.name).dec()

    logger.info(f"Job removed: {job_id}")
    events.emit(JobEvent.REMOVED, job)
    return True

def sweep_jobs(store: JobStore, clock: Clock, older_than: float) -> int:
    """
    Deletes COMPLETED/FAILED jobs whose updated_at is more than
    `older_than` seconds in the past. Returns the number removed.
    """
    cutoff = clock.now() - timedelta(seconds=older_than)
    removed = store.sweep(cutoff)

    if removed:
        JOB_SWEPT_TOTAL.labels(queue=store.name).inc(len(removed))
        logger.info(f"Cleaned {len(removed)} old jobs from queue {store.name}")

    return len(removed)
