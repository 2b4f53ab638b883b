import logging

from jobqueue.domain.errors import JobError, JobNotFoundError, InvalidJobStateError, JobTimeoutError
from jobqueue.domain.models import Job
from jobqueue.domain.retry import RetryPolicy
from jobqueue.domain.states import JobStatus, JobEvent
from jobqueue.services.events import EventBus
from jobqueue.store.memory import JobStore
from jobqueue.utils.clock import Clock, elapsed_ms
from jobqueue.api.v1.metrics import JOB_DURATION, JOB_FAILURES, JOB_TIMEOUTS, JOBS_INFLIGHT, QUEUE_DEPTH

logger = logging.getLogger(__name__)

def fail_job(
    store: JobStore,
    events: EventBus,
    clock: Clock,
    retry_policy: RetryPolicy,
    job_id: str,
    error: JobError,
    retryable: bool = True,
) -> Job:
    """
    Records a failed attempt of an ACTIVE job.

    Retryable failures with budget left go back to WAITING with
    attempts + 1 and process_at pushed out by the backoff policy.
    Everything else becomes FAILED permanently.
    """
    now = clock.now()

    with store.lock:
        job = store.live(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        if job.status != JobStatus.ACTIVE:
            raise InvalidJobStateError(job.status, JobStatus.FAILED)

        job.error = str(error)
        job.error_type = type(error).__name__
        job.updated_at = now

        if retryable and retry_policy.should_retry(job.attempts, job.max_retries):
            job.attempts += 1
            job.status = JobStatus.WAITING
            job.process_at = retry_policy.next_run(job.attempts, now)
            next_event = JobEvent.RETRIED
        else:
            job.status = JobStatus.FAILED
            job.failed_at = now
            job.processing_time_ms = elapsed_ms(job.started_at, now)
            next_event = JobEvent.FAILED

        snapshot = job.snapshot()

    # Metrics
    JOBS_INFLIGHT.labels(queue=store.name).dec()
    if isinstance(error, JobTimeoutError):
        JOB_TIMEOUTS.labels(queue=store.name, job_type=snapshot.type).inc()

    if next_event == JobEvent.RETRIED:
        JOB_FAILURES.labels(queue=store.name, job_type=snapshot.type, type="retryable").inc()
        QUEUE_DEPTH.labels(queue=store.name).inc() # Back to WAITING
        logger.info(
            f"Job retry scheduled: {snapshot.id} "
            f"(attempt {snapshot.attempts}/{snapshot.max_retries}) - {snapshot.error}"
        )
    else:
        JOB_FAILURES.labels(queue=store.name, job_type=snapshot.type, type="final").inc()
        JOB_DURATION.labels(queue=store.name).observe(snapshot.processing_time_ms / 1000)
        logger.warning(f"Job failed permanently: {snapshot.id} - {snapshot.error}")

    events.emit(next_event, snapshot)
    return snapshot
