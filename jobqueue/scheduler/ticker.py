from jobqueue.commands.remove_job import sweep_jobs
from jobqueue.domain.states import JobStatus
from jobqueue.store.memory import JobStore
from jobqueue.utils.clock import Clock

def run_ticker(store: JobStore, clock: Clock, retention_seconds: float) -> int:
    """
    Periodic maintenance tasks:
    1. Sweep terminal jobs older than the retention window
    2. Re-sync gauges from the store so drift from incremental updates heals
    """
    swept = sweep_jobs(store, clock, retention_seconds)
    run_metrics_tasks(store)
    return swept

def run_metrics_tasks(store: JobStore):
    from jobqueue.api.v1.metrics import QUEUE_DEPTH, JOBS_INFLIGHT

    QUEUE_DEPTH.labels(queue=store.name).set(store.count(JobStatus.WAITING))
    JOBS_INFLIGHT.labels(queue=store.name).set(store.count(JobStatus.ACTIVE))
