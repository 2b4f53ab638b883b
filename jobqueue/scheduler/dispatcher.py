from datetime import datetime
from typing import Iterable, Optional

from jobqueue.domain.models import Job
from jobqueue.domain.states import JobStatus

def dispatch_order_key(job: Job) -> tuple:
    """
    Priority descending, then creation time, then insertion order.
    Listing and dispatch share this key so admin views match real dispatch order.
    """
    return (-job.priority, job.created_at, job.sequence)

def select_next_job(jobs: Iterable[Job], now: datetime) -> Optional[Job]:
    """
    Linear scan for the best ready job: WAITING with process_at <= now,
    lowest dispatch_order_key wins.

    Caller must hold the store lock if the result is going to be claimed.
    """
    best: Optional[Job] = None
    best_key = None

    for job in jobs:
        if job.status != JobStatus.WAITING or job.process_at > now:
            continue
        key = dispatch_order_key(job)
        if best is None or key < best_key:
            best = job
            best_key = key

    return best
