import itertools
import logging
import threading
from collections import Counter
from datetime import datetime
from typing import Optional

from jobqueue.domain.models import Job
from jobqueue.domain.states import JobStatus, TERMINAL_STATUSES
from jobqueue.scheduler.dispatcher import dispatch_order_key, select_next_job

logger = logging.getLogger(__name__)

class JobStore:
    """
    In-memory registry of every job a queue knows about.

    All access goes through `lock`. Methods returning `Job` objects hand out
    snapshots; `live()` returns the owned record and is only meant for the
    transition commands, which must hold the lock while mutating it.
    """

    def __init__(self, name: str = "default"):
        self.name = name
        self.lock = threading.RLock()
        self._jobs: dict[str, Job] = {}
        self._sequence = itertools.count(1)
        self.total_added = 0

    def __len__(self) -> int:
        with self.lock:
            return len(self._jobs)

    def __contains__(self, job_id: str) -> bool:
        with self.lock:
            return job_id in self._jobs

    def add(self, job: Job) -> Job:
        with self.lock:
            if job.id in self._jobs:
                raise ValueError(f"Duplicate job id {job.id}")
            job.sequence = next(self._sequence)
            self._jobs[job.id] = job
            self.total_added += 1
            return job.snapshot()

    def live(self, job_id: str) -> Optional[Job]:
        return self._jobs.get(job_id)

    def get(self, job_id: str) -> Optional[Job]:
        with self.lock:
            job = self._jobs.get(job_id)
            return job.snapshot() if job else None

    def list_jobs(self, status: Optional[JobStatus] = None, limit: Optional[int] = 50) -> list[Job]:
        with self.lock:
            jobs = [
                job for job in self._jobs.values()
                if status is None or job.status == status
            ]
            jobs.sort(key=dispatch_order_key)
            if limit is not None:
                jobs = jobs[:max(limit, 0)]
            return [job.snapshot() for job in jobs]

    def remove(self, job_id: str) -> Optional[Job]:
        """
        Removes a non-active job. Returns the removed job, or None when the
        job does not exist or is currently held by a worker.
        """
        with self.lock:
            job = self._jobs.get(job_id)
            if job is None:
                return None
            if job.status == JobStatus.ACTIVE:
                logger.warning("Cannot remove active job %s", job_id)
                return None
            del self._jobs[job_id]
            return job.snapshot()

    def sweep(self, cutoff: datetime) -> list[Job]:
        """Removes COMPLETED/FAILED jobs last updated before `cutoff`."""
        with self.lock:
            expired = [
                job for job in self._jobs.values()
                if job.status in TERMINAL_STATUSES and job.updated_at < cutoff
            ]
            for job in expired:
                del self._jobs[job.id]
            return expired

    def claim_next(self, now: datetime) -> Optional[Job]:
        """
        Atomically selects the best ready job and moves it WAITING -> ACTIVE.
        Returns a snapshot of the claimed job.
        """
        with self.lock:
            job = select_next_job(self._jobs.values(), now)
            if job is None:
                return None
            job.status = JobStatus.ACTIVE
            job.executions += 1
            job.started_at = now
            job.updated_at = now
            return job.snapshot()

    def next_ready_at(self, now: datetime) -> Optional[datetime]:
        """Earliest process_at among delayed waiting jobs, if any."""
        with self.lock:
            pending = [
                job.process_at for job in self._jobs.values()
                if job.status == JobStatus.WAITING and job.process_at > now
            ]
            return min(pending) if pending else None

    def has_ready(self, now: datetime) -> bool:
        with self.lock:
            return any(job.is_ready(now) for job in self._jobs.values())

    def count(self, status: JobStatus) -> int:
        with self.lock:
            return sum(1 for job in self._jobs.values() if job.status == status)

    def counts(self, now: datetime) -> dict[str, int]:
        with self.lock:
            by_status = Counter(job.status for job in self._jobs.values())
            delayed = sum(
                1 for job in self._jobs.values()
                if job.status == JobStatus.WAITING and job.process_at > now
            )
        counts = {status.value: by_status.get(status, 0) for status in JobStatus}
        counts["delayed"] = delayed
        return counts

    def counts_by_type(self) -> dict[str, dict[str, int]]:
        with self.lock:
            pairs = Counter((job.type, job.status) for job in self._jobs.values())
        per_type: dict[str, dict[str, int]] = {}
        for (job_type, status), count in pairs.items():
            per_type.setdefault(job_type, {s.value: 0 for s in JobStatus})[status.value] = count
        return per_type

    def completed_durations_ms(self) -> list[float]:
        with self.lock:
            return [
                job.processing_time_ms for job in self._jobs.values()
                if job.status == JobStatus.COMPLETED and job.processing_time_ms is not None
            ]
