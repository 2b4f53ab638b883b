import dataclasses
import secrets
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from jobqueue.domain.states import JobStatus, WorkerStatus

def generate_job_id() -> str:
    return secrets.token_hex(16)

@dataclass(frozen=True)
class JobLogEntry:
    timestamp: datetime
    message: str

@dataclass
class Job:
    type: str
    payload: Any
    created_at: datetime
    process_at: datetime
    timeout: float
    max_retries: int

    id: str = field(default_factory=generate_job_id)
    priority: int = 0
    status: JobStatus = JobStatus.WAITING
    attempts: int = 0
    # Times the job was claimed by a worker; attempts only counts retries
    executions: int = 0

    result: Any = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    progress: int = 0

    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    failed_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    processing_time_ms: Optional[float] = None

    logs: list[JobLogEntry] = field(default_factory=list)

    # Assigned by the store on insert; breaks created_at ties.
    sequence: int = 0

    def __post_init__(self):
        if self.updated_at is None:
            self.updated_at = self.created_at

    def snapshot(self) -> "Job":
        """Copy safe to hand out; the payload and result are shared, not copied."""
        return dataclasses.replace(self, logs=list(self.logs))

    def is_ready(self, now: datetime) -> bool:
        return self.status == JobStatus.WAITING and self.process_at <= now

@dataclass
class WorkerState:
    id: int
    started_at: datetime
    status: WorkerStatus = WorkerStatus.IDLE
    current_job: Optional[str] = None
    processed_jobs: int = 0

@dataclass
class QueueStats:
    waiting: int
    active: int
    completed: int
    failed: int
    delayed: int
    total_jobs: int
    total_in_memory: int
    avg_duration_ms: float
    per_type: dict[str, dict[str, int]]
    is_running: bool
    workers: int
    handlers: list[str]
