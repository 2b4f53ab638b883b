from enum import StrEnum, auto

class JobStatus(StrEnum):
    WAITING = auto()    # Ready or delayed, waiting for a worker
    ACTIVE = auto()     # Claimed by exactly one worker
    COMPLETED = auto()  # Handler returned a result
    FAILED = auto()     # Retries exhausted or non-retryable fault

TERMINAL_STATUSES = frozenset({JobStatus.COMPLETED, JobStatus.FAILED})

class JobEvent(StrEnum):
    ADDED = "job:added"
    STARTED = "job:started"
    PROGRESS = "job:progress"
    COMPLETED = "job:completed"
    RETRIED = "job:retry"
    FAILED = "job:failed"
    REMOVED = "job:removed"

class WorkerStatus(StrEnum):
    IDLE = auto()
    BUSY = auto()
