class JobError(Exception):
    """Base exception for job queue errors."""
    pass

class InvalidArgumentError(JobError, ValueError):
    pass

class JobNotFoundError(JobError, LookupError):
    def __init__(self, job_id):
        super().__init__(f"Job {job_id} not found")
        self.job_id = job_id

class InvalidJobStateError(JobError):
    def __init__(self, current_status, target_status):
        super().__init__(f"Cannot transition from {current_status} to {target_status}")

class NoHandlerError(JobError):
    def __init__(self, job_type):
        super().__init__(f"No handler registered for job type: {job_type}")
        self.job_type = job_type

class ExecutionError(JobError):
    """A handler raised while processing a job."""

    @classmethod
    def from_exception(cls, exc: BaseException) -> "ExecutionError":
        error = cls(f"{type(exc).__name__}: {exc}")
        error.__cause__ = exc
        return error

class JobTimeoutError(ExecutionError):
    def __init__(self, timeout: float):
        super().__init__(f"Job timeout after {timeout:g}s")
        self.timeout = timeout
