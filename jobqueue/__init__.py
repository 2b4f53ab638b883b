from .domain.errors import (
    ExecutionError,
    InvalidArgumentError,
    InvalidJobStateError,
    JobError,
    JobNotFoundError,
    JobTimeoutError,
    NoHandlerError,
)
from .domain.models import Job, JobLogEntry, QueueStats, WorkerState
from .domain.retry import RetryPolicy
from .domain.states import JobEvent, JobStatus
from .queue import JobQueue, all_queues, drop_queue, get_queue
from .settings import Settings
from .utils.signals import install_signal_handlers
from .workers.context import HandlerContext

__all__ = [
    "ExecutionError",
    "HandlerContext",
    "InvalidArgumentError",
    "InvalidJobStateError",
    "Job",
    "JobError",
    "JobEvent",
    "JobLogEntry",
    "JobNotFoundError",
    "JobQueue",
    "JobStatus",
    "JobTimeoutError",
    "NoHandlerError",
    "QueueStats",
    "RetryPolicy",
    "Settings",
    "WorkerState",
    "all_queues",
    "drop_queue",
    "get_queue",
    "install_signal_handlers",
]
