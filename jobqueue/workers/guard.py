import asyncio
import inspect
import logging
from concurrent.futures import Executor
from typing import Any, Awaitable, Callable, Optional, Union

from jobqueue.commands.complete_job import complete_job
from jobqueue.commands.fail_job import fail_job
from jobqueue.domain.errors import ExecutionError, JobTimeoutError, NoHandlerError
from jobqueue.domain.models import Job
from jobqueue.domain.retry import RetryPolicy
from jobqueue.services.events import EventBus
from jobqueue.store.memory import JobStore
from jobqueue.utils.clock import Clock
from jobqueue.workers.context import HandlerContext

logger = logging.getLogger(__name__)

Handler = Callable[[HandlerContext], Union[Awaitable[Any], Any]]

def is_async_handler(handler: Handler) -> bool:
    return inspect.iscoroutinefunction(handler) or inspect.iscoroutinefunction(
        getattr(handler, "__call__", None)
    )

class ExecutionGuard:
    """
    Runs one claimed job against its handler, racing it against the job's
    timeout, and records the outcome through the complete/fail commands.

    Plain callables run on `executor` (the loop's default executor when
    unset). The timeout starts once the handler is actually running, so time
    spent queued for a free thread is not charged to the job.
    """

    def __init__(
        self,
        store: JobStore,
        events: EventBus,
        clock: Clock,
        retry_policy: RetryPolicy,
        executor: Optional[Executor] = None,
    ):
        self.store = store
        self.events = events
        self.clock = clock
        self.retry_policy = retry_policy
        self.executor = executor

    async def run(self, job: Job, handler: Optional[Handler]) -> Job:
        if handler is None:
            # Configuration error, retrying cannot help
            error = NoHandlerError(job.type)
            logger.error(f"Job {job.id} failed: {error}")
            return self._fail(job, error, retryable=False)

        ctx = HandlerContext(job, self.store, self.events, self.clock)
        started = asyncio.get_running_loop().create_future()
        task = asyncio.ensure_future(self._invoke(handler, ctx, started))

        try:
            await asyncio.wait({task, started}, return_when=asyncio.FIRST_COMPLETED)
            done, _ = await asyncio.wait({task}, timeout=job.timeout)
        except asyncio.CancelledError:
            self._abandon(task, ctx)
            self._fail(job, ExecutionError("Worker cancelled during execution"))
            raise

        if task in done:
            try:
                result = task.result()
            except asyncio.CancelledError:
                error = ExecutionError("Handler was cancelled")
            except Exception as e:
                error = ExecutionError.from_exception(e)
            else:
                return complete_job(self.store, self.events, self.clock, job.id, result)
        else:
            # The handler may keep running; the worker does not wait for it.
            self._abandon(task, ctx)
            error = JobTimeoutError(job.timeout)

        logger.error(f"Job failed: {job.id} - {error}")
        return self._fail(job, error)

    async def _invoke(self, handler: Handler, ctx: HandlerContext, started: asyncio.Future) -> Any:
        loop = asyncio.get_running_loop()

        if is_async_handler(handler):
            _mark_started(started)
            return await handler(ctx)

        def call():
            loop.call_soon_threadsafe(_mark_started, started)
            return handler(ctx)

        result = await loop.run_in_executor(self.executor, call)
        if inspect.isawaitable(result):
            result = await result
        return result

    def _fail(self, job: Job, error, retryable: bool = True) -> Job:
        return fail_job(
            self.store,
            self.events,
            self.clock,
            self.retry_policy,
            job.id,
            error,
            retryable=retryable,
        )

    @staticmethod
    def _abandon(task: asyncio.Future, ctx: HandlerContext):
        ctx.cancelled.set()
        task.cancel()
        task.add_done_callback(_drain_abandoned)

def _mark_started(started: asyncio.Future):
    if not started.done():
        started.set_result(None)

def _drain_abandoned(task: asyncio.Future):
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.debug("Abandoned handler finished with %s: %s", type(exc).__name__, exc)
