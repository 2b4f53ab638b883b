import asyncio
import inspect
import logging
import threading
from typing import Any, AsyncIterator, Callable, Optional

from jobqueue.domain.models import Job
from jobqueue.domain.states import JobEvent

logger = logging.getLogger(__name__)

Listener = Callable[[JobEvent, Job], Any]

ALL_EVENTS = "*"

class EventBus:
    """
    Observer registry for job lifecycle events.

    Listeners are informational: a listener that raises is logged and skipped,
    and the queue behaves the same with zero listeners. Coroutine listeners
    are scheduled on the running loop instead of awaited.
    """

    def __init__(self):
        self._listeners: dict[str, list[Listener]] = {}
        self._lock = threading.Lock()
        self._pending: set[asyncio.Task] = set()

    def subscribe(self, event: JobEvent | str, listener: Listener) -> Callable[[], None]:
        key = str(event)
        with self._lock:
            self._listeners.setdefault(key, []).append(listener)

        def unsubscribe():
            self.unsubscribe(key, listener)

        return unsubscribe

    def unsubscribe(self, event: JobEvent | str, listener: Listener) -> bool:
        key = str(event)
        with self._lock:
            listeners = self._listeners.get(key, [])
            if listener in listeners:
                listeners.remove(listener)
                return True
        return False

    def emit(self, event: JobEvent, job: Job) -> None:
        with self._lock:
            listeners = list(self._listeners.get(str(event), ())) + list(self._listeners.get(ALL_EVENTS, ()))

        for listener in listeners:
            try:
                result = listener(event, job)
                if inspect.isawaitable(result):
                    self._schedule(result, event)
            except Exception as e:
                logger.error(f"Listener for {event} failed: {e}", exc_info=True)

    def _schedule(self, awaitable, event: JobEvent):
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("Dropping async listener for %s: no running event loop", event)
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            return

        task = loop.create_task(awaitable)
        self._pending.add(task)
        task.add_done_callback(self._listener_done)

    def _listener_done(self, task: asyncio.Task):
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Async listener failed: %s", exc, exc_info=exc)

    async def stream(self, *events: JobEvent, maxsize: int = 0) -> AsyncIterator[tuple[JobEvent, Job]]:
        """
        Async iterator over lifecycle events. Subscribes on first iteration and
        unsubscribes when the consumer stops iterating.
        """
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)

        def _put(event: JobEvent, job: Job):
            try:
                running: Optional[asyncio.AbstractEventLoop] = asyncio.get_running_loop()
            except RuntimeError:
                running = None
            if running is loop:
                _offer(event, job)
            else:
                loop.call_soon_threadsafe(_offer, event, job)

        def _offer(event: JobEvent, job: Job):
            try:
                queue.put_nowait((event, job))
            except asyncio.QueueFull:
                logger.warning("Event stream full, dropping %s for job %s", event, job.id)

        keys = [str(e) for e in events] or [ALL_EVENTS]
        unsubscribers = [self.subscribe(key, _put) for key in keys]
        try:
            while True:
                yield await queue.get()
        finally:
            for unsubscribe in unsubscribers:
                unsubscribe()
