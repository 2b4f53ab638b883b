import asyncio
import logging
import signal
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from jobqueue.queue import JobQueue

logger = logging.getLogger(__name__)

def install_signal_handlers(queue: "JobQueue", on_done: Optional[asyncio.Event] = None) -> list[signal.Signals]:
    """
    Wires SIGINT/SIGTERM to a graceful `queue.shutdown()` on the running loop.

    For hosting applications; the queue itself never touches process signals.
    `on_done` is set once shutdown has finished. Returns the signals that
    could be installed (none on platforms without loop signal support).
    """
    loop = asyncio.get_running_loop()
    installed = []

    def _handle(sig: signal.Signals):
        logger.info("Shutdown signal received: %s", sig.name)
        task = loop.create_task(queue.shutdown())
        if on_done is not None:
            task.add_done_callback(lambda _: on_done.set())

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _handle, sig)
            installed.append(sig)
        except NotImplementedError:
            # Windows support
            pass

    return installed
