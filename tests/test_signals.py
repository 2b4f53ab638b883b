import asyncio
import os
import signal
import sys

import pytest

from jobqueue import install_signal_handlers


@pytest.mark.asyncio
@pytest.mark.skipif(sys.platform == "win32", reason="loop signal handlers are POSIX only")
async def test_sigterm_shuts_queue_down(make_queue):
    queue = make_queue()
    await queue.start()
    done = asyncio.Event()
    loop = asyncio.get_running_loop()

    installed = install_signal_handlers(queue, on_done=done)
    try:
        assert signal.SIGTERM in installed
        os.kill(os.getpid(), signal.SIGTERM)
        await asyncio.wait_for(done.wait(), timeout=5.0)
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)

    assert not queue.is_running
    assert not queue.sweeper.running
