"""Shared test fixtures."""

import asyncio
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
import pytest_asyncio

from jobqueue import JobQueue, Settings


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, start=None):
        self._now = start or datetime(2024, 1, 1, tzinfo=timezone.utc)

    def now(self):
        return self._now

    def advance(self, seconds):
        self._now += timedelta(seconds=seconds)


def fast_settings(**overrides):
    values = dict(
        CONCURRENCY=1,
        IDLE_INTERVAL_SECONDS=0.01,
        ERROR_BACKOFF_SECONDS=0.01,
        STOP_POLL_INTERVAL_SECONDS=0.01,
        RETRY_DELAY_SECONDS=0.01,
        JOB_TIMEOUT_SECONDS=5.0,
        MAX_RETRIES=3,
    )
    values.update(overrides)
    return Settings(**values)


async def wait_until(predicate, timeout=5.0, interval=0.01):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met within %.1fs" % timeout)
        await asyncio.sleep(interval)


@pytest.fixture()
def clock():
    return ManualClock()


@pytest_asyncio.fixture
async def make_queue():
    """Factory for isolated queues; every queue is shut down after the test."""
    queues = []

    def _make(clock=None, **overrides):
        queue = JobQueue(f"test-{uuid4().hex[:8]}", fast_settings(**overrides), clock=clock)
        queues.append(queue)
        return queue

    yield _make

    for queue in queues:
        await queue.shutdown()


@pytest.fixture()
def idle_queue():
    """A queue that is never started; enough for the synchronous surface."""
    return JobQueue(f"idle-{uuid4().hex[:8]}", fast_settings())
