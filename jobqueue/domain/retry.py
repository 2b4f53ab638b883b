import random
from datetime import datetime, timedelta
from typing import Optional

class RetryPolicy:
    """
    Exponential backoff for failed jobs.

    Formula:
        delay = base * 2 ^ (attempts - 1)
        if max_delay: delay = min(delay, max_delay)
        if jitter:
            delay = delay + random_uniform(0, 0.1 * delay)

    `attempts` is the attempt count *after* the failure has been counted, so
    attempts=1 means "we failed once, when should we try again?". Jitter is
    bounded to 10% so a later retry is never scheduled sooner than an earlier
    one would have been.
    """

    def __init__(
        self,
        base_delay: float = 5.0,
        max_delay: Optional[float] = None,
        jitter: bool = False,
        rng: Optional[random.Random] = None,
    ):
        if base_delay < 0:
            raise ValueError("base_delay must be >= 0")
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.jitter = jitter
        self._rng = rng or random.Random()

    def delay_for(self, attempts: int) -> float:
        if attempts < 1:
            attempts = 1

        # 2^63 seconds is far beyond any sensible cap; avoid float overflow.
        safe_exponent = min(attempts - 1, 63)
        delay = self.base_delay * (2 ** safe_exponent)

        if self.max_delay is not None and delay > self.max_delay:
            delay = self.max_delay

        if self.jitter:
            delay += self._rng.uniform(0, delay * 0.1)

        return delay

    def next_run(self, attempts: int, now: datetime) -> datetime:
        return now + timedelta(seconds=self.delay_for(attempts))

    def should_retry(self, attempts: int, max_retries: int) -> bool:
        return attempts < max_retries
