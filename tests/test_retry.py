import random
from datetime import datetime, timedelta, timezone

import pytest

from jobqueue.domain.retry import RetryPolicy


def test_delay_doubles_with_each_attempt():
    policy = RetryPolicy(base_delay=5.0)
    assert [policy.delay_for(n) for n in (1, 2, 3, 4)] == [5.0, 10.0, 20.0, 40.0]


def test_attempts_below_one_use_base_delay():
    policy = RetryPolicy(base_delay=2.0)
    assert policy.delay_for(0) == 2.0
    assert policy.delay_for(-3) == 2.0


def test_max_delay_caps_backoff():
    policy = RetryPolicy(base_delay=1.0, max_delay=5.0)
    assert policy.delay_for(3) == 4.0
    assert policy.delay_for(4) == 5.0
    assert policy.delay_for(50) == 5.0


def test_huge_attempt_counts_do_not_overflow():
    policy = RetryPolicy(base_delay=1.0)
    assert policy.delay_for(10_000) == 2.0 ** 63


def test_jitter_is_bounded_and_keeps_schedule_increasing():
    policy = RetryPolicy(base_delay=1.0, jitter=True, rng=random.Random(42))
    for attempts in range(1, 10):
        plain = 2 ** (attempts - 1)
        delays = [policy.delay_for(attempts) for _ in range(50)]
        assert all(plain <= d <= plain * 1.1 for d in delays)
        # worst jitter at k never reaches the unjittered delay at k+1
        assert max(delays) < 2 ** attempts


def test_next_run_is_relative_to_now():
    policy = RetryPolicy(base_delay=3.0)
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert policy.next_run(2, now) == now + timedelta(seconds=6)


@pytest.mark.parametrize(
    "attempts,max_retries,expected",
    [(0, 3, True), (2, 3, True), (3, 3, False), (0, 0, False)],
)
def test_should_retry_until_budget_is_spent(attempts, max_retries, expected):
    assert RetryPolicy().should_retry(attempts, max_retries) is expected


def test_negative_base_delay_is_rejected():
    with pytest.raises(ValueError):
        RetryPolicy(base_delay=-1)
