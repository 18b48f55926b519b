from __future__ import annotations

import random

import pytest

from fs_group_import.retry import ErrorClass, RetryDecision, RetryPolicy, classify_status


@pytest.mark.parametrize(
    ("status_code", "expected"),
    [
        (None, ErrorClass.TRANSIENT),
        (429, ErrorClass.TRANSIENT),
        (500, ErrorClass.TRANSIENT),
        (503, ErrorClass.TRANSIENT),
        (599, ErrorClass.TRANSIENT),
        (400, ErrorClass.PERMANENT),
        (401, ErrorClass.PERMANENT),
        (404, ErrorClass.PERMANENT),
        (409, ErrorClass.PERMANENT),
    ],
)
def test_classify_status(status_code: int | None, expected: ErrorClass) -> None:
    assert classify_status(status_code) is expected


def test_permanent_errors_are_never_retried() -> None:
    policy = RetryPolicy(max_attempts=5)

    assert policy.decide(1, ErrorClass.PERMANENT) == RetryDecision(should_retry=False)


def test_transient_errors_back_off_exponentially() -> None:
    policy = RetryPolicy(max_attempts=5, base_delay=1.0, jitter=0)

    delays = [policy.decide(attempt, ErrorClass.TRANSIENT).delay for attempt in (1, 2, 3, 4)]

    assert delays == [1.0, 2.0, 4.0, 8.0]


def test_attempts_stop_at_max_attempts() -> None:
    policy = RetryPolicy(max_attempts=3, jitter=0)

    assert policy.decide(2, ErrorClass.TRANSIENT).should_retry
    assert not policy.decide(3, ErrorClass.TRANSIENT).should_retry
    assert not policy.decide(4, ErrorClass.TRANSIENT).should_retry


def test_delay_is_capped_and_jittered() -> None:
    policy = RetryPolicy(
        max_attempts=20, base_delay=1.0, max_delay=10.0, jitter=0.5, rng=random.Random(7)
    )

    for attempt in range(1, 15):
        delay = policy.decide(attempt, ErrorClass.TRANSIENT).delay
        floor = min(2 ** (attempt - 1), 10.0)
        assert floor <= delay <= floor + 0.5


def test_single_attempt_policy_never_retries() -> None:
    assert not RetryPolicy(max_attempts=1).decide(1, ErrorClass.TRANSIENT).should_retry


def test_max_attempts_must_be_positive() -> None:
    with pytest.raises(ValueError):
        RetryPolicy(max_attempts=0)
