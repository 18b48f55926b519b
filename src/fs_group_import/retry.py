"""Retry policy for create-group requests.

Transient failures (HTTP 429, any 5xx, transport errors) back off
exponentially with jitter: 1s, 2s, 4s, ... capped at ``max_delay``, plus
0-``jitter`` seconds. Everything else fails immediately.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from enum import StrEnum


class ErrorClass(StrEnum):
    TRANSIENT = "transient"
    PERMANENT = "permanent"


def classify_status(status_code: int | None) -> ErrorClass:
    """Classify a failed request. ``None`` means no HTTP response was received."""
    if status_code is None or status_code == 429 or 500 <= status_code <= 599:
        return ErrorClass.TRANSIENT
    return ErrorClass.PERMANENT


@dataclass(frozen=True)
class RetryDecision:
    should_retry: bool
    delay: float = 0.0


@dataclass(frozen=True)
class RetryPolicy:
    """Decides whether a failed attempt is retried and how long to wait."""

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    jitter: float = 1.0
    rng: random.Random = field(default_factory=random.Random, compare=False, repr=False)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    def backoff(self, attempt: int) -> float:
        """Delay after the given 1-based failed attempt."""
        delay = min(self.base_delay * 2 ** (attempt - 1), self.max_delay)
        if self.jitter > 0:
            delay += self.rng.uniform(0, self.jitter)
        return delay

    def decide(self, attempt: int, error_class: ErrorClass) -> RetryDecision:
        """Decide what to do after failed attempt number *attempt* (1-based)."""
        if error_class is ErrorClass.PERMANENT or attempt >= self.max_attempts:
            return RetryDecision(should_retry=False)
        return RetryDecision(should_retry=True, delay=self.backoff(attempt))
