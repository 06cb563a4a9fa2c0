"""Backoff delay calculation."""

from __future__ import annotations

import math
import threading

from retryguard.engine.policy import RetryPolicy

# Longest wait time.sleep and Event.wait accept on this platform.
WAIT_LIMIT: float = threading.TIMEOUT_MAX


def compute_delay(attempt_number: int, policy: RetryPolicy) -> float:
    attempt = max(1, attempt_number)
    if policy.initial_delay == 0.0 or policy.multiplier == 1.0:
        delay = policy.initial_delay
    else:
        try:
            delay = policy.initial_delay * math.pow(policy.multiplier, attempt - 1)
        except OverflowError:
            delay = math.inf
    ceiling = WAIT_LIMIT if policy.max_delay is None else min(policy.max_delay, WAIT_LIMIT)
    return min(delay, ceiling)


def backoff_schedule(policy: RetryPolicy) -> list[float]:
    """Waits slept by an invocation that fails on every attempt."""
    return [compute_delay(attempt, policy) for attempt in range(1, policy.max_attempts)]
