"""Retry eligibility rules."""

from __future__ import annotations

from collections.abc import Iterable

from retryguard.engine.failures import FailureRecord, as_failure
from retryguard.engine.policy import RetryPolicy


def matches_kind(
    failure: FailureRecord | BaseException,
    kinds: Iterable[type[BaseException]],
) -> bool:
    candidates = tuple(kinds)
    if not candidates:
        return False
    record = as_failure(failure)
    return any(issubclass(kind, candidates) for kind in record.kinds)


def is_retryable(
    failure: FailureRecord | BaseException,
    policy: RetryPolicy,
    attempt_number: int,
) -> bool:
    if attempt_number >= policy.max_attempts:
        return False
    if matches_kind(failure, policy.non_retryable_kinds):
        return False
    return True
