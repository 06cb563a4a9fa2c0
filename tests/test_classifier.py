from __future__ import annotations

from retryguard.engine.classifier import is_retryable, matches_kind
from retryguard.engine.failures import FailureRecord
from retryguard.engine.policy import RetryPolicy


class WrappedError(RuntimeError):
    pass


def _chained() -> WrappedError:
    try:
        try:
            raise ValueError("bad input")
        except ValueError as inner:
            raise WrappedError("wrapped") from inner
    except WrappedError as outer:
        return outer


def test_exhausted_attempts_are_not_retryable() -> None:
    policy = RetryPolicy(max_attempts=3)

    assert is_retryable(TimeoutError("slow"), policy, 2) is True
    assert is_retryable(TimeoutError("slow"), policy, 3) is False
    assert is_retryable(TimeoutError("slow"), policy, 4) is False


def test_non_retryable_kind_short_circuits_on_first_attempt() -> None:
    policy = RetryPolicy(max_attempts=5, non_retryable_kinds={ValueError})

    assert is_retryable(ValueError("bad"), policy, 1) is False


def test_subclass_of_non_retryable_kind_is_not_retryable() -> None:
    policy = RetryPolicy(max_attempts=5, non_retryable_kinds={LookupError})

    assert is_retryable(KeyError("missing"), policy, 1) is False


def test_classifier_sees_through_cause_chain() -> None:
    policy = RetryPolicy(max_attempts=5, non_retryable_kinds={ValueError})

    assert is_retryable(_chained(), policy, 1) is False


def test_unknown_kind_is_retryable_by_default() -> None:
    class SomethingOdd(Exception):
        pass

    policy = RetryPolicy(max_attempts=5, non_retryable_kinds={ValueError})

    assert is_retryable(SomethingOdd(), policy, 1) is True


def test_empty_non_retryable_set_only_stops_on_exhaustion() -> None:
    policy = RetryPolicy(max_attempts=2)

    assert is_retryable(ValueError("bad"), policy, 1) is True
    assert is_retryable(ValueError("bad"), policy, 2) is False


def test_classifier_accepts_failure_records() -> None:
    policy = RetryPolicy(max_attempts=5, non_retryable_kinds={ValueError})
    record = FailureRecord(kind=RuntimeError, message="x", cause_chain=(ValueError,))

    assert is_retryable(record, policy, 1) is False


def test_matches_kind_with_empty_set_is_false() -> None:
    assert matches_kind(ValueError("x"), ()) is False
    assert matches_kind(ValueError("x"), {Exception}) is True
