"""Retry-with-recovery execution engine."""

from .backoff import backoff_schedule, compute_delay
from .classifier import is_retryable, matches_kind
from .executor import AttemptContext, CancelToken, ExecutionState, RetryExecutor
from .failures import FailureRecord, cause_chain
from .policy import BUILTIN_POLICIES, DEFAULT_POLICY, INTERNAL_POLICY, RetryPolicy
from .recovery import RecoveryHandler, RecoveryRegistry, recovery_handler
from .registry import RetryEngine

__all__ = [
    "AttemptContext",
    "backoff_schedule",
    "BUILTIN_POLICIES",
    "CancelToken",
    "cause_chain",
    "compute_delay",
    "DEFAULT_POLICY",
    "ExecutionState",
    "FailureRecord",
    "INTERNAL_POLICY",
    "is_retryable",
    "matches_kind",
    "recovery_handler",
    "RecoveryHandler",
    "RecoveryRegistry",
    "RetryEngine",
    "RetryExecutor",
    "RetryPolicy",
]
