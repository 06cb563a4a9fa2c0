"""Retry executor: attempts, backoff waits and recovery hand-off."""

from __future__ import annotations

import asyncio
import inspect
import logging as py_logging
import threading
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from retryguard.engine.backoff import compute_delay
from retryguard.engine.classifier import is_retryable
from retryguard.engine.failures import FailureRecord
from retryguard.engine.policy import RetryPolicy
from retryguard.engine.recovery import RecoveryRegistry
from retryguard.errors import InvocationCancelled

logger = py_logging.getLogger(__name__)


class ExecutionState(str, Enum):
    IDLE = "idle"
    ATTEMPTING = "attempting"
    SUCCEEDED = "succeeded"
    AWAITING_BACKOFF = "awaiting_backoff"
    RECOVERING = "recovering"
    DONE = "done"


@dataclass
class AttemptContext:
    original_args: tuple[object, ...]
    attempt_number: int = 1
    last_failure: FailureRecord | None = None
    state: ExecutionState = ExecutionState.IDLE
    waits: list[float] = field(default_factory=list)


Observer = Callable[[AttemptContext], None]


class CancelToken:
    """Cooperative cancellation signal checked during backoff waits."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float) -> bool:
        return self._event.wait(timeout)


class RetryExecutor:
    """Runs one wrapped operation under a policy and a recovery registry.

    Each ``run``/``run_async`` call owns a fresh ``AttemptContext``; the
    executor itself keeps no per-invocation state, so one instance may be
    shared by concurrent callers.
    """

    def __init__(
        self,
        operation: Callable[..., Any],
        policy: RetryPolicy,
        registry: RecoveryRegistry,
        *,
        name: str = "",
        sleep: Callable[[float], None] = time.sleep,
        async_sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        observer: Observer | None = None,
    ) -> None:
        self.operation = operation
        self.policy = policy
        self.registry = registry
        self.name = name or getattr(operation, "__name__", "operation")
        self._sleep = sleep
        self._async_sleep = async_sleep
        self._observer = observer

    def __call__(self, *args: object) -> Any:
        return self.run(*args)

    def _transition(self, context: AttemptContext, state: ExecutionState) -> None:
        context.state = state
        if self._observer is not None:
            self._observer(context)

    def _start(self, args: Sequence[object]) -> AttemptContext:
        context = AttemptContext(original_args=tuple(args))
        self._transition(context, ExecutionState.ATTEMPTING)
        return context

    def _on_failure(self, context: AttemptContext, exc: Exception) -> float | None:
        """Record a failed attempt and return the wait before the next one, or None to recover."""
        record = FailureRecord.from_exception(exc)
        context.last_failure = record
        if not is_retryable(record, self.policy, context.attempt_number):
            logger.debug(
                "Attempt %s/%s of %s not retryable kind=%s",
                context.attempt_number,
                self.policy.max_attempts,
                self.name,
                record.kind.__name__,
            )
            self._transition(context, ExecutionState.RECOVERING)
            return None
        delay = compute_delay(context.attempt_number, self.policy)
        logger.debug(
            "Attempt %s/%s of %s failed kind=%s; retrying in %.3fs",
            context.attempt_number,
            self.policy.max_attempts,
            self.name,
            record.kind.__name__,
            delay,
        )
        self._transition(context, ExecutionState.AWAITING_BACKOFF)
        return delay

    def _next_attempt(self, context: AttemptContext, delay: float) -> None:
        context.waits.append(delay)
        context.attempt_number += 1
        self._transition(context, ExecutionState.ATTEMPTING)

    def _succeeded(self, context: AttemptContext) -> None:
        self._transition(context, ExecutionState.SUCCEEDED)
        if context.attempt_number > 1:
            logger.debug("%s succeeded on attempt %s", self.name, context.attempt_number)
        self._transition(context, ExecutionState.DONE)

    def _cancelled(self, context: AttemptContext) -> InvocationCancelled:
        self._transition(context, ExecutionState.DONE)
        return InvocationCancelled(
            f"Invocation of {self.name} cancelled during backoff",
            hint="Cancellation stops further attempts; no recovery is dispatched.",
            attempts=context.attempt_number,
        )

    def _dispatch(self, context: AttemptContext) -> Any:
        if context.last_failure is None:
            raise RuntimeError("Recovery requested without a recorded failure.")
        return self.registry.dispatch(context.last_failure, context.original_args)

    def _recover(self, context: AttemptContext) -> Any:
        try:
            return self._dispatch(context)
        finally:
            self._transition(context, ExecutionState.DONE)

    async def _recover_async(self, context: AttemptContext) -> Any:
        try:
            recovered = self._dispatch(context)
            if inspect.isawaitable(recovered):
                recovered = await recovered
            return recovered
        finally:
            self._transition(context, ExecutionState.DONE)

    def run(self, *args: object, cancel: CancelToken | None = None) -> Any:
        context = self._start(args)
        while True:
            try:
                result = self.operation(*context.original_args)
            except Exception as exc:
                delay = self._on_failure(context, exc)
                if delay is None:
                    return self._recover(context)
                if cancel is None:
                    self._sleep(delay)
                elif cancel.wait(delay):
                    raise self._cancelled(context) from exc
                self._next_attempt(context, delay)
                continue
            self._succeeded(context)
            return result

    async def run_async(self, *args: object) -> Any:
        context = self._start(args)
        while True:
            try:
                result = self.operation(*context.original_args)
                if inspect.isawaitable(result):
                    result = await result
            except Exception as exc:
                delay = self._on_failure(context, exc)
                if delay is None:
                    return await self._recover_async(context)
                await self._async_sleep(delay)
                self._next_attempt(context, delay)
                continue
            self._succeeded(context)
            return result
