"""Async execution paths, driven with asyncio.run."""

from __future__ import annotations

import asyncio

import pytest

from retryguard.engine.executor import RetryExecutor
from retryguard.engine.policy import RetryPolicy
from retryguard.engine.recovery import RecoveryHandler, RecoveryRegistry
from retryguard.errors import NoRecoveryMatch


def _async_executor(operation, policy: RetryPolicy, handlers, waits: list[float]) -> RetryExecutor:
    async def record_sleep(delay: float) -> None:
        waits.append(delay)

    return RetryExecutor(operation, policy, RecoveryRegistry(handlers), async_sleep=record_sleep)


def test_async_operation_retries_then_succeeds() -> None:
    attempts = {"count": 0}
    waits: list[float] = []

    async def operation(value: int) -> int:
        attempts["count"] += 1
        if attempts["count"] < 3:
            raise ConnectionError("reset")
        return value + 1

    executor = _async_executor(operation, RetryPolicy(max_attempts=4, initial_delay=0.5), [], waits)

    assert asyncio.run(executor.run_async(41)) == 42
    assert waits == pytest.approx([0.5, 1.0])


def test_async_recovery_handler_is_awaited() -> None:
    async def operation(name: str) -> str:
        raise TimeoutError(name)

    async def fallback(exc: Exception, name: str) -> str:
        return f"cached:{name}"

    executor = _async_executor(
        operation,
        RetryPolicy(max_attempts=2, initial_delay=0.0),
        [RecoveryHandler(fallback, parameter_shape=(str,))],
        [],
    )

    assert asyncio.run(executor.run_async("user")) == "cached:user"


def test_async_sync_operation_is_supported() -> None:
    def operation() -> None:
        raise ValueError("bad")

    executor = _async_executor(
        operation,
        RetryPolicy(max_attempts=1),
        [RecoveryHandler(lambda: "sync fallback")],
        [],
    )

    assert asyncio.run(executor.run_async()) == "sync fallback"


def test_async_no_match_surfaces_to_caller() -> None:
    async def operation() -> None:
        raise TimeoutError("slow")

    executor = _async_executor(operation, RetryPolicy(max_attempts=1), [], [])

    with pytest.raises(NoRecoveryMatch):
        asyncio.run(executor.run_async())


def test_task_cancellation_during_backoff_aborts_invocation() -> None:
    calls: list[int] = []
    recovered: list[bool] = []

    async def operation() -> None:
        calls.append(1)
        raise TimeoutError("slow")

    executor = RetryExecutor(
        operation,
        RetryPolicy(max_attempts=5, initial_delay=60.0),
        RecoveryRegistry([RecoveryHandler(lambda: recovered.append(True))]),
    )

    async def scenario() -> None:
        task = asyncio.create_task(executor.run_async())
        while not calls:
            await asyncio.sleep(0)
        await asyncio.sleep(0)
        task.cancel()
        await task

    with pytest.raises(asyncio.CancelledError):
        asyncio.run(scenario())

    assert calls == [1]
    assert recovered == []


def test_async_recovery_finishes_before_done_is_reported() -> None:
    events: list[str] = []

    async def operation() -> None:
        raise TimeoutError("slow")

    async def fallback() -> str:
        await asyncio.sleep(0)
        events.append("handler")
        raise LookupError("cache miss")

    executor = RetryExecutor(
        operation,
        RetryPolicy(max_attempts=1),
        RecoveryRegistry([RecoveryHandler(fallback)]),
        observer=lambda context: events.append(context.state.value),
    )

    with pytest.raises(LookupError):
        asyncio.run(executor.run_async())

    assert events == ["attempting", "recovering", "handler", "done"]
