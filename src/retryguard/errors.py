"""Deterministic error model and exit code contract."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum


class ExitCode(IntEnum):
    SUCCESS = 0
    INVALID_ARGS = 2
    CONFIG_ERROR = 3
    RUNTIME_ERROR = 4
    NO_RECOVERY = 5
    AMBIGUOUS_RECOVERY = 6
    CANCELLED = 7


@dataclass(eq=False)
class RetryGuardError(Exception):
    message: str
    code: ExitCode = ExitCode.RUNTIME_ERROR
    hint: str = ""

    def __str__(self) -> str:
        if self.hint:
            return f"{self.message} Hint: {self.hint}"
        return self.message


class OperationFailure(Exception):
    """Convenience base for failures raised by wrapped operations."""


@dataclass(eq=False)
class NoRecoveryMatch(RetryGuardError):
    code: ExitCode = ExitCode.NO_RECOVERY
    failure: BaseException | None = None


@dataclass(eq=False)
class AmbiguousRecoveryMatch(RetryGuardError):
    code: ExitCode = ExitCode.AMBIGUOUS_RECOVERY
    candidates: tuple[str, ...] = field(default_factory=tuple)


@dataclass(eq=False)
class RecoveryConfigError(RetryGuardError):
    code: ExitCode = ExitCode.CONFIG_ERROR


@dataclass(eq=False)
class InvocationCancelled(RetryGuardError):
    code: ExitCode = ExitCode.CANCELLED
    attempts: int = 0


def user_facing_error(message: str, *, hint: str = "") -> str:
    if hint:
        return f"Error: {message}. Next step: {hint}"
    return f"Error: {message}."
