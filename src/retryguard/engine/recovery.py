"""Recovery handler descriptors and signature-based dispatch.

A registry holds an ordered, immutable tuple of handlers. Selection filters
by failure kind, then by parameter shape against the original call
arguments, and finally prefers the longest matching shape. Two survivors of
equal shape length are a configuration defect and raise
``AmbiguousRecoveryMatch`` instead of picking one.
"""

from __future__ import annotations

import logging as py_logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from retryguard.engine.classifier import matches_kind
from retryguard.engine.failures import FailureRecord, as_failure
from retryguard.errors import AmbiguousRecoveryMatch, NoRecoveryMatch, RecoveryConfigError

logger = py_logging.getLogger(__name__)


def _fits_slot(arg: object, expected: type) -> bool:
    # bool subclasses int, but a flag is not a count.
    if isinstance(arg, bool) and expected is int:
        return False
    return isinstance(arg, expected)


@dataclass(frozen=True)
class RecoveryHandler:
    invoke: Callable[..., Any]
    accepted_kinds: frozenset[type[BaseException]] = field(default_factory=frozenset)
    parameter_shape: tuple[type, ...] = ()
    name: str = ""

    def __post_init__(self) -> None:
        # Accept any iterable from callers.
        object.__setattr__(self, "accepted_kinds", frozenset(self.accepted_kinds))
        object.__setattr__(self, "parameter_shape", tuple(self.parameter_shape))
        if not self.name:
            object.__setattr__(self, "name", getattr(self.invoke, "__name__", repr(self.invoke)))

    @property
    def specificity(self) -> int:
        return len(self.parameter_shape)

    def accepts(self, failure: FailureRecord) -> bool:
        if not self.accepted_kinds:
            return True
        return matches_kind(failure, self.accepted_kinds)

    def fits(self, args: Sequence[object]) -> bool:
        if not self.parameter_shape:
            return True
        if len(self.parameter_shape) != len(args):
            return False
        return all(_fits_slot(arg, expected) for arg, expected in zip(args, self.parameter_shape))

    def call(self, exc: BaseException | None, args: Sequence[object]) -> Any:
        if not self.parameter_shape:
            return self.invoke()
        return self.invoke(exc, *args)


def recovery_handler(
    *,
    accepts: Iterable[type[BaseException]] = (),
    shape: Iterable[type] = (),
    name: str = "",
) -> Callable[[Callable[..., Any]], RecoveryHandler]:
    """Build a ``RecoveryHandler`` from a function definition."""

    def decorator(func: Callable[..., Any]) -> RecoveryHandler:
        return RecoveryHandler(
            invoke=func,
            accepted_kinds=frozenset(accepts),
            parameter_shape=tuple(shape),
            name=name,
        )

    return decorator


class RecoveryRegistry:
    def __init__(self, handlers: Iterable[RecoveryHandler] = (), *, recover: str | None = None) -> None:
        self._handlers: tuple[RecoveryHandler, ...] = tuple(handlers)
        self.recover = recover
        if recover is not None and not any(item.name == recover for item in self._handlers):
            raise RecoveryConfigError(
                f"Pinned recovery handler not registered: {recover}",
                hint="Register a handler with that name or drop the recover option.",
            )

    @property
    def handlers(self) -> tuple[RecoveryHandler, ...]:
        return self._handlers

    def _candidates(self) -> tuple[RecoveryHandler, ...]:
        if self.recover is None:
            return self._handlers
        return tuple(item for item in self._handlers if item.name == self.recover)

    def select(self, failure: FailureRecord | BaseException, original_args: Sequence[object]) -> RecoveryHandler:
        record = as_failure(failure)
        args = tuple(original_args)
        survivors = [
            item for item in self._candidates() if item.accepts(record) and item.fits(args)
        ]
        if not survivors:
            raise NoRecoveryMatch(
                f"No recovery handler accepts {record.kind.__name__}",
                hint="Register a handler for this failure kind and argument shape.",
                failure=record.exception,
            ) from record.exception

        best = max(item.specificity for item in survivors)
        finalists = [item for item in survivors if item.specificity == best]
        if len(finalists) > 1:
            names = tuple(item.name for item in finalists)
            raise AmbiguousRecoveryMatch(
                f"Ambiguous recovery for {record.kind.__name__}: {', '.join(names)}",
                hint="Give one handler a more specific parameter shape or pin it with recover=.",
                candidates=names,
            ) from record.exception

        selected = finalists[0]
        logger.debug(
            "Selected recovery handler=%s kind=%s shape_len=%s",
            selected.name,
            record.kind.__name__,
            selected.specificity,
        )
        return selected

    def dispatch(self, failure: FailureRecord | BaseException, original_args: Sequence[object]) -> Any:
        record = as_failure(failure)
        args = tuple(original_args)
        handler = self.select(record, args)
        return handler.call(record.exception, args)
