"""Failure records derived from raised exceptions."""

from __future__ import annotations

from dataclasses import dataclass


def cause_chain(exc: BaseException) -> tuple[type[BaseException], ...]:
    """Return the kinds of the exceptions that led to ``exc``, nearest first.

    Explicit causes (``raise ... from``) win over implicit context, and a
    suppressed context is not followed. Cycles stop the walk.
    """
    kinds: list[type[BaseException]] = []
    seen = {id(exc)}
    current: BaseException | None = exc
    while current is not None:
        if current.__cause__ is not None:
            nxt: BaseException | None = current.__cause__
        elif not current.__suppress_context__:
            nxt = current.__context__
        else:
            nxt = None
        if nxt is None or id(nxt) in seen:
            break
        seen.add(id(nxt))
        kinds.append(type(nxt))
        current = nxt
    return tuple(kinds)


@dataclass(frozen=True)
class FailureRecord:
    kind: type[BaseException]
    message: str
    cause_chain: tuple[type[BaseException], ...] = ()
    exception: BaseException | None = None

    @classmethod
    def from_exception(cls, exc: BaseException) -> FailureRecord:
        return cls(
            kind=type(exc),
            message=str(exc),
            cause_chain=cause_chain(exc),
            exception=exc,
        )

    @property
    def kinds(self) -> tuple[type[BaseException], ...]:
        return (self.kind, *self.cause_chain)


def as_failure(failure: FailureRecord | BaseException) -> FailureRecord:
    if isinstance(failure, FailureRecord):
        return failure
    return FailureRecord.from_exception(failure)
