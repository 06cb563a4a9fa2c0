"""Immutable retry policy values."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class RetryPolicy(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    max_attempts: int = Field(default=3, ge=1)
    initial_delay: float = Field(default=1.0, ge=0.0)
    multiplier: float = Field(default=2.0, ge=1.0)
    non_retryable_kinds: frozenset[type[BaseException]] = Field(default_factory=frozenset)
    max_delay: float | None = Field(default=None, ge=0.0)

    @field_validator("non_retryable_kinds", mode="before")
    @classmethod
    def _coerce_kinds(cls, value: object) -> object:
        if isinstance(value, type):
            return frozenset({value})
        if isinstance(value, (list, tuple, set)):
            return frozenset(value)
        return value

    @model_validator(mode="after")
    def _validate_ceiling(self) -> RetryPolicy:
        if self.max_delay is not None and self.max_delay < self.initial_delay:
            raise ValueError("max_delay must be >= initial_delay")
        return self


DEFAULT_POLICY = RetryPolicy()

# Five attempts, 100ms initial wait, doubling.
INTERNAL_POLICY = RetryPolicy(max_attempts=5, initial_delay=0.1, multiplier=2.0)

BUILTIN_POLICIES: dict[str, RetryPolicy] = {
    "default": DEFAULT_POLICY,
    "internal": INTERNAL_POLICY,
}
