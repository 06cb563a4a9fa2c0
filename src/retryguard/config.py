"""TOML policy catalog loading."""

from __future__ import annotations

import importlib
import logging as py_logging
import os
import sys
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

if sys.version_info >= (3, 11):
    import tomllib
else:  # pragma: no cover
    import tomli as tomllib

from retryguard.engine.policy import BUILTIN_POLICIES, RetryPolicy
from retryguard.errors import RecoveryConfigError

logger = py_logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("~/.config/retryguard/config.toml").expanduser()
CONFIG_PATH_ENV = "RETRYGUARD_CONFIG"
DEFAULT_LOG_LEVEL: Literal["DEBUG", "INFO", "WARN", "ERROR"] = "INFO"

_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARN", "ERROR"}


class PolicySettings(BaseModel):
    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    max_attempts: int = Field(default=3, ge=1)
    initial_delay: float = Field(default=1.0, ge=0.0)
    multiplier: float = Field(default=2.0, ge=1.0)
    max_delay: float | None = Field(default=None, ge=0.0)
    non_retryable: list[str] = Field(default_factory=list)

    @field_validator("non_retryable")
    @classmethod
    def _normalize_kind_names(cls, value: list[str]) -> list[str]:
        names: list[str] = []
        for item in value:
            name = item.strip()
            if name and name not in names:
                names.append(name)
        return names

    @model_validator(mode="after")
    def _validate_ceiling(self) -> PolicySettings:
        if self.max_delay is not None and self.max_delay < self.initial_delay:
            raise ValueError("max_delay must be >= initial_delay")
        return self

    @classmethod
    def from_policy(cls, policy: RetryPolicy) -> PolicySettings:
        return cls(
            max_attempts=policy.max_attempts,
            initial_delay=policy.initial_delay,
            multiplier=policy.multiplier,
            max_delay=policy.max_delay,
            non_retryable=sorted(kind_name(kind) for kind in policy.non_retryable_kinds),
        )

    def to_policy(self) -> RetryPolicy:
        kinds = frozenset(resolve_kind(name) for name in self.non_retryable)
        try:
            return RetryPolicy(
                max_attempts=self.max_attempts,
                initial_delay=self.initial_delay,
                multiplier=self.multiplier,
                max_delay=self.max_delay,
                non_retryable_kinds=kinds,
            )
        except ValidationError as exc:
            raise RecoveryConfigError(
                f"Invalid retry policy settings: {exc.error_count()} error(s)",
                hint="Check max_attempts >= 1, multiplier >= 1 and max_delay >= initial_delay.",
            ) from exc


def _builtin_settings() -> dict[str, PolicySettings]:
    return {name: PolicySettings.from_policy(policy) for name, policy in BUILTIN_POLICIES.items()}


class EngineConfig(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    log_level: Literal["DEBUG", "INFO", "WARN", "ERROR"] = DEFAULT_LOG_LEVEL
    engine_log_level: Literal["DEBUG", "INFO", "WARN", "ERROR"] | None = None
    policies: dict[str, PolicySettings] = Field(default_factory=_builtin_settings)


def kind_name(kind: type[BaseException]) -> str:
    if kind.__module__ == "builtins":
        return kind.__qualname__
    return f"{kind.__module__}.{kind.__qualname__}"


def resolve_kind(name: str) -> type[BaseException]:
    """Resolve ``"ValueError"`` or ``"package.module.Error"`` to an exception class."""
    module_name, _, attr = name.rpartition(".")
    try:
        module = importlib.import_module(module_name or "builtins")
    except ImportError as exc:
        raise RecoveryConfigError(
            f"Cannot import module for failure kind: {name}",
            hint="Use a dotted path to an importable exception class.",
        ) from exc
    kind = getattr(module, attr, None)
    if not isinstance(kind, type) or not issubclass(kind, BaseException):
        raise RecoveryConfigError(
            f"Not an exception class: {name}",
            hint="Failure kinds must name exception classes.",
        )
    return kind


def get_config_path(path: str | Path | None = None) -> Path:
    if path is None:
        env_path = os.getenv(CONFIG_PATH_ENV, "").strip()
        if env_path:
            return Path(env_path).expanduser()
        return DEFAULT_CONFIG_PATH
    return Path(path).expanduser()


def _normalize_policies(value: object) -> dict[str, PolicySettings]:
    policies = _builtin_settings()
    if not isinstance(value, dict):
        return policies
    for name, payload in value.items():
        if not isinstance(name, str) or not name.strip() or not isinstance(payload, dict):
            continue
        try:
            policies[name.strip()] = PolicySettings.model_validate(payload)
        except ValidationError as exc:
            logger.warning("Ignoring invalid policy %s: %s", name, exc.errors(include_url=False))
    return policies


def _normalize_level(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    normalized = value.strip().upper()
    if normalized == "WARNING":
        normalized = "WARN"
    return normalized if normalized in _VALID_LOG_LEVELS else None


def _sanitize(raw: dict[str, object]) -> EngineConfig:
    cfg = EngineConfig()

    log_level = _normalize_level(raw.get("log_level"))
    if log_level is not None:
        cfg.log_level = log_level  # type: ignore[assignment]

    engine_log_level = _normalize_level(raw.get("engine_log_level"))
    if engine_log_level is not None:
        cfg.engine_log_level = engine_log_level  # type: ignore[assignment]

    cfg.policies = _normalize_policies(raw.get("policies", {}))
    return cfg


def load_config(path: str | Path | None = None) -> EngineConfig:
    resolved = get_config_path(path)
    if not resolved.exists():
        return EngineConfig()
    try:
        with resolved.open("rb") as handle:
            raw = tomllib.load(handle)
    except (tomllib.TOMLDecodeError, OSError):
        logger.warning("Unreadable config at %s; using defaults", resolved)
        return EngineConfig()
    return _sanitize(raw)


def resolve_policy(name: str, config: EngineConfig | None = None) -> RetryPolicy:
    cfg = config if config is not None else load_config()
    settings = cfg.policies.get(name)
    if settings is None:
        available = ", ".join(sorted(cfg.policies)) or "none"
        raise RecoveryConfigError(
            f"Unknown retry policy: {name}",
            hint=f"Choose one of: {available}.",
        )
    return settings.to_policy()
