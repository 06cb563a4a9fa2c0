"""Named registration of retry-wrapped operations."""

from __future__ import annotations

import logging as py_logging
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any

from retryguard.engine.executor import RetryExecutor
from retryguard.engine.policy import RetryPolicy
from retryguard.engine.recovery import RecoveryHandler, RecoveryRegistry
from retryguard.errors import RecoveryConfigError

if TYPE_CHECKING:
    from retryguard.config import EngineConfig

logger = py_logging.getLogger(__name__)


class RetryEngine:
    """Setup-time catalog binding operations to a policy and recovery handlers."""

    def __init__(self, config: EngineConfig | None = None) -> None:
        from retryguard.config import EngineConfig

        self.config = config if config is not None else EngineConfig()
        self._wrappers: dict[str, RetryExecutor] = {}

    def register(
        self,
        name: str,
        operation: Callable[..., Any],
        policy: RetryPolicy | str,
        handlers: Iterable[RecoveryHandler] = (),
        *,
        recover: str | None = None,
        **executor_options: Any,
    ) -> RetryExecutor:
        key = name.strip()
        if not key:
            raise RecoveryConfigError(
                "Operation name must not be empty.",
                hint="Pass a stable, unique name when registering.",
            )
        if key in self._wrappers:
            raise RecoveryConfigError(
                f"Operation already registered: {key}",
                hint="Use a unique name per wrapped operation.",
            )
        if isinstance(policy, str):
            from retryguard.config import resolve_policy

            resolved = resolve_policy(policy, self.config)
        else:
            resolved = policy
        registry = RecoveryRegistry(handlers, recover=recover)
        wrapper = RetryExecutor(operation, resolved, registry, name=key, **executor_options)
        self._wrappers[key] = wrapper
        logger.debug(
            "Registered operation=%s max_attempts=%s handlers=%s",
            key,
            resolved.max_attempts,
            len(registry.handlers),
        )
        return wrapper

    def get(self, name: str) -> RetryExecutor:
        try:
            return self._wrappers[name]
        except KeyError as exc:
            raise RecoveryConfigError(
                f"Unknown operation: {name}",
                hint=f"Registered operations: {', '.join(self.names()) or 'none'}.",
            ) from exc

    def names(self) -> list[str]:
        return sorted(self._wrappers)

    def run(self, name: str, *args: object) -> Any:
        return self.get(name).run(*args)
