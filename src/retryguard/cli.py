"""Developer CLI for inspecting configured retry policies."""

from __future__ import annotations

import argparse
import logging as py_logging
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import TextIO

from .config import load_config, resolve_policy
from .engine.backoff import backoff_schedule
from .engine.policy import RetryPolicy
from .errors import ExitCode, RetryGuardError, user_facing_error
from .logging import configure_logging, default_log_path

_VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARN", "ERROR")


def _log_level_type(value: str) -> str:
    normalized = value.upper()
    if normalized == "WARNING":
        normalized = "WARN"
    if normalized not in _VALID_LOG_LEVELS:
        accepted = ", ".join(_VALID_LOG_LEVELS)
        raise argparse.ArgumentTypeError(f"--log-level must be one of: {accepted}")
    return normalized


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="retryguard")
    parser.add_argument("--config", type=Path, default=None)
    parser.add_argument("--policy", default="default")
    parser.add_argument("--list", action="store_true", help="List configured policies and exit")
    parser.add_argument("--log-level", type=_log_level_type, default=None)
    parser.add_argument("--engine-log-level", type=_log_level_type, default=None)
    parser.add_argument("--log-file", type=Path, default=None)
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = build_parser()
    return parser.parse_args(argv)


def format_policy(name: str, policy: RetryPolicy) -> list[str]:
    kinds = ", ".join(sorted(kind.__name__ for kind in policy.non_retryable_kinds)) or "-"
    ceiling = "-" if policy.max_delay is None else f"{policy.max_delay:g}s"
    lines = [
        f"policy: {name}",
        f"max_attempts: {policy.max_attempts}",
        f"initial_delay: {policy.initial_delay:g}s",
        f"multiplier: {policy.multiplier:g}",
        f"max_delay: {ceiling}",
        f"non_retryable: {kinds}",
    ]
    for attempt, delay in enumerate(backoff_schedule(policy), start=1):
        lines.append(f"wait after attempt {attempt}: {delay:g}s")
    return lines


def main(argv: Sequence[str] | None = None, *, out: TextIO | None = None) -> int:
    output = out or sys.stdout
    log_path = default_log_path()
    logger = configure_logging(log_file=log_path)
    parser = build_parser()
    try:
        namespace = parser.parse_args(argv)
    except SystemExit as exc:
        if exc.code not in (None, 0):
            logger.warning("Argument parsing failed with exit code %s", exc.code)
        return int(exc.code or 0)

    if namespace.log_file is not None:
        log_path = namespace.log_file.expanduser()

    try:
        config = load_config(namespace.config)
        logger = configure_logging(
            level=namespace.log_level or config.log_level,
            log_file=log_path,
            engine_level=namespace.engine_log_level or config.engine_log_level,
        )
        if namespace.list:
            for name in sorted(config.policies):
                print(name, file=output)
            return int(ExitCode.SUCCESS)

        logger.debug("Resolving policy %s", namespace.policy)
        policy = resolve_policy(namespace.policy, config)
        print("\n".join(format_policy(namespace.policy, policy)), file=output)
        return int(ExitCode.SUCCESS)
    except RetryGuardError as exc:
        logger.error(
            "Handled RetryGuardError (code=%s): %s",
            int(exc.code),
            exc.message,
            exc_info=logger.isEnabledFor(py_logging.DEBUG),
        )
        print(user_facing_error(exc.message, hint=exc.hint), file=sys.stderr)
        return int(exc.code)
    except Exception:
        logger.exception("Unhandled exception in CLI entrypoint")
        print(
            user_facing_error("Unexpected runtime failure", hint=f"Inspect logs: {log_path}"),
            file=sys.stderr,
        )
        return int(ExitCode.RUNTIME_ERROR)


def run(argv: Sequence[str] | None = None) -> int:
    return main(argv)
