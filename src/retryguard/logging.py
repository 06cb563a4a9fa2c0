"""Logging setup for the retryguard package and its engine trace.

The engine emits attempt/backoff/recovery trace lines at DEBUG under
``retryguard.engine``. ``configure_logging`` lets that trace run at its own
level, so an application can keep ``retryguard`` at INFO while tracing
retries, or silence the trace while debugging everything else.
"""

from __future__ import annotations

import logging as py_logging
import sys
from pathlib import Path
from typing import TextIO

ROOT_LOGGER = "retryguard"
ENGINE_LOGGER = "retryguard.engine"
LOG_LEVELS = {
    "DEBUG": py_logging.DEBUG,
    "INFO": py_logging.INFO,
    "WARN": py_logging.WARNING,
    "WARNING": py_logging.WARNING,
    "ERROR": py_logging.ERROR,
}
DEFAULT_LOG_PATH = Path("~/.config/retryguard/logs/retryguard.log")
_FORMAT = "%(asctime)s %(levelname)s %(name)s:%(lineno)d %(message)s"


def resolve_level(level: str | None, default: int = py_logging.INFO) -> int:
    if not level:
        return default
    return LOG_LEVELS.get(level.strip().upper(), default)


def default_log_path() -> Path:
    try:
        return DEFAULT_LOG_PATH.expanduser().resolve()
    except RuntimeError:
        # No resolvable home directory.
        return (Path.cwd() / ".retryguard" / "logs" / "retryguard.log").resolve()


def _file_handler(log_file: str | Path, formatter: py_logging.Formatter) -> py_logging.Handler | None:
    try:
        log_path = Path(log_file).expanduser().resolve()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = py_logging.FileHandler(log_path, encoding="utf-8")
    except (OSError, RuntimeError):
        return None
    handler.setLevel(py_logging.DEBUG)
    handler.setFormatter(formatter)
    return handler


def configure_logging(
    level: str = "INFO",
    stream: TextIO | None = None,
    *,
    log_file: str | Path | None = None,
    engine_level: str | None = None,
) -> py_logging.Logger:
    """Configure the ``retryguard`` logger tree and return its root.

    ``engine_level`` overrides the level of ``retryguard.engine`` only; when
    omitted the engine inherits ``level``. The console handler passes
    whichever of the two is more verbose, the loggers do the filtering.
    """
    app_level = resolve_level(level)
    engine_logger = py_logging.getLogger(ENGINE_LOGGER)
    if engine_level is None:
        engine_logger.setLevel(py_logging.NOTSET)
        console_level = app_level
    else:
        engine_resolved = resolve_level(engine_level, default=app_level)
        engine_logger.setLevel(engine_resolved)
        console_level = min(app_level, engine_resolved)

    logger = py_logging.getLogger(ROOT_LOGGER)
    logger.setLevel(app_level)
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
        existing.close()
    formatter = py_logging.Formatter(_FORMAT)

    console = py_logging.StreamHandler(stream or sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(formatter)
    logger.addHandler(console)

    if log_file:
        file_handler = _file_handler(log_file, formatter)
        if file_handler is not None:
            logger.addHandler(file_handler)

    logger.propagate = False
    return logger
