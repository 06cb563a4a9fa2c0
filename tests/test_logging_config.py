from __future__ import annotations

import io
import logging as py_logging
from collections.abc import Iterator
from pathlib import Path

import pytest

import retryguard.logging as rg_logging
from retryguard.engine.executor import RetryExecutor
from retryguard.engine.policy import RetryPolicy
from retryguard.engine.recovery import RecoveryHandler, RecoveryRegistry


@pytest.fixture(autouse=True)
def _reset_loggers() -> Iterator[None]:
    yield
    rg_logging.configure_logging("INFO")


def _run_failing_operation() -> None:
    def flaky() -> None:
        raise TimeoutError("slow")

    executor = RetryExecutor(
        flaky,
        RetryPolicy(max_attempts=2, initial_delay=0.0),
        RecoveryRegistry([RecoveryHandler(lambda: "fallback")]),
        sleep=lambda _: None,
    )
    executor.run()


def test_resolve_level_accepts_aliases_and_falls_back() -> None:
    assert rg_logging.resolve_level("warning") == py_logging.WARNING
    assert rg_logging.resolve_level(" warn ") == py_logging.WARNING
    assert rg_logging.resolve_level("chatty") == py_logging.INFO
    assert rg_logging.resolve_level(None, default=py_logging.ERROR) == py_logging.ERROR


def test_default_log_path_is_absolute() -> None:
    path = rg_logging.default_log_path()

    assert path.is_absolute()
    assert path.name == "retryguard.log"


def test_engine_trace_hidden_at_info() -> None:
    stream = io.StringIO()
    rg_logging.configure_logging("INFO", stream)

    _run_failing_operation()

    assert stream.getvalue() == ""


def test_engine_trace_visible_with_engine_debug_while_package_stays_info() -> None:
    stream = io.StringIO()
    rg_logging.configure_logging("INFO", stream, engine_level="DEBUG")

    _run_failing_operation()
    py_logging.getLogger("retryguard.config").debug("config detail")

    output = stream.getvalue()
    assert "retrying in 0.000s" in output
    assert "Selected recovery handler=<lambda>" in output
    assert "config detail" not in output


def test_engine_trace_silenced_while_package_debugs() -> None:
    stream = io.StringIO()
    rg_logging.configure_logging("DEBUG", stream, engine_level="WARN")

    _run_failing_operation()
    py_logging.getLogger("retryguard.config").debug("config detail")

    output = stream.getvalue()
    assert "retrying" not in output
    assert "config detail" in output


def test_engine_level_resets_when_omitted() -> None:
    rg_logging.configure_logging("INFO", engine_level="DEBUG")
    rg_logging.configure_logging("INFO")

    assert py_logging.getLogger(rg_logging.ENGINE_LOGGER).level == py_logging.NOTSET


def test_reconfigure_replaces_console_handler() -> None:
    rg_logging.configure_logging("INFO")
    logger = rg_logging.configure_logging("ERROR")

    assert len(logger.handlers) == 1
    assert logger.level == py_logging.ERROR
    assert logger.propagate is False


def test_file_handler_captures_engine_trace(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "retryguard.log"
    logger = rg_logging.configure_logging("ERROR", io.StringIO(), log_file=log_file, engine_level="DEBUG")

    _run_failing_operation()
    for handler in logger.handlers:
        handler.flush()

    assert "not retryable kind=TimeoutError" in log_file.read_text(encoding="utf-8")


def test_unwritable_log_file_keeps_console_only(monkeypatch, tmp_path: Path) -> None:
    def raise_os_error(*args: object, **kwargs: object) -> py_logging.Handler:
        raise OSError("disk full")

    monkeypatch.setattr(rg_logging.py_logging, "FileHandler", raise_os_error)

    logger = rg_logging.configure_logging("INFO", log_file=tmp_path / "nope" / "retryguard.log")

    assert [type(handler) for handler in logger.handlers] == [py_logging.StreamHandler]
