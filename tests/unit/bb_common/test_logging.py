"""Tests for logging configuration and env parsing."""

from __future__ import annotations

import logging

import pytest

from bb_common.config.env import parse_bool_env, parse_int_env, parse_level_env
from bb_common.logging import configure_logging


pytestmark = [pytest.mark.unit, pytest.mark.unit_common]


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(None, None), ("1", True), ("Yes", True), ("on", True), ("0", False), ("nope", False)],
)
def test_parse_bool_env(raw, expected) -> None:
    assert parse_bool_env(raw) is expected


def test_parse_int_env_rejects_garbage() -> None:
    assert parse_int_env("42") == 42
    assert parse_int_env("forty") is None
    assert parse_int_env(None) is None


def test_parse_level_env_accepts_names_and_numbers() -> None:
    assert parse_level_env("debug") == logging.DEBUG
    assert parse_level_env("30") == logging.WARNING
    assert parse_level_env(logging.ERROR) == logging.ERROR
    assert parse_level_env("bogus") == logging.INFO
    assert parse_level_env(None, default=logging.WARNING) == logging.WARNING


def test_configure_logging_debug_wins_over_env(monkeypatch, restore_root_logger) -> None:
    monkeypatch.setenv("BB_LOG_LEVEL", "ERROR")
    monkeypatch.delenv("BB_LOG_FILE", raising=False)
    configure_logging(debug=True, force=True)
    assert restore_root_logger.level == logging.DEBUG
    assert len(restore_root_logger.handlers) == 1


def test_configure_logging_env_level_and_file(monkeypatch, tmp_path, restore_root_logger) -> None:
    log_file = tmp_path / "bench.log"
    monkeypatch.setenv("BB_LOG_LEVEL", "warning")
    monkeypatch.setenv("BB_LOG_FILE", str(log_file))
    monkeypatch.setenv("BB_LOG_JSON", "1")
    configure_logging(force=True)

    assert restore_root_logger.level == logging.WARNING
    assert any(isinstance(h, logging.FileHandler) for h in restore_root_logger.handlers)
    logging.getLogger("bb.test").warning("hello file")
    for handler in restore_root_logger.handlers:
        handler.flush()
    assert "hello file" in log_file.read_text()
    for handler in restore_root_logger.handlers:
        if isinstance(handler, logging.FileHandler):
            handler.close()


def test_configure_logging_keeps_existing_handlers_without_force(restore_root_logger) -> None:
    sentinel = logging.NullHandler()
    restore_root_logger.handlers[:] = [sentinel]
    configure_logging()
    assert restore_root_logger.handlers == [sentinel]
