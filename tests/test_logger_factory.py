from __future__ import annotations

import logging
from pathlib import Path

import pytest

from adhan.logging_utils import LoggerFactory


def test_logger_factory_writes_to_rotating_file(tmp_path: Path) -> None:
    log_path = tmp_path / "logs" / "adhan.log"
    logger = LoggerFactory.create("adhan_test_file", log_file=log_path)
    logging.getLogger("adhan_test_file.PrayerTimeService").info("hello log")

    for handler in logger.handlers:
        handler.flush()

    assert log_path.exists()
    assert "hello log" in log_path.read_text(encoding="utf-8")
    assert "adhan_test_file.PrayerTimeService" in log_path.read_text(encoding="utf-8")


def test_logger_factory_is_idempotent() -> None:
    first = LoggerFactory.create("adhan_test_idempotent")
    second = LoggerFactory.create("adhan_test_idempotent")

    assert first is second
    assert len(second.handlers) == 1


def test_repeated_create_adjusts_level_only() -> None:
    logger = LoggerFactory.create("adhan_test_level", level="warning")
    assert logger.level == logging.WARNING

    LoggerFactory.create("adhan_test_level", level=logging.DEBUG)

    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 1


def test_unknown_level_name_is_rejected() -> None:
    with pytest.raises(ValueError, match="chatty"):
        LoggerFactory.resolve_level("chatty")


def test_captured_library_warnings_reach_log_file(tmp_path: Path) -> None:
    log_path = tmp_path / "player.log"
    logger = LoggerFactory.create(
        "adhan_test_capture", log_file=log_path, capture=("adhan_test_capture_lib",)
    )
    library = logging.getLogger("adhan_test_capture_lib.executors")
    library.info("job started")
    library.error("job raised")

    for handler in logger.handlers:
        handler.flush()

    text = log_path.read_text(encoding="utf-8")
    assert "job raised" in text
    assert "job started" not in text
