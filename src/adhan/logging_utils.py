from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Iterable, List, Optional, Union

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"
LEVEL_NAMES = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

Level = Union[int, str]


class LoggerFactory:
    @staticmethod
    def resolve_level(level: Level) -> int:
        if isinstance(level, int):
            return level
        name = str(level).strip().upper()
        if name not in LEVEL_NAMES:
            raise ValueError(f"Unknown log level {level!r}; expected one of {LEVEL_NAMES}")
        return getattr(logging, name)

    @staticmethod
    def create(
        name: str,
        log_file: Optional[Union[str, Path]] = None,
        level: Level = logging.INFO,
        capture: Iterable[str] = (),
    ) -> logging.Logger:
        """Configure the application logger once and return it.

        Components log to ``<name>.<ClassName>`` children, so handlers live on
        ``name`` only. Loggers named in ``capture`` (third-party libraries such
        as ``apscheduler``) share the same handlers for warnings and above.
        A second call only adjusts the level.
        """
        logger = logging.getLogger(name)
        resolved = LoggerFactory.resolve_level(level)
        if logger.handlers:
            logger.setLevel(resolved)
            return logger

        logger.setLevel(resolved)
        handlers = LoggerFactory._handlers(log_file)
        for handler in handlers:
            logger.addHandler(handler)

        for library in capture:
            library_logger = logging.getLogger(library)
            library_logger.setLevel(max(resolved, logging.WARNING))
            library_logger.propagate = False
            for handler in handlers:
                library_logger.addHandler(handler)

        return logger

    @staticmethod
    def _handlers(log_file: Optional[Union[str, Path]]) -> List[logging.Handler]:
        formatter = logging.Formatter(LOG_FORMAT)
        # stdout carries the timetable and playback progress; logs go to stderr.
        handlers: List[logging.Handler] = [logging.StreamHandler()]
        if log_file is not None:
            log_path = Path(log_file).expanduser()
            log_path.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(
                RotatingFileHandler(log_path, maxBytes=1_000_000, backupCount=3)
            )
        for handler in handlers:
            handler.setFormatter(formatter)
        return handlers
