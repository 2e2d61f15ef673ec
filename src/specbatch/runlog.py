"""Run-scoped append-only log file attached to the ``specbatch`` logger."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Final, Iterator, Optional

LOGGER_NAME: Final[str] = "specbatch"
LOG_FORMAT: Final[str] = "%(asctime)s %(levelname)s %(message)s"
DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

__all__ = ["DATE_FORMAT", "LOGGER_NAME", "LOG_FORMAT", "get_run_logger", "run_log"]

logging.getLogger(LOGGER_NAME).addHandler(logging.NullHandler())


def get_run_logger() -> logging.Logger:
    return logging.getLogger(LOGGER_NAME)


@contextmanager
def run_log(path: Optional[Path], level: str = "INFO") -> Iterator[logging.Logger]:
    """
    Attach an appending file handler to the run logger for the duration of a run.

    A *path* of ``None`` yields the logger untouched. The handler is removed and
    closed on exit even when the run raises.
    """

    logger = get_run_logger()
    if path is None:
        yield logger
        return

    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, mode="a", encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    resolved_level = logging.getLevelName(level.upper())
    handler.setLevel(resolved_level if isinstance(resolved_level, int) else logging.INFO)

    previous_level = logger.level
    if logger.level == logging.NOTSET or logger.level > handler.level:
        logger.setLevel(handler.level)
    logger.addHandler(handler)
    try:
        yield logger
    finally:
        logger.removeHandler(handler)
        handler.close()
        logger.setLevel(previous_level)
