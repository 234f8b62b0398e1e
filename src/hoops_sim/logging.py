"""Loguru setup for the season engine.

Modules log through ``get_logger(__name__)``; nothing is written anywhere until
``setup_logging`` installs the sinks. Level and directory default to
``Settings.log_level`` / ``Settings.log_dir`` (``LOG_LEVEL`` / ``LOG_DIR``).

Example:
    >>> from hoops_sim.logging import setup_logging, get_logger
    >>> setup_logging(level="DEBUG")
    >>> logger = get_logger(__name__)
    >>> logger.info("Generated {} games", 810)
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any

from loguru import logger

from .config import get_settings

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[name]}:{function}:{line} | {message}"
LOG_FILE_PATTERN = "season_{time:YYYY-MM-DD}.log"


class InterceptHandler(logging.Handler):
    """Send stdlib logging records (pydantic, third-party code) to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Walk out of the logging module so loguru reports the real caller.
        frame, depth = sys._getframe(6), 6
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).bind(name=record.name).log(level, record.getMessage())


def setup_logging(
    level: str | None = None,
    log_dir: str | Path | None = None,
    rotation: str = "1 day",
    retention: str = "30 days",
    serialize: bool = False,
) -> Path:
    """Install a console sink and a rotating per-day file sink.

    Args:
        level: Minimum level; defaults to ``Settings.log_level``.
        log_dir: Directory for log files; defaults to ``Settings.log_dir``.
        rotation: When to rotate log files (e.g., "1 day", "100 MB").
        retention: How long to keep old log files.
        serialize: Write JSON lines instead of the plain text format.

    Returns:
        The directory the file sink writes to.
    """
    settings = get_settings()
    level = (level or settings.log_level).upper()
    log_path = Path(log_dir if log_dir is not None else settings.log_dir)

    logger.remove()
    logger.configure(extra={"name": "hoops_sim"})
    logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT, colorize=True)

    log_path.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_path / LOG_FILE_PATTERN,
        level=level,
        format=FILE_FORMAT,
        rotation=rotation,
        retention=retention,
        serialize=serialize,
        enqueue=True,
    )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    logger.bind(name=__name__).debug("Logging to {} at {}", log_path, level)
    return log_path


def get_logger(name: str) -> Any:
    return logger.bind(name=name)


__all__ = ["get_logger", "logger", "setup_logging"]
