"""
Logging setup utilities.

envguard modules log through the standard ``logging`` module under the
``envguard`` logger; ``setup_logging`` routes those records into loguru
sinks for console and rotating-file output.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from loguru import logger as loguru_logger

from ..config.models import LoggingConfig

ROOT_LOGGER_NAME = "envguard"


class InterceptHandler(logging.Handler):
    """Forward standard logging records to loguru, keeping caller information."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = loguru_logger.level(record.levelname).name
        except ValueError:
            level = record.levelno  # type: ignore[assignment]

        # Walk back past the logging module so loguru reports the real caller.
        frame, depth = logging.currentframe(), 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        loguru_logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage())


def setup_logging(config: Optional[LoggingConfig] = None) -> None:
    """
    Configure loguru sinks and bridge the ``envguard`` logger into them.

    Args:
        config: Logging configuration (defaults to ``LoggingConfig()``)
    """
    config = config or LoggingConfig()
    level = config.level.upper()

    loguru_logger.remove()

    if config.console_enabled:
        loguru_logger.add(
            sys.stderr,
            format="<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
                   "<level>{level: <8}</level> | "
                   "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
                   "<level>{message}</level>",
            level=level,
            colorize=True,
            backtrace=True,
            diagnose=False
        )

    if config.file_enabled:
        log_dir = Path(config.log_directory)
        log_dir.mkdir(parents=True, exist_ok=True)
        loguru_logger.add(
            log_dir / config.log_file,
            format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | "
                   "{name}:{function}:{line} - {message}",
            level=level,
            rotation=config.max_file_size,
            retention=config.backup_count,
            compression="zip",
            backtrace=True,
            diagnose=False
        )

    package_logger = logging.getLogger(ROOT_LOGGER_NAME)
    package_logger.handlers = [InterceptHandler()]
    package_logger.setLevel(getattr(logging, level, logging.INFO))
    package_logger.propagate = False
