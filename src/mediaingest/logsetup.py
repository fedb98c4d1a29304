"""Run log configuration."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from mediaingest.config.models import LoggingSettings

RUN_LOGGER_NAME = "mediaingest"
LOG_FORMAT = "[%(asctime)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(settings: LoggingSettings, log_file: Path) -> logging.Logger:
    """Attach the append-only run log handler to the ``mediaingest`` logger.

    The handler opens the file lazily, so a run that has nothing to report
    leaves no trace on disk. Calling this again replaces the handler installed
    by the previous call.

    Args:
        settings: Logging verbosity and rotation settings.
        log_file: Destination of the run log.

    Returns:
        logging.Logger: The configured run logger.
    """

    logger = logging.getLogger(RUN_LOGGER_NAME)
    level = logging.getLevelName(settings.level.upper())
    if not isinstance(level, int):
        level = logging.INFO
    logger.setLevel(level)

    for handler in list(logger.handlers):
        if getattr(handler, "_mediaingest_run_log", False):
            logger.removeHandler(handler)
            handler.close()

    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler: logging.Handler
    if settings.max_size_mb > 0:
        handler = RotatingFileHandler(
            log_file,
            maxBytes=settings.max_size_mb * 1024 * 1024,
            backupCount=settings.backup_count,
            encoding="utf-8",
            delay=True,
        )
    else:
        handler = logging.FileHandler(log_file, encoding="utf-8", delay=True)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    handler._mediaingest_run_log = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    return logger


__all__ = ["RUN_LOGGER_NAME", "configure_logging"]
