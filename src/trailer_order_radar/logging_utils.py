"""Process-wide logging setup driven by Settings.LOG_LEVEL / LOG_PATH."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from trailer_order_radar.config import Settings

ROOT_LOGGER_NAME = "trailer_order_radar"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
LOG_MAX_BYTES = 5 * 1024 * 1024
LOG_BACKUP_COUNT = 5


def _level_from_name(name: str) -> int:
    level = logging.getLevelName(str(name or "").strip().upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging(settings: Settings) -> logging.Logger:
    """Attach one handler to the package logger; repeated calls only update the level."""
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(_level_from_name(settings.LOG_LEVEL))

    if any(getattr(h, "_trailer_order_radar", False) for h in logger.handlers):
        return logger

    log_path = str(settings.LOG_PATH or "").strip()
    handler: logging.Handler
    if log_path:
        path = Path(log_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            path,
            maxBytes=LOG_MAX_BYTES,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
    else:
        handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    setattr(handler, "_trailer_order_radar", True)
    logger.addHandler(handler)
    return logger


def get_logger(name: str) -> logging.Logger:
    if name.startswith(ROOT_LOGGER_NAME):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
