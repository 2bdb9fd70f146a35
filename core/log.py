"""Logging setup shared by the services and the CLI."""
from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from core.settings import LOGGING


ROOT_LOGGER = "taskflow"
_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def get_logger(name: str) -> logging.Logger:
    """Return a child of the ``taskflow`` logger."""
    if name.startswith(ROOT_LOGGER):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def setup_logging(log_path: Optional[Path] = None, *, level: Optional[str] = None) -> logging.Logger:
    """Attach a rotating file handler to the ``taskflow`` logger once."""

    logger = logging.getLogger(ROOT_LOGGER)
    if not any(isinstance(h, RotatingFileHandler) for h in logger.handlers):
        path = Path(log_path or LOGGING.path)
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            path,
            maxBytes=LOGGING.max_bytes,
            backupCount=LOGGING.backup_count,
            encoding="utf-8",
        )
        handler.setFormatter(logging.Formatter(_FORMAT))
        logger.addHandler(handler)
    logger.setLevel((level or LOGGING.level).upper())
    return logger


__all__ = ["get_logger", "setup_logging", "ROOT_LOGGER"]
