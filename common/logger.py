from __future__ import annotations

import logging
import sys
from typing import Optional

from common.settings import settings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

_configured: set = set()


def get_logger(name: Optional[str] = None) -> logging.Logger:
    logger = logging.getLogger(name or "kb")
    if logger.handlers:
        return logger
    logger.setLevel(settings.log_level.upper())

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
    _configured.add(logger.name)
    return logger


def set_log_level(level: str | int) -> None:
    """Change the level of every logger handed out by get_logger."""
    if isinstance(level, str):
        level = level.upper()
    for name in _configured:
        logging.getLogger(name).setLevel(level)
