"""Central logging configuration for the CLI and web entry points.

Applies a root stdout handler so module loggers emit without per-module
setup. Keeps uvicorn loggers visible and avoids duplicate handlers on
reloads.
"""
from __future__ import annotations

import logging
from logging.config import dictConfig
from typing import Optional

from .config import get_log_level

LOG_FORMAT = "%(asctime)s %(levelname)s:%(name)s:%(message)s"


def _dict_config(level: str) -> dict:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"default": {"format": LOG_FORMAT}},
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "default",
                "stream": "ext://sys.stdout",
            }
        },
        "root": {"level": level, "handlers": ["console"]},
        "loggers": {
            name: {"level": "INFO", "handlers": ["console"], "propagate": False}
            for name in ("uvicorn", "uvicorn.error", "uvicorn.access")
        },
    }


def configure_logging(level: Optional[str] = None) -> None:
    """Configure application-wide logging once.

    *level* overrides ``SRI_ASSESSMENT_LOG_LEVEL``. If the root logger already
    has handlers only its level is adjusted.
    """
    level = (level or get_log_level()).upper()
    if not isinstance(logging.getLevelName(level), int):
        level = "INFO"
    root = logging.getLogger()
    if root.handlers:
        root.setLevel(level)
        return
    dictConfig(_dict_config(level))
