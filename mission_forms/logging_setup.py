"""Logging for the mission forms service.

Everything goes to stdout through one root console handler. Service modules
log under the ``mission_forms`` logger tree, whose level comes from
``MISSION_FORMS_LOG_LEVEL`` (default INFO); other libraries stay at WARNING.
SQL statement logging is only switched on at DEBUG.
"""
from __future__ import annotations

import logging
import os
from logging.config import dictConfig
from typing import Any, Dict, Optional

LOG_LEVEL_ENV = "MISSION_FORMS_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _level(raw: Optional[str]) -> str:
    level = (raw or "").strip().upper()
    return level if level in _LEVELS else "INFO"


def logging_config(level: Optional[str] = None) -> Dict[str, Any]:
    """Build the ``dictConfig`` mapping for ``level``, or the environment's level."""
    service_level = _level(level if level is not None else os.getenv(LOG_LEVEL_ENV))
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"service": {"format": LOG_FORMAT}},
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "service",
                "stream": "ext://sys.stdout",
            }
        },
        "root": {"level": "WARNING", "handlers": ["console"]},
        "loggers": {
            "mission_forms": {"level": service_level},
            "uvicorn.error": {"level": "INFO"},
            "uvicorn.access": {"level": "INFO"},
            "sqlalchemy.engine": {"level": "INFO" if service_level == "DEBUG" else "WARNING"},
        },
    }


def configure_logging(level: Optional[str] = None) -> None:
    """Install the service logging config unless the root logger is already set up.

    Reloaders and pytest's log capture install root handlers first; those are
    left alone.
    """
    if logging.getLogger().handlers:
        return
    dictConfig(logging_config(level))
