"""Logging configuration for Watchgate."""

from __future__ import annotations

import logging
import logging.config
from pathlib import Path
from typing import Any, Dict


def _rotating(filename: Path, backups: int) -> Dict[str, Any]:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "formatter": "default",
        "level": "DEBUG",
        "filename": str(filename),
        "maxBytes": 5 * 1024 * 1024,
        "backupCount": backups,
    }


def setup_logging(log_directory: Path, level: str = "INFO") -> None:
    """Configure console output plus app.log and playback.log under ``log_directory``."""
    log_directory.mkdir(parents=True, exist_ok=True)
    level = level.upper()

    log_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            },
            "brief": {
                "format": "%(levelname)s | %(name)s | %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "brief",
                "level": level,
            },
            "app_file": _rotating(log_directory / "app.log", backups=5),
            "playback_file": _rotating(log_directory / "playback.log", backups=3),
        },
        "loggers": {
            "watchgate": {
                "handlers": ["console", "app_file"],
                "level": level,
                "propagate": False,
            },
            "watchgate.playback": {
                "handlers": ["playback_file", "console"],
                "level": level,
                "propagate": False,
            },
            # Store failures only.
            "watchgate.store": {
                "handlers": ["app_file", "console"],
                "level": "WARNING",
                "propagate": False,
            },
        },
        "root": {
            "handlers": ["console"],
            "level": "WARNING",
        },
    }

    logging.config.dictConfig(log_config)
    logging.getLogger("watchgate").info("Logging initialised; log directory: %s", log_directory)
