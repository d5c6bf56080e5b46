"""Logging setup for the photo translator server."""

from __future__ import annotations

import logging.config
import os
from pathlib import Path
from typing import Any, Dict, List

LOG_MAX_BYTES = 5 * 1024 * 1024
LOG_BACKUP_COUNT = 5

_logging_configured = False


def _rotating_file(path: Path, formatter: str) -> Dict[str, Any]:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "formatter": formatter,
        "filename": str(path),
        "maxBytes": LOG_MAX_BYTES,
        "backupCount": LOG_BACKUP_COUNT,
        "encoding": "utf-8",
        "delay": True,
    }


def _logger(handlers: List[str], level: str) -> Dict[str, Any]:
    return {"handlers": handlers, "level": level, "propagate": False}


def configure_logging() -> None:
    """Install console and rotating file handlers for the app and uvicorn.

    Safe to call more than once; only the first call has an effect.
    """
    global _logging_configured
    if _logging_configured:
        return

    log_dir = Path(os.getenv("PHOTO_TRANSLATOR_LOG_DIR", "logs"))
    log_dir.mkdir(parents=True, exist_ok=True)
    level = os.getenv("PHOTO_TRANSLATOR_LOG_LEVEL", "INFO").upper()
    app_log = log_dir / os.getenv("PHOTO_TRANSLATOR_LOG_FILE", "photo-translator.log")
    access_log = log_dir / os.getenv("PHOTO_TRANSLATOR_ACCESS_LOG_FILE", "access.log")

    app_handlers = ["console", "app_file"]
    config: Dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "()": "uvicorn.logging.DefaultFormatter",
                "fmt": "%(levelprefix)s %(asctime)s %(name)s: %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
                "use_colors": None,
            },
            "access": {
                "()": "uvicorn.logging.AccessFormatter",
                "fmt": "%(levelprefix)s %(client_addr)s - \"%(request_line)s\" %(status_code)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stderr",
            },
            "access_console": {
                "class": "logging.StreamHandler",
                "formatter": "access",
                "stream": "ext://sys.stdout",
            },
            "app_file": _rotating_file(app_log, "default"),
            "access_file": _rotating_file(access_log, "access"),
        },
        "loggers": {
            "photo_translator": _logger(app_handlers, level),
            "uvicorn": _logger(app_handlers, level),
            "uvicorn.error": _logger(app_handlers, level),
            "uvicorn.access": _logger(["access_console", "access_file"], level),
            # requests' connection pool chatter
            "urllib3": {"level": "WARNING"},
        },
        "root": {"handlers": app_handlers, "level": level},
    }

    logging.config.dictConfig(config)
    _logging_configured = True


__all__ = ["configure_logging"]
