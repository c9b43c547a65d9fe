from __future__ import annotations

import logging
import logging.config
from typing import Any


def log_config(level: str = "INFO", log_file: str | None = None) -> dict[str, Any]:
    handlers: dict[str, Any] = {
        "stderr": {
            "class": "logging.StreamHandler",
            "level": level,
            "formatter": "simple",
            "stream": "ext://sys.stderr",
        },
    }
    if log_file:
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": "DEBUG",
            "formatter": "detailed",
            "filename": log_file,
            "maxBytes": 500000,
            "backupCount": 3,
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "simple": {
                "format": "%(levelname)s : %(name)s : %(message)s",
            },
            "detailed": {
                "format": "%(levelname)s | %(asctime)s | %(name)s : %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S%z",
            },
        },
        "handlers": handlers,
        "loggers": {
            "routesim": {"level": "DEBUG", "handlers": list(handlers), "propagate": False},
        },
    }


def set_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """
    Configure the routesim loggers. Console output goes to stderr so it
    never mixes with table dumps on stdout.
    """
    logging.config.dictConfig(log_config(level.upper(), log_file))
