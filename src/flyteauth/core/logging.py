"""Logging setup for the cookie and callback handlers."""

from __future__ import annotations

import logging.config
from typing import Any

from .config import LoggingSettings

# Verification failures are logged here without cookie values.
AUTH_LOGGERS = ("flyteauth.cookies", "flyteauth.web")
# Form parsing chatter at DEBUG would otherwise flood the callback logs.
QUIET_LOGGERS = ("multipart", "python_multipart")

LOG_FORMATS: dict[bool, dict[str, str]] = {
    True: {
        "format": "ts={asctime} level={levelname} logger={name} msg={message!r}",
        "style": "{",
    },
    False: {"format": "%(asctime)s %(levelname)s %(name)s %(message)s"},
}


def build_logging_config(settings: LoggingSettings) -> dict[str, Any]:
    """Return the ``dictConfig`` mapping for ``settings``."""
    level = settings.level.upper()
    loggers: dict[str, dict[str, Any]] = {
        name: {"level": level, "propagate": True} for name in AUTH_LOGGERS
    }
    for name in QUIET_LOGGERS:
        loggers[name] = {"level": "WARNING", "propagate": True}
    loggers["flyteauth"] = {"level": level, "propagate": True}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"default": dict(LOG_FORMATS[settings.structured])},
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "level": level,
            },
        },
        "loggers": loggers,
        "root": {"handlers": ["console"], "level": level},
    }


def configure_logging(settings: LoggingSettings) -> None:
    """Configure application logging according to provided settings."""
    logging.config.dictConfig(build_logging_config(settings))


__all__ = ["build_logging_config", "configure_logging"]
