"""Tests for logging utilities."""

from __future__ import annotations

import logging

from flyteauth.core.config import LoggingSettings
from flyteauth.core.logging import build_logging_config, configure_logging


def test_configure_logging_sets_root_level() -> None:
    """configure_logging should set the root logger level according to settings."""

    settings = LoggingSettings(level="DEBUG", structured=False)
    configure_logging(settings)
    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("flyteauth").level == logging.DEBUG


def test_configure_logging_accepts_lowercase_level() -> None:
    configure_logging(LoggingSettings(level="warning", structured=True))
    assert logging.getLogger().level == logging.WARNING


def test_structured_logging_emits_key_value_records() -> None:
    configure_logging(LoggingSettings(level="INFO", structured=True))
    handler = next(
        h for h in logging.getLogger().handlers if type(h) is logging.StreamHandler
    )
    record = logging.LogRecord(
        "flyteauth.cookies.csrf", logging.INFO, __file__, 1, "state mismatch", None, None
    )

    line = handler.format(record)
    assert "level=INFO" in line
    assert "logger=flyteauth.cookies.csrf" in line
    assert "msg='state mismatch'" in line


def test_logging_config_quiets_form_parser_and_tracks_auth_loggers() -> None:
    config = build_logging_config(LoggingSettings(level="debug", structured=False))

    assert config["loggers"]["python_multipart"]["level"] == "WARNING"
    assert config["loggers"]["flyteauth.cookies"]["level"] == "DEBUG"
    assert config["loggers"]["flyteauth.web"]["level"] == "DEBUG"
    assert "style" not in config["formatters"]["default"]
