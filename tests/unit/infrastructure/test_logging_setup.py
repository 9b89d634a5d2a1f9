"""Tests for the uvicorn logging dictConfig."""

from __future__ import annotations

import structlog

from codeseek.infrastructure.config import AppConfig
from codeseek.infrastructure.logging.setup import UVICORN_LOGGING_CONFIG, build_logging_config


class TestBuildLoggingConfig:
    def test_levels_follow_config(self) -> None:
        cfg = build_logging_config(AppConfig(log_level="DEBUG"))
        assert cfg["root"] == {"handlers": ["default"], "level": "DEBUG"}
        assert all(lg["level"] == "DEBUG" for lg in cfg["loggers"].values())

    def test_handlers_use_structlog_formatter(self) -> None:
        cfg = build_logging_config(AppConfig())
        assert {h["formatter"] for h in cfg["handlers"].values()} == {"structlog"}

    def test_formatter_renders_json_in_prod(self) -> None:
        cfg = build_logging_config(AppConfig(environment="prod"))
        formatter = cfg["formatters"]["structlog"]["()"]()
        assert isinstance(formatter, structlog.stdlib.ProcessorFormatter)
        assert isinstance(formatter.processors[-1], structlog.processors.JSONRenderer)

    def test_base_config_not_mutated(self) -> None:
        build_logging_config(AppConfig(log_level="ERROR"))
        assert UVICORN_LOGGING_CONFIG["loggers"]["uvicorn"]["level"] == "INFO"
        assert "structlog" not in UVICORN_LOGGING_CONFIG["formatters"]
