"""Tests for structlog/stdlib logging configuration."""

from __future__ import annotations

import structlog

from digiscout.infrastructure.config.schema import AppConfig
from digiscout.infrastructure.logging.setup import build_logging_config


class TestBuildLoggingConfig:
    def test_json_renderer_in_prod(self) -> None:
        cfg = build_logging_config(AppConfig(environment="prod"))
        processors = cfg["formatters"]["structlog"]["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)

    def test_console_renderer_in_dev(self) -> None:
        cfg = build_logging_config(AppConfig(environment="dev"))
        processors = cfg["formatters"]["structlog"]["processors"]
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)

    def test_level_applied_to_app_loggers(self) -> None:
        cfg = build_logging_config(AppConfig(log_level="DEBUG"))
        assert cfg["root"]["level"] == "DEBUG"
        assert cfg["loggers"]["uvicorn"]["level"] == "DEBUG"
        assert cfg["loggers"]["uvicorn.access"]["level"] == "DEBUG"

    def test_http_client_loggers_stay_quiet(self) -> None:
        cfg = build_logging_config(AppConfig(log_level="DEBUG"))
        assert cfg["loggers"]["httpx"]["level"] == "WARNING"
        assert cfg["loggers"]["httpcore"]["level"] == "WARNING"

    def test_base_config_not_mutated(self) -> None:
        first = build_logging_config(AppConfig(log_level="DEBUG"))
        second = build_logging_config(AppConfig(log_level="ERROR"))
        assert first["root"]["level"] == "DEBUG"
        assert second["root"]["level"] == "ERROR"


class TestServiceStamp:
    def _stamper(self, cfg: dict) -> object:
        return cfg["formatters"]["structlog"]["foreign_pre_chain"][-1]

    def test_defaults_to_app_name(self) -> None:
        stamp = self._stamper(build_logging_config(AppConfig(app_name="addon")))
        assert stamp(None, "info", {"event": "x"})["service"] == "addon"

    def test_explicit_service_wins(self) -> None:
        cfg = build_logging_config(AppConfig(), service="digiscout-gateway")
        event = self._stamper(cfg)(None, "info", {"event": "x"})
        assert event["service"] == "digiscout-gateway"

    def test_existing_service_key_kept(self) -> None:
        stamp = self._stamper(build_logging_config(AppConfig(), service="a"))
        assert stamp(None, "info", {"service": "b"})["service"] == "b"
