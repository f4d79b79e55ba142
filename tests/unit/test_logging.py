"""
Tests for the logging module and request tracing.
"""

import json
import logging

import pytest
import structlog


class TestConfigureLogging:
    """Tests for configure_logging function."""

    def test_configure_development_mode(self):
        from core.logging import configure_logging

        configure_logging(json_logs=False, log_level="DEBUG")

    def test_configure_log_level(self):
        from core.logging import configure_logging

        configure_logging(log_level="WARNING")

        assert logging.getLogger().level == logging.WARNING

    def test_provider_sdk_loggers_quietened(self):
        from core.logging import configure_logging

        configure_logging(log_level="DEBUG")

        for name in ("httpx", "urllib3", "openai"):
            assert logging.getLogger(name).level == logging.WARNING


class TestGetLogger:
    def test_logger_can_log_key_values(self):
        from core.logging import configure_logging, get_logger

        configure_logging(json_logs=False, log_level="DEBUG")
        logger = get_logger("test")

        logger.info("Dashboard served from cache", owner_key="dashboard_cache_u1", age_ms=10)
        logger.warning("Image search failed", status_code=429)
        logger.error("Dashboard cache write failed", error="disk full")


class TestContextBinding:
    def test_bind_and_unbind(self):
        from core.logging import bind_context, clear_context, unbind_context

        clear_context()
        bind_context(request_id="abc", user_id="u1")
        unbind_context("user_id")

        ctx = structlog.contextvars.get_contextvars()
        assert ctx.get("request_id") == "abc"
        assert "user_id" not in ctx

        clear_context()
        assert structlog.contextvars.get_contextvars() == {}


class TestLoggerMixin:
    def test_services_get_a_logger(self):
        from cache.dashboard_cache import DashboardCache
        from cache.store import InMemoryKeyValueStore

        cache = DashboardCache(InMemoryKeyValueStore())

        assert hasattr(cache.logger, "info")


class TestJSONOutput:
    def test_json_output_is_valid_json(self, capsys):
        from core.logging import configure_logging, get_logger

        configure_logging(json_logs=True, log_level="INFO")
        get_logger("json_test").info("Dashboard cache stale", owner_key="dashboard_cache_u1")

        captured = capsys.readouterr()
        for line in captured.out.strip().split("\n"):
            if line:
                data = json.loads(line)
                assert "event" in data


class TestRequestTracing:
    def test_request_id_echoed(self):
        from fastapi import FastAPI
        from fastapi.testclient import TestClient
        from core.middleware import RequestTracingMiddleware

        app = FastAPI()
        app.add_middleware(RequestTracingMiddleware)

        @app.get("/ping")
        def ping():
            return {"request_id": structlog.contextvars.get_contextvars().get("request_id")}

        resp = TestClient(app).get("/ping", headers={"X-Request-ID": "req-42"})

        assert resp.headers["X-Request-ID"] == "req-42"

    def test_request_id_generated(self):
        from fastapi import FastAPI
        from fastapi.testclient import TestClient
        from core.middleware import RequestTracingMiddleware

        app = FastAPI()
        app.add_middleware(RequestTracingMiddleware)

        @app.get("/ping")
        def ping():
            return {}

        resp = TestClient(app).get("/ping")

        assert len(resp.headers["X-Request-ID"]) == 8


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
