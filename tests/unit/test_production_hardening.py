"""Tests for security hardening — rate limiting, headers, CORS, logging."""

from __future__ import annotations

import json
import logging
import sys
import time
from typing import Any
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from raffledesk.api.middleware import (
    CSP_HEADER,
    HSTS_HEADER,
    RATE_LIMIT_WINDOW,
    SECURITY_HEADERS,
    _apply_rate_limit,
    _check_rate_limit,
    _get_client_key,
    _get_cors_origins,
    _rate_buckets,
)
from raffledesk.api.deps import is_admin_secret
from raffledesk.core.config import Settings
from raffledesk.core.logging import (
    REDACTED,
    CorrelationFilter,
    JSONFormatter,
    RedactingFormatter,
    get_correlation_id,
    is_sensitive_key,
    redact_dict,
    redact_string,
    set_correlation_id,
    setup_logging,
)
from raffledesk.main import create_app


def _record(msg: str, *args: Any, **extra: Any) -> logging.LogRecord:
    record = logging.LogRecord(
        name="test",
        level=logging.INFO,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=args,
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def prod_client(settings: Settings) -> TestClient:
    _rate_buckets.clear()
    prod = settings.model_copy(update={"app_env": "production", "rate_limit_anonymous": 3})
    return TestClient(create_app(settings=prod))


# ── Rate Limiting ────────────────────────────────────────────────────


class TestRateLimiting:
    def setup_method(self) -> None:
        _rate_buckets.clear()

    def test_allows_first_request(self) -> None:
        allowed, remaining = _check_rate_limit("test:1", 10)
        assert allowed is True
        assert remaining == 9

    def test_blocks_after_limit(self) -> None:
        for _ in range(10):
            _check_rate_limit("test:2", 10)
        allowed, remaining = _check_rate_limit("test:2", 10)
        assert allowed is False
        assert remaining == 0

    def test_expired_entries_pruned(self) -> None:
        key = "test:prune"
        _rate_buckets[key] = [time.time() - RATE_LIMIT_WINDOW - 1] * 10
        allowed, _ = _check_rate_limit(key, 10)
        assert allowed is True

    def test_client_key_from_forwarded(self) -> None:
        req = MagicMock()
        req.headers = {"x-forwarded-for": "1.2.3.4, 5.6.7.8"}
        assert _get_client_key(req) == "1.2.3.4"

    def test_client_key_no_client(self) -> None:
        req = MagicMock()
        req.headers = {}
        req.client = None
        assert _get_client_key(req) == "unknown"

    def test_rate_limit_skipped_in_testing(self) -> None:
        settings = MagicMock()
        settings.is_testing = True
        assert _apply_rate_limit(MagicMock(), settings) is None

    @pytest.mark.parametrize("path", ["/health", "/health/ready", "/health/live"])
    def test_rate_limit_skips_health(self, path: str) -> None:
        settings = MagicMock()
        settings.is_testing = False
        req = MagicMock()
        req.url.path = path
        assert _apply_rate_limit(req, settings) is None

    def test_rate_limit_anonymous_tier(self) -> None:
        settings = MagicMock()
        settings.is_testing = False
        settings.rate_limit_anonymous = 2
        settings.admin_secret = "s3cret"
        req = MagicMock()
        req.url.path = "/api/tickets"
        req.headers = {}
        req.client.host = "1.1.1.1"
        _apply_rate_limit(req, settings)
        _apply_rate_limit(req, settings)
        result = _apply_rate_limit(req, settings)
        assert result is not None
        assert result.status_code == 429
        assert result.headers["Retry-After"] == str(RATE_LIMIT_WINDOW)

    def test_rate_limit_admin_tier(self) -> None:
        settings = MagicMock()
        settings.is_testing = False
        settings.rate_limit_anonymous = 1
        settings.rate_limit_admin = 500
        settings.admin_secret = "s3cret"
        req = MagicMock()
        req.url.path = "/api/admin/purchases"
        req.headers = {"x-admin-secret": "s3cret"}
        req.client.host = "1.1.1.1"
        for _ in range(5):
            assert _apply_rate_limit(req, settings) is None

    def test_wrong_secret_gets_anonymous_tier(self) -> None:
        settings = MagicMock()
        settings.is_testing = False
        settings.rate_limit_anonymous = 1
        settings.admin_secret = "s3cret"
        req = MagicMock()
        req.url.path = "/api/admin/purchases"
        req.headers = {"x-admin-secret": "guess"}
        req.client.host = "1.1.1.1"
        _apply_rate_limit(req, settings)
        assert _apply_rate_limit(req, settings) is not None

    def test_rate_limit_none_settings(self) -> None:
        assert _apply_rate_limit(MagicMock(), None) is None

    def test_limit_enforced_over_http(self, prod_client: TestClient) -> None:
        codes = [prod_client.get("/api/tickets").status_code for _ in range(4)]
        assert codes == [200, 200, 200, 429]
        assert prod_client.get("/health").status_code == 200


class TestAdminSecret:
    def test_matching_secret(self) -> None:
        settings = MagicMock()
        settings.admin_secret = "s3cret"
        assert is_admin_secret("s3cret", settings) is True

    @pytest.mark.parametrize("candidate", [None, "", "S3CRET", "s3cret "])
    def test_non_matching(self, candidate: str | None) -> None:
        settings = MagicMock()
        settings.admin_secret = "s3cret"
        assert is_admin_secret(candidate, settings) is False

    def test_empty_configured_secret_never_matches(self) -> None:
        settings = MagicMock()
        settings.admin_secret = ""
        assert is_admin_secret("", settings) is False


# ── Security Headers ────────────────────────────────────────────────


class TestSecurityHeaders:
    def test_security_headers_defined(self) -> None:
        assert SECURITY_HEADERS["X-Content-Type-Options"] == "nosniff"
        assert SECURITY_HEADERS["X-Frame-Options"] == "DENY"
        assert "Referrer-Policy" in SECURITY_HEADERS

    def test_hsts_and_csp_values(self) -> None:
        assert "includeSubDomains" in HSTS_HEADER
        assert "frame-ancestors 'none'" in CSP_HEADER

    def test_headers_on_response(self, client: Any) -> None:
        resp = client.get("/health")
        assert resp.headers["X-Content-Type-Options"] == "nosniff"
        assert resp.headers["X-Frame-Options"] == "DENY"
        assert "X-Request-ID" in resp.headers
        assert "X-Response-Time" in resp.headers

    def test_no_hsts_outside_production(self, client: Any) -> None:
        assert "Strict-Transport-Security" not in client.get("/health").headers

    def test_hsts_in_production(self, prod_client: TestClient) -> None:
        resp = prod_client.get("/health")
        assert resp.headers["Strict-Transport-Security"] == HSTS_HEADER
        assert resp.headers["Content-Security-Policy"] == CSP_HEADER


# ── CORS Configuration ──────────────────────────────────────────────


class TestCorsConfig:
    def test_cors_origins_none_settings(self) -> None:
        assert _get_cors_origins(None) == ["*"]

    def test_cors_origins_from_settings(self) -> None:
        settings = MagicMock()
        settings.cors_origin_list = ["https://raffle.example.com"]
        assert _get_cors_origins(settings) == ["https://raffle.example.com"]

    def test_cors_origins_prod_without_list(self) -> None:
        settings = MagicMock()
        settings.is_production = True
        del settings.cors_origin_list
        assert _get_cors_origins(settings) == []


# ── Correlation ID ───────────────────────────────────────────────────


class TestCorrelationId:
    def test_set_and_get(self) -> None:
        set_correlation_id("abc123")
        assert get_correlation_id() == "abc123"

    def test_filter_attaches_id(self) -> None:
        set_correlation_id("req-9")
        record = _record("hello")
        assert CorrelationFilter().filter(record) is True
        assert record.correlation_id == "req-9"

    def test_custom_correlation_id_forwarded(self, client: Any) -> None:
        resp = client.get("/health", headers={"X-Correlation-ID": "my-trace-123"})
        assert resp.headers["X-Request-ID"] == "my-trace-123"


# ── Sensitive Field Redaction ────────────────────────────────────────


class TestRedaction:
    def test_sensitive_keys(self) -> None:
        assert is_sensitive_key("admin_secret") is True
        assert is_sensitive_key("X-Admin-Secret") is True
        assert is_sensitive_key("reference") is True
        assert is_sensitive_key("phone") is True
        assert is_sensitive_key("authorization") is True

    def test_non_sensitive_keys(self) -> None:
        assert is_sensitive_key("email") is False
        assert is_sensitive_key("tickets") is False
        assert is_sensitive_key("status") is False

    def test_redact_dict_nested(self) -> None:
        data = {"purchase": {"name": "Ana", "reference": "REF-1", "phone": "555"}, "ids": [1]}
        result = redact_dict(data)
        assert result["purchase"]["name"] == "Ana"
        assert result["purchase"]["reference"] == REDACTED
        assert result["purchase"]["phone"] == REDACTED
        assert result["ids"] == [1]

    def test_redact_dict_list(self) -> None:
        result = redact_dict({"purchases": [{"reference": "x"}, {"email": "a@b.com"}]})
        assert result["purchases"][0]["reference"] == REDACTED
        assert result["purchases"][1]["email"] == "a@b.com"

    def test_redact_admin_header(self) -> None:
        result = redact_string("X-Admin-Secret: hunter2")
        assert "hunter2" not in result
        assert REDACTED in result

    def test_redact_secret_pair(self) -> None:
        assert "hunter2" not in redact_string("admin_secret=hunter2")
        assert "hunter2" not in redact_string("secret: hunter2")


# ── Structured Logging ───────────────────────────────────────────────


class TestStructuredLogging:
    def test_json_formatter_format(self) -> None:
        parsed = json.loads(JSONFormatter().format(_record("Hello %s", "World")))
        assert parsed["level"] == "INFO"
        assert parsed["message"] == "Hello World"
        assert parsed["logger"] == "test"
        assert "timestamp" in parsed

    def test_json_formatter_redacts_message(self) -> None:
        parsed = json.loads(JSONFormatter().format(_record("Bad admin_secret=letmein")))
        assert "letmein" not in parsed["message"]

    def test_json_formatter_redacts_extra(self) -> None:
        record = _record("Buy request", reference="REF-77", tickets=[1, 2])
        parsed = json.loads(JSONFormatter().format(record))
        assert parsed["extra"]["reference"] == REDACTED
        assert parsed["extra"]["tickets"] == [1, 2]

    def test_json_formatter_correlation(self) -> None:
        record = _record("x", correlation_id="cid-1")
        assert json.loads(JSONFormatter().format(record))["correlation_id"] == "cid-1"

    def test_json_formatter_exception(self) -> None:
        try:
            raise ValueError("test error")
        except ValueError:
            exc_info = sys.exc_info()
        record = _record("failed")
        record.exc_info = exc_info
        parsed = json.loads(JSONFormatter().format(record))
        assert parsed["exception"]["type"] == "ValueError"
        assert parsed["exception"]["message"] == "test error"

    def test_text_formatter_redacts(self) -> None:
        output = RedactingFormatter().format(_record("header X-Admin-Secret: topsecret"))
        assert "topsecret" not in output
        assert "[INFO] test:" in output

    def test_setup_logging_json(self) -> None:
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            setup_logging(level="DEBUG", log_format="json")
            assert root.level == logging.DEBUG
            assert isinstance(root.handlers[0].formatter, JSONFormatter)
            assert logging.getLogger("uvicorn.access").level == logging.WARNING
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)

    def test_setup_logging_text(self) -> None:
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            setup_logging(level="WARNING", log_format="text")
            assert isinstance(root.handlers[0].formatter, RedactingFormatter)
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)
