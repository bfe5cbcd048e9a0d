from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app.core.app_factory import create_app
from app.core.config import AppSettings, LogSettings, RateLimitSettings, Settings
from app.main import app


client = TestClient(app)


def test_preserves_incoming_request_id_header():
    incoming_id = "test-request-id-123"
    resp = client.get("/health", headers={"X-Request-ID": incoming_id})

    assert resp.status_code == 200
    assert resp.headers.get("X-Request-ID") == incoming_id


def test_generates_request_id_when_missing():
    resp = client.get("/health")

    assert resp.status_code == 200
    generated = resp.headers.get("X-Request-ID")
    assert generated
    assert isinstance(generated, str)

    duration = resp.headers.get("X-Request-Duration-ms")
    assert duration is not None


def test_error_responses_carry_request_id():
    resp = client.get("/api/v1/users/does-not-exist", headers={"X-Request-ID": "req-404"})

    assert resp.status_code == 404
    assert resp.headers.get("X-Request-ID") == "req-404"


def _settings(**log) -> Settings:
    return Settings(
        app=AppSettings(),
        rate_limit=RateLimitSettings(),
        log=LogSettings(level="WARNING", **log),
    )


def test_uses_header_name_from_app_settings():
    custom = TestClient(create_app(_settings(request_id_header="X-Correlation-ID")))

    resp = custom.get("/health", headers={"X-Correlation-ID": "abc"})

    assert resp.status_code == 200
    assert resp.headers.get("X-Correlation-ID") == "abc"
    assert "X-Request-ID" not in resp.headers


@pytest.fixture
def failing_app():
    app = create_app(_settings())

    @app.get("/bad-input")
    async def bad_input():
        raise ValueError("limit must be positive")

    @app.get("/crash")
    async def crash():
        raise RuntimeError("boom")

    return app


def test_mapped_builtin_error_keeps_request_id(failing_app):
    # Default client re-raises anything reaching the server error layer
    resp = TestClient(failing_app).get("/bad-input", headers={"X-Request-ID": "req-400"})

    assert resp.status_code == 400
    assert resp.json()["errorCode"] == "INVALID_ARGUMENT"
    assert resp.json()["message"] == "limit must be positive"
    assert resp.headers.get("X-Request-ID") == "req-400"


def test_unexpected_error_keeps_request_id(failing_app):
    resp = TestClient(failing_app).get("/crash", headers={"X-Request-ID": "req-500"})

    assert resp.status_code == 500
    assert resp.json()["errorCode"] == "INTERNAL_ERROR"
    assert "boom" not in resp.text
    assert resp.headers.get("X-Request-ID") == "req-500"
