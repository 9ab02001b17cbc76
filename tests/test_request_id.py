"""Tests for Request ID middleware."""

from __future__ import annotations

import re

import structlog
from fastapi import FastAPI
from fastapi.testclient import TestClient

from product_orders.observability.middleware import RequestIdMiddleware

UUID4_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def _make_client() -> TestClient:
    app = FastAPI()
    app.add_middleware(RequestIdMiddleware)

    @app.get("/context")
    async def context():
        return structlog.contextvars.get_contextvars()

    return TestClient(app)


def test_generates_uuid_when_header_absent() -> None:
    resp = _make_client().get("/context")
    request_id = resp.headers.get("X-Request-ID", "")
    assert UUID4_PATTERN.match(request_id), f"Expected UUID4 format, got: {request_id}"


def test_echoes_client_request_id() -> None:
    resp = _make_client().get("/context", headers={"X-Request-ID": "order-req-7"})
    assert resp.headers["X-Request-ID"] == "order-req-7"


def test_binds_request_id_into_log_context() -> None:
    resp = _make_client().get("/context", headers={"X-Request-ID": "order-req-8"})
    assert resp.json() == {"request_id": "order-req-8", "service": "product-orders"}
