"""Prometheus metrics instrumentation for the participation lifecycle.

Provides:
- ``setup_metrics(app)``: Attach prometheus-fastapi-instrumentator to a FastAPI app,
  exposing ``/metrics`` with HTTP request duration/count plus the counters below.
- ``TRANSITIONS_APPLIED``: Counter of participant/order rows moved, by event and kind.
- ``NOTIFICATION_FAILURES``: Counter of notification deliveries that raised.

Business metrics are updated when a transition commits (not by polling the database).
"""

from __future__ import annotations

from fastapi import FastAPI
from prometheus_client import Counter
from prometheus_fastapi_instrumentator import Instrumentator

TRANSITIONS_APPLIED: Counter = Counter(
    "product_order_transitions_total",
    "Number of status changes applied to participants or orders",
    ["event", "kind"],
)

NOTIFICATION_FAILURES: Counter = Counter(
    "product_order_notification_failures_total",
    "Number of lifecycle notifications whose delivery raised",
    ["event"],
)


def setup_metrics(app: FastAPI) -> None:
    """Instrument *app* with Prometheus HTTP metrics and expose ``/metrics``.

    Excludes health/ready/metrics endpoints from instrumentation to avoid
    noise in dashboards.

    Args:
        app: The FastAPI application to instrument.
    """
    Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=True,
        excluded_handlers=["/health", "/ready", "/metrics"],
    ).instrument(app).expose(app, include_in_schema=False, should_gzip=True)
