"""Application entry point serving the participation lifecycle over HTTP.

Configures:
- **structlog** with JSON rendering (production) or colored console (development)
- **Sentry** forwarding of ERROR log events when a DSN is configured
- **SQLite** lifecycle, audit and notification tables on one connection
- **Prometheus** HTTP and transition metrics at ``/metrics``
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI

from product_orders.api import register_error_handlers, router
from product_orders.audit.logger import AuditLogger
from product_orders.audit.store import init_audit_table
from product_orders.config import Settings, get_settings
from product_orders.health import register_health_routes
from product_orders.lifecycle.service import ProductOrderLifecycle
from product_orders.notifications.notifier import LoggingNotifier, SqliteNotifier
from product_orders.notifications.store import init_notification_table
from product_orders.observability.metrics import setup_metrics
from product_orders.observability.middleware import RequestIdMiddleware
from product_orders.observability.sentry import get_sentry_processor, init_sentry
from product_orders.store.directory import SqliteUserDirectory
from product_orders.store.repository import SqliteRepository
from product_orders.store.schema import open_database

logger = structlog.get_logger()


def configure_logging(production: bool = False, *, sentry_enabled: bool = False) -> None:
    """Configure structlog for production (JSON) or development (console).

    Production mode (*production=True*): JSON rendering at INFO level.
    Development mode: colored console rendering at DEBUG level.

    Args:
        production: Enable production mode if ``True``.
        sentry_enabled: Forward ERROR events to Sentry (``init_sentry`` must
            have been called).
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]
    if sentry_enabled:
        shared_processors.append(get_sentry_processor())

    if production:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
        log_level = logging.INFO
    else:
        renderer = structlog.dev.ConsoleRenderer()
        log_level = logging.DEBUG

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.bind_contextvars(service="product-orders")


def initialize_services(settings: Settings | None = None) -> dict[str, Any]:
    """Open the database and build the lifecycle service with its collaborators.

    Args:
        settings: Application settings.  If ``None``, ``get_settings()`` is used.

    Returns:
        A dict of initialized service instances keyed by name.
    """
    if settings is None:
        settings = get_settings()

    services: dict[str, Any] = {}

    db_conn = open_database(settings.database_path)
    init_audit_table(db_conn)
    init_notification_table(db_conn)
    services["db_conn"] = db_conn

    repository = SqliteRepository(db_conn)
    services["repository"] = repository
    services["directory"] = SqliteUserDirectory(db_conn)
    services["audit_logger"] = AuditLogger(db_conn)

    if settings.notifications_enabled:
        services["notifier"] = SqliteNotifier(repository)
    else:
        services["notifier"] = LoggingNotifier()
        logger.info("notifications_disabled")

    services["lifecycle"] = ProductOrderLifecycle(
        repository,
        services["notifier"],
        services["directory"],
        audit_logger=services["audit_logger"],
    )
    services["_settings"] = settings
    logger.info("services_initialized", database_path=str(settings.database_path))
    return services


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Lifespan context manager for FastAPI startup and shutdown.

    On shutdown: closes the lifecycle database connection.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control to the application.
    """
    logger.info("application_starting")
    yield
    db_conn = app.state.services.get("db_conn")
    if db_conn is not None:
        db_conn.close()
        logger.info("database_connection_closed")


def create_app(services: dict[str, Any]) -> FastAPI:
    """Create the FastAPI app with lifecycle routes, health and metrics.

    Args:
        services: The initialized services dict from ``initialize_services``.

    Returns:
        The configured FastAPI application.
    """
    fastapi_app = FastAPI(title="Product Order Lifecycle", lifespan=lifespan)
    fastapi_app.state.services = services
    fastapi_app.state.settings = services.get("_settings", get_settings())
    fastapi_app.add_middleware(RequestIdMiddleware)
    fastapi_app.include_router(router)
    register_error_handlers(fastapi_app)
    register_health_routes(fastapi_app)
    setup_metrics(fastapi_app)
    return fastapi_app


def main() -> None:
    """Main entry point: configure logging, build services, serve over uvicorn."""
    settings = get_settings()
    sentry_enabled = init_sentry(
        settings.sentry_dsn.get_secret_value(),
        environment="production" if settings.production else "development",
    )
    configure_logging(production=settings.production, sentry_enabled=sentry_enabled)
    logger.info("application_configured", sentry_enabled=sentry_enabled)

    services = initialize_services(settings)
    fastapi_app = create_app(services)

    uvicorn.run(
        fastapi_app,
        host="0.0.0.0",
        port=settings.http_port,
        log_level="info",
    )


if __name__ == "__main__":
    main()
