"""Notifier implementations and the fire-and-forget publish helper.

Delivery happens after the lifecycle transaction has committed.  A failing
notifier must never undo a transition, so :func:`publish_safely` logs the
failure and returns instead of raising.  Failed deliveries are not retried.
"""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from product_orders.domain.types import OrderKind
from product_orders.notifications.models import (
    NOTIFICATION_CODES,
    LifecycleEvent,
    Notification,
)
from product_orders.notifications.store import insert_notifications
from product_orders.observability.metrics import NOTIFICATION_FAILURES
from product_orders.store.repository import SqliteRepository

logger = structlog.get_logger()


class SqliteNotifier:
    """Write one inbox row per recipient into the ``notification`` table.

    Rows are written in a transaction of their own on the repository's
    connection, so a publish never joins another thread's open write.

    Args:
        repository: Repository whose database has the notification table
                    (see ``init_notification_table``).
    """

    def __init__(self, repository: SqliteRepository) -> None:
        self._repository = repository

    def publish(
        self,
        event: LifecycleEvent,
        kind: OrderKind,
        order_id: int,
        recipient_ids: Sequence[int],
    ) -> None:
        code = NOTIFICATION_CODES.get((kind, event))
        notifications = [
            Notification(
                event=event,
                kind=kind,
                product_order_id=order_id,
                recipient_id=recipient_id,
                notification_type=code,
            )
            for recipient_id in recipient_ids
        ]
        if notifications:
            with self._repository.transaction():
                insert_notifications(self._repository.connection, notifications)


class LoggingNotifier:
    """Notifier that only logs; used when notification storage is disabled."""

    def publish(
        self,
        event: LifecycleEvent,
        kind: OrderKind,
        order_id: int,
        recipient_ids: Sequence[int],
    ) -> None:
        logger.info(
            "notification_skipped",
            lifecycle_event=event.value,
            kind=kind.value,
            order_id=order_id,
            recipient_ids=list(recipient_ids),
        )


def publish_safely(
    notifier: object,
    event: LifecycleEvent,
    kind: OrderKind,
    order_id: int,
    recipient_ids: Sequence[int],
) -> bool:
    """Publish *event* and swallow delivery failures.

    Args:
        notifier: Any object implementing the ``Notifier`` protocol.
        event: The lifecycle event to deliver.
        kind: Kind of the order the event belongs to.
        order_id: The product order id.
        recipient_ids: Users to notify.  Nothing is sent when empty.

    Returns:
        True if the notifier accepted the event, False if it raised.
    """
    if not recipient_ids:
        return True
    try:
        notifier.publish(event, kind, order_id, list(recipient_ids))  # type: ignore[attr-defined]
    except Exception:
        NOTIFICATION_FAILURES.labels(event=event.value).inc()
        logger.exception(
            "notification_delivery_failed",
            lifecycle_event=event.value,
            kind=kind.value,
            order_id=order_id,
            recipient_ids=list(recipient_ids),
        )
        return False
    return True
