"""Lifecycle notifications: events, codes, inbox storage, and notifiers."""

from product_orders.notifications.models import (
    NOTIFICATION_CODES,
    LifecycleEvent,
    Notification,
    NotificationType,
)
from product_orders.notifications.notifier import (
    LoggingNotifier,
    SqliteNotifier,
    publish_safely,
)
from product_orders.notifications.store import (
    init_notification_table,
    insert_notifications,
    query_notifications,
)

__all__ = [
    "NOTIFICATION_CODES",
    "LifecycleEvent",
    "LoggingNotifier",
    "Notification",
    "NotificationType",
    "SqliteNotifier",
    "init_notification_table",
    "insert_notifications",
    "publish_safely",
    "query_notifications",
]
