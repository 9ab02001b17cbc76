"""SQLite-backed notification inbox.

Follows the audit store: DDL in an ``init_*`` function, parameterized
queries only, rows returned as plain dicts.
"""

from __future__ import annotations

import sqlite3
from datetime import UTC, datetime
from typing import Any

from product_orders.notifications.models import Notification


def init_notification_table(conn: sqlite3.Connection) -> None:
    """Create the notification table and its recipient index if missing.

    Args:
        conn: An open sqlite3.Connection.
    """
    conn.execute("""
        CREATE TABLE IF NOT EXISTS notification (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now')),
            event TEXT NOT NULL,
            notification_type INTEGER,
            order_kind TEXT NOT NULL,
            product_order_id INTEGER NOT NULL,
            recipient_id INTEGER NOT NULL,
            is_read INTEGER NOT NULL DEFAULT 0
        )
    """)
    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_notification_recipient "
        "ON notification (recipient_id, is_read)"
    )


def insert_notifications(conn: sqlite3.Connection, notifications: list[Notification]) -> int:
    """Insert a batch of notifications.

    Args:
        conn: An open database connection.
        notifications: The notifications to store.

    Returns:
        The number of rows inserted.
    """
    created_at = datetime.now(tz=UTC).strftime("%Y-%m-%dT%H:%M:%SZ")
    rows = [
        (
            created_at,
            n.event.value,
            int(n.notification_type) if n.notification_type is not None else None,
            n.kind.value,
            n.product_order_id,
            n.recipient_id,
        )
        for n in notifications
    ]
    conn.executemany(
        """
        INSERT INTO notification (
            created_at, event, notification_type, order_kind,
            product_order_id, recipient_id
        ) VALUES (?, ?, ?, ?, ?, ?)
        """,
        rows,
    )
    return len(rows)


def query_notifications(
    conn: sqlite3.Connection,
    recipient_id: int,
    *,
    product_order_id: int | None = None,
    unread_only: bool = False,
    limit: int = 50,
) -> list[dict[str, Any]]:
    """Return notifications for *recipient_id*, newest first.

    Args:
        conn: An open database connection.
        recipient_id: The user whose inbox is read.
        product_order_id: Filter by order (exact match).
        unread_only: Only return notifications not yet marked read.
        limit: Maximum number of results to return (default 50).

    Returns:
        A list of dicts, one per notification.
    """
    conditions = ["recipient_id = ?"]
    params: list[int] = [recipient_id]

    if product_order_id is not None:
        conditions.append("product_order_id = ?")
        params.append(product_order_id)

    if unread_only:
        conditions.append("is_read = 0")

    query = (
        "SELECT * FROM notification WHERE "
        + " AND ".join(conditions)
        + " ORDER BY id DESC LIMIT ?"
    )
    params.append(limit)

    cursor = conn.execute(query, params)
    columns = [c[0] for c in cursor.description]
    return [dict(zip(columns, row, strict=True)) for row in cursor.fetchall()]
