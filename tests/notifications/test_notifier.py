"""Tests for notifier implementations and publish_safely."""

from __future__ import annotations

import sqlite3
import threading

from prometheus_client import REGISTRY

from product_orders.domain.types import OrderKind
from product_orders.notifications.models import (
    NOTIFICATION_CODES,
    LifecycleEvent,
    NotificationType,
)
from product_orders.notifications.notifier import (
    LoggingNotifier,
    SqliteNotifier,
    publish_safely,
)
from product_orders.notifications.store import query_notifications
from product_orders.store.repository import SqliteRepository


class FailingNotifier:
    def __init__(self) -> None:
        self.calls = 0

    def publish(self, event, kind, order_id, recipient_ids) -> None:
        self.calls += 1
        raise ConnectionError("push gateway down")


def _failures(event: LifecycleEvent) -> float:
    return (
        REGISTRY.get_sample_value(
            "product_order_notification_failures_total", {"event": event.value}
        )
        or 0.0
    )


class TestNotificationCodes:
    def test_campaign_and_survey_codes_differ(self):
        campaign = NOTIFICATION_CODES[(OrderKind.CAMPAIGN, LifecycleEvent.INFLUENCER_INVITED)]
        survey = NOTIFICATION_CODES[(OrderKind.SURVEY, LifecycleEvent.INFLUENCER_INVITED)]
        assert campaign == 205
        assert survey == 502

    def test_survey_has_no_add_code(self):
        assert (OrderKind.SURVEY, LifecycleEvent.INFLUENCER_ADDED) not in NOTIFICATION_CODES


class TestSqliteNotifier:
    def test_one_row_per_recipient(
        self, conn: sqlite3.Connection, repository: SqliteRepository
    ):
        SqliteNotifier(repository).publish(
            LifecycleEvent.ORDER_STARTED, OrderKind.SURVEY, 12, [4, 5]
        )

        for recipient in (4, 5):
            (row,) = query_notifications(conn, recipient)
            assert row["event"] == "order_started"
            assert row["order_kind"] == "survey"
            assert row["product_order_id"] == 12
            assert row["notification_type"] == NotificationType.SURVEY_STARTED
            assert row["is_read"] == 0

    def test_event_without_code_is_stored_uncoded(
        self, conn: sqlite3.Connection, repository: SqliteRepository
    ):
        SqliteNotifier(repository).publish(
            LifecycleEvent.MATCH_CONFIRMED, OrderKind.CAMPAIGN, 3, [8]
        )
        (row,) = query_notifications(conn, 8)
        assert row["notification_type"] is None

    def test_empty_recipients_write_nothing(
        self, conn: sqlite3.Connection, repository: SqliteRepository
    ):
        SqliteNotifier(repository).publish(
            LifecycleEvent.ORDER_ARCHIVED, OrderKind.CAMPAIGN, 3, []
        )
        count = conn.execute("SELECT COUNT(*) FROM notification").fetchone()[0]
        assert count == 0

    def test_publish_outlives_another_threads_rollback(
        self, conn: sqlite3.Connection, repository: SqliteRepository
    ):
        inside = threading.Event()
        release = threading.Event()
        failures: list[Exception] = []

        def failing_writer() -> None:
            try:
                with repository.transaction():
                    conn.execute(
                        "INSERT INTO notification (created_at, event, order_kind, "
                        "product_order_id, recipient_id) VALUES ('t', 'x', 'campaign', 9, 501)"
                    )
                    inside.set()
                    release.wait(timeout=5)
                    raise RuntimeError("writer failed")
            except RuntimeError as exc:
                failures.append(exc)

        writer = threading.Thread(target=failing_writer)
        writer.start()
        assert inside.wait(timeout=5)

        delivered: list[bool] = []
        publisher = threading.Thread(
            target=lambda: delivered.append(
                publish_safely(
                    SqliteNotifier(repository),
                    LifecycleEvent.ORDER_ARCHIVED,
                    OrderKind.CAMPAIGN,
                    7,
                    [500],
                )
            )
        )
        publisher.start()
        publisher.join(timeout=0.2)
        assert publisher.is_alive()

        release.set()
        writer.join(timeout=5)
        publisher.join(timeout=5)

        assert len(failures) == 1
        assert delivered == [True]
        assert len(query_notifications(conn, 500)) == 1
        assert query_notifications(conn, 501) == []


class TestLoggingNotifier:
    def test_publish_does_not_raise(self):
        LoggingNotifier().publish(LifecycleEvent.INVITE_DECLINED, OrderKind.SURVEY, 1, [2])


class TestPublishSafely:
    def test_returns_true_on_success(self, notifier):
        assert publish_safely(
            notifier, LifecycleEvent.INFLUENCER_ADDED, OrderKind.CAMPAIGN, 1, [3]
        )
        assert notifier.published == [
            (LifecycleEvent.INFLUENCER_ADDED, OrderKind.CAMPAIGN, 1, [3])
        ]

    def test_swallows_and_counts_failures(self):
        failing = FailingNotifier()
        before = _failures(LifecycleEvent.ORDER_FINISHED)

        delivered = publish_safely(
            failing, LifecycleEvent.ORDER_FINISHED, OrderKind.CAMPAIGN, 1, [3, 4]
        )

        assert delivered is False
        assert failing.calls == 1
        assert _failures(LifecycleEvent.ORDER_FINISHED) == before + 1

    def test_no_recipients_skips_delivery(self):
        failing = FailingNotifier()
        assert publish_safely(failing, LifecycleEvent.ORDER_ARCHIVED, OrderKind.SURVEY, 1, [])
        assert failing.calls == 0
