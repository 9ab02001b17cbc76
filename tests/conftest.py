"""Shared pytest fixtures for the product order lifecycle test suite."""

from __future__ import annotations

import sqlite3
from collections.abc import Callable, Iterator, Sequence
from decimal import Decimal

import pytest

from product_orders.audit.logger import AuditLogger
from product_orders.audit.store import init_audit_table
from product_orders.domain.models import Participant, ProductOrder
from product_orders.domain.types import (
    Currency,
    OrderKind,
    ParticipantStatus,
    PostType,
    SurveyType,
)
from product_orders.lifecycle.service import ProductOrderLifecycle
from product_orders.notifications.models import LifecycleEvent
from product_orders.notifications.store import init_notification_table
from product_orders.store.directory import SqliteUserDirectory
from product_orders.store.repository import SqliteRepository
from product_orders.store.schema import open_database

# Influencers 1-9 exist with amounts for every type; 10 exists without any.
KNOWN_INFLUENCERS = range(1, 10)
NO_AMOUNT_INFLUENCER = 10
CLIENT_ID = 500


class RecordingNotifier:
    """Notifier fake that keeps every published event in memory."""

    def __init__(self) -> None:
        self.published: list[tuple[LifecycleEvent, OrderKind, int, list[int]]] = []

    def publish(
        self,
        event: LifecycleEvent,
        kind: OrderKind,
        order_id: int,
        recipient_ids: Sequence[int],
    ) -> None:
        self.published.append((event, kind, order_id, list(recipient_ids)))

    def events(self) -> list[LifecycleEvent]:
        return [event for event, *_ in self.published]

    def recipients(self, event: LifecycleEvent) -> list[int]:
        return [r for e, _k, _o, ids in self.published if e is event for r in ids]


@pytest.fixture
def conn() -> Iterator[sqlite3.Connection]:
    """In-memory database with lifecycle, audit and notification tables."""
    connection = open_database(":memory:")
    init_audit_table(connection)
    init_notification_table(connection)
    yield connection
    connection.close()


@pytest.fixture
def repository(conn: sqlite3.Connection) -> SqliteRepository:
    return SqliteRepository(conn)


@pytest.fixture
def directory(conn: sqlite3.Connection) -> SqliteUserDirectory:
    """Directory pre-populated with influencers 1-10."""
    users = SqliteUserDirectory(conn)
    amounts = {
        **{(OrderKind.CAMPAIGN, t.value): Decimal("250.00") for t in PostType},
        **{(OrderKind.SURVEY, t.value): Decimal("40.00") for t in SurveyType},
    }
    for influencer_id in KNOWN_INFLUENCERS:
        users.register_influencer(influencer_id, Currency.EUR, amounts)
    users.register_influencer(NO_AMOUNT_INFLUENCER, Currency.CHF)
    return users


@pytest.fixture
def audit_logger(conn: sqlite3.Connection) -> AuditLogger:
    return AuditLogger(conn)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def lifecycle(
    repository: SqliteRepository,
    notifier: RecordingNotifier,
    directory: SqliteUserDirectory,
    audit_logger: AuditLogger,
) -> ProductOrderLifecycle:
    return ProductOrderLifecycle(repository, notifier, directory, audit_logger=audit_logger)


@pytest.fixture
def campaign(repository: SqliteRepository) -> ProductOrder:
    """A campaign in preparation, ordering posts, with instructions."""
    return repository.create_order(
        OrderKind.CAMPAIGN,
        post_type=PostType.POST.value,
        client_id=CLIENT_ID,
        instructions="Show the product in daylight.",
    )


@pytest.fixture
def survey(repository: SqliteRepository) -> ProductOrder:
    """A survey in preparation, ordering a questionnaire, with instructions."""
    return repository.create_order(
        OrderKind.SURVEY,
        post_type=SurveyType.QUESTIONNAIRE.value,
        client_id=CLIENT_ID,
        instructions="Answer every question.",
    )


SeatFn = Callable[..., Participant]
StatusFn = Callable[[ProductOrder, int], ParticipantStatus]


@pytest.fixture
def seat(repository: SqliteRepository, directory: SqliteUserDirectory) -> SeatFn:
    """Return a helper that inserts a participant directly in a given status.

    Depends on ``directory`` so the referenced influencers exist.
    """

    def _seat(
        order: ProductOrder,
        influencer_id: int,
        status: ParticipantStatus = ParticipantStatus.ADDED,
    ) -> Participant:
        participant = repository.upsert_participant(
            order.id, influencer_id, Decimal("250.00"), Currency.EUR
        )
        if status is not ParticipantStatus.ADDED:
            repository.update_status([participant.id], status)
        found = repository.find_participant(order.id, influencer_id)
        assert found is not None
        return found

    return _seat


@pytest.fixture
def status_of(repository: SqliteRepository) -> StatusFn:
    """Return a helper that re-reads a participant's status from the database."""

    def _status_of(order: ProductOrder, influencer_id: int) -> ParticipantStatus:
        found = repository.find_participant(order.id, influencer_id)
        assert found is not None
        return found.status

    return _status_of
