"""Collaborator interfaces for the participation lifecycle.

The lifecycle service depends only on these contracts; the SQLite adapters in
``product_orders.store`` and ``product_orders.notifications`` implement them,
and tests can substitute fakes.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from contextlib import AbstractContextManager
from decimal import Decimal
from typing import Protocol, TypeVar, runtime_checkable

from product_orders.domain.models import (
    InfluencerRate,
    Participant,
    ProductOrder,
    Submission,
)
from product_orders.domain.types import (
    Currency,
    OrderKind,
    OrderStatus,
    ParticipantStatus,
)
from product_orders.notifications.models import LifecycleEvent
from product_orders.store.query import OrderProjection, ParticipantQuery

T = TypeVar("T")


@runtime_checkable
class Repository(Protocol):
    """Transactional persistence for product orders and participants."""

    def transaction(self) -> AbstractContextManager[None]:
        """Open a transaction scope; nested scopes join the outer one."""
        ...

    def run_in_transaction(self, fn: Callable[[], T]) -> T:
        """Run *fn* inside one transaction and return its result."""
        ...

    def find_order(
        self, order_id: int, projection: OrderProjection | None = None
    ) -> ProductOrder | None:
        """Read an order, hydrating the relations named by *projection*."""
        ...

    def find_participants(
        self, order_id: int, influencer_ids: Sequence[int]
    ) -> list[Participant]:
        """Return the participants of *order_id* among *influencer_ids*."""
        ...

    def find_participant(self, order_id: int, influencer_id: int) -> Participant | None:
        """Return one participant, or ``None`` if not in the order."""
        ...

    def upsert_participant(
        self,
        order_id: int,
        influencer_id: int,
        agreed_amount: Decimal,
        currency: Currency,
    ) -> Participant:
        """Create at ADDED, or refresh amount/currency of an existing row.

        Raises:
            DuplicateRecordError: If a concurrent insert won the race.
        """
        ...

    def update_status(
        self, participant_ids: Sequence[int], status: ParticipantStatus
    ) -> int:
        """Set *status* on the given participant rows; return rows changed."""
        ...

    def update_status_where(
        self, query: ParticipantQuery, status: ParticipantStatus
    ) -> list[Participant]:
        """Set *status* on every row matching *query*; return the rows as before."""
        ...

    def set_order_status(self, order_id: int, status: OrderStatus) -> None:
        """Move an order to a new coarse status."""
        ...

    def upsert_submission(
        self, order_id: int, influencer_id: int, submission: Submission
    ) -> None:
        """Create or replace the submission keyed by (order, influencer)."""
        ...


@runtime_checkable
class Notifier(Protocol):
    """Fire-and-forget delivery of lifecycle events."""

    def publish(
        self,
        event: LifecycleEvent,
        kind: OrderKind,
        order_id: int,
        recipient_ids: Sequence[int],
    ) -> None:
        """Deliver *event* to *recipient_ids*; the return value is ignored."""
        ...


@runtime_checkable
class UserDirectory(Protocol):
    """Influencer lookups needed when adding influencers to an order."""

    def find_rates(
        self, influencer_ids: Sequence[int], kind: OrderKind, post_type: str
    ) -> dict[int, InfluencerRate]:
        """Return rates keyed by influencer id; unknown ids are absent."""
        ...

