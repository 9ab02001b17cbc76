"""SQLite-backed repository for product orders and their participants.

Accepts a sqlite3.Connection and uses parameterized queries exclusively.
Methods never commit on their own; atomicity comes from
:meth:`SqliteRepository.transaction`.
"""

from __future__ import annotations

import dataclasses
import sqlite3
import threading
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any, TypeVar

import structlog

from product_orders.domain.models import (
    CampaignSubmission,
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
from product_orders.store.errors import DuplicateRecordError
from product_orders.store.query import OrderProjection, ParticipantQuery

logger = structlog.get_logger()

T = TypeVar("T")

_PARTICIPANT_COLUMNS = "id, product_order_id, influencer_id, status, agreed_amount, currency"


def _now() -> str:
    return datetime.now(tz=UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


def _participant_from_row(row: tuple[Any, ...]) -> Participant:
    return Participant(
        id=row[0],
        product_order_id=row[1],
        influencer_id=row[2],
        status=ParticipantStatus(row[3]),
        agreed_amount=Decimal(row[4]),
        currency=Currency(row[5]),
    )


class SqliteRepository:
    """Persist product orders and participants in SQLite.

    All multi-statement writes run inside :meth:`transaction`.  Transactions
    nest: an inner scope joins the outermost one, which alone issues
    ``BEGIN IMMEDIATE`` / ``COMMIT`` / ``ROLLBACK``.  A re-entrant lock keeps
    one writer per connection when the HTTP layer serves requests from a
    thread pool.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        """Initialize with an open database connection.

        Args:
            conn: An open sqlite3.Connection whose database already has the
                  lifecycle tables (see ``init_lifecycle_tables``).  The
                  connection is switched to autocommit mode so transaction
                  boundaries are controlled explicitly.
        """
        conn.isolation_level = None
        self._conn = conn
        self._lock = threading.RLock()
        self._depth = 0

    @property
    def connection(self) -> sqlite3.Connection:
        """The shared connection; write to it only inside :meth:`transaction`."""
        return self._conn

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Open a transaction scope; any exception rolls back every write in it."""
        with self._lock:
            if self._depth > 0:
                self._depth += 1
                try:
                    yield
                finally:
                    self._depth -= 1
                return

            self._conn.execute("BEGIN IMMEDIATE")
            self._depth = 1
            try:
                yield
            except BaseException:
                self._conn.execute("ROLLBACK")
                logger.debug("transaction_rolled_back")
                raise
            else:
                self._conn.execute("COMMIT")
            finally:
                self._depth = 0

    def run_in_transaction(self, fn: Callable[[], T]) -> T:
        """Run *fn* inside one transaction and return its result."""
        with self.transaction():
            return fn()

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    def create_order(
        self,
        kind: OrderKind,
        *,
        post_type: str | None = None,
        client_id: int | None = None,
        instructions: str | None = None,
        status: OrderStatus = OrderStatus.IN_PREPARATION,
    ) -> ProductOrder:
        """Insert a new product order and return it.

        The order is validated through the ``ProductOrder`` model first, so a
        post type that does not belong to *kind* is rejected before insert.
        """
        draft = ProductOrder(
            id=0,
            kind=kind,
            status=status,
            post_type=post_type,
            client_id=client_id,
            instructions=instructions,
        )
        cursor = self._conn.execute(
            """
            INSERT INTO product_order (kind, status, post_type, client_id, instructions)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                draft.kind.value,
                draft.status.value,
                draft.post_type,
                draft.client_id,
                draft.instructions,
            ),
        )
        return draft.model_copy(update={"id": cursor.lastrowid})

    def find_order(
        self, order_id: int, projection: OrderProjection | None = None
    ) -> ProductOrder | None:
        """Read an order, hydrating the relations named by *projection*.

        Args:
            order_id: The product order id.
            projection: Which relations to load.  ``None`` loads none.

        Returns:
            The order, or ``None`` if it does not exist.
        """
        row = self._conn.execute(
            """
            SELECT id, kind, status, post_type, client_id, instructions
            FROM product_order WHERE id = ?
            """,
            (order_id,),
        ).fetchone()
        if row is None:
            return None

        participants: list[Participant] = []
        if projection is not None and projection.participants is not None:
            query = dataclasses.replace(projection.participants, product_order_id=order_id)
            participants = self.list_participants(query)

        return ProductOrder(
            id=row[0],
            kind=OrderKind(row[1]),
            status=OrderStatus(row[2]),
            post_type=row[3],
            client_id=row[4],
            instructions=row[5],
            participants=participants,
        )

    def set_order_status(self, order_id: int, status: OrderStatus) -> None:
        self._conn.execute(
            "UPDATE product_order SET status = ?, updated_at = ? WHERE id = ?",
            (status.value, _now(), order_id),
        )

    # ------------------------------------------------------------------
    # Participants: reads
    # ------------------------------------------------------------------

    def list_participants(self, query: ParticipantQuery) -> list[Participant]:
        """Return every participant matching *query*, ordered by influencer id."""
        where_clause, params = query.to_sql()
        cursor = self._conn.execute(
            f"SELECT {_PARTICIPANT_COLUMNS} FROM product_order_influencer "
            f"{where_clause} ORDER BY influencer_id",
            params,
        )
        return [_participant_from_row(row) for row in cursor.fetchall()]

    def find_participants(
        self, order_id: int, influencer_ids: Sequence[int]
    ) -> list[Participant]:
        return self.list_participants(
            ParticipantQuery.build(product_order_id=order_id, influencer_ids=influencer_ids)
        )

    def find_participant(self, order_id: int, influencer_id: int) -> Participant | None:
        found = self.find_participants(order_id, [influencer_id])
        return found[0] if found else None

    # ------------------------------------------------------------------
    # Participants: writes
    # ------------------------------------------------------------------

    def upsert_participant(
        self,
        order_id: int,
        influencer_id: int,
        agreed_amount: Decimal,
        currency: Currency,
    ) -> Participant:
        """Create a participant at ADDED, or refresh amount/currency in place.

        An existing participant keeps its status; only ``agreed_amount`` and
        ``currency`` change.

        Raises:
            DuplicateRecordError: If another writer inserted the same
                ``(order, influencer)`` pair between the read and the insert.
        """
        with self.transaction():
            existing = self.find_participant(order_id, influencer_id)
            now = _now()
            if existing is not None:
                self._conn.execute(
                    """
                    UPDATE product_order_influencer
                    SET agreed_amount = ?, currency = ?, updated_at = ?
                    WHERE id = ?
                    """,
                    (str(agreed_amount), currency.value, now, existing.id),
                )
            else:
                try:
                    self._conn.execute(
                        """
                        INSERT INTO product_order_influencer (
                            product_order_id, influencer_id, status,
                            agreed_amount, currency, created_at, updated_at
                        ) VALUES (?, ?, ?, ?, ?, ?, ?)
                        """,
                        (
                            order_id,
                            influencer_id,
                            ParticipantStatus.ADDED.value,
                            str(agreed_amount),
                            currency.value,
                            now,
                            now,
                        ),
                    )
                except sqlite3.IntegrityError as exc:
                    if "UNIQUE" not in str(exc).upper():
                        raise
                    raise DuplicateRecordError(
                        f"Influencer {influencer_id} is already in order {order_id}"
                    ) from exc

            participant = self.find_participant(order_id, influencer_id)
            if participant is None:
                raise RuntimeError(
                    f"Influencer {influencer_id} missing from order {order_id} after upsert"
                )
        return participant

    def update_status(
        self, participant_ids: Sequence[int], status: ParticipantStatus
    ) -> int:
        """Set *status* on the given participant rows.

        Returns:
            The number of rows changed.
        """
        if not participant_ids:
            return 0
        placeholders = ", ".join("?" for _ in participant_ids)
        cursor = self._conn.execute(
            f"UPDATE product_order_influencer SET status = ?, updated_at = ? "
            f"WHERE id IN ({placeholders})",
            [status.value, _now(), *participant_ids],
        )
        return cursor.rowcount

    def update_status_where(
        self, query: ParticipantQuery, status: ParticipantStatus
    ) -> list[Participant]:
        """Set *status* on every participant matching *query*.

        Returns:
            The matched participants as they were before the update.
        """
        with self.transaction():
            matched = self.list_participants(query)
            self.update_status([p.id for p in matched], status)
        return matched

    # ------------------------------------------------------------------
    # Submissions
    # ------------------------------------------------------------------

    def upsert_submission(
        self, order_id: int, influencer_id: int, submission: Submission
    ) -> None:
        """Create or replace the submission keyed by ``(order, influencer)``."""
        if isinstance(submission, CampaignSubmission):
            values: tuple[Any, ...] = (submission.submission_link, None, None, None)
        else:
            values = (
                None,
                submission.question_id,
                submission.option_id,
                submission.response_text,
            )
        self._conn.execute(
            """
            INSERT INTO submission (
                product_order_id, influencer_id, submission_link,
                question_id, option_id, response_text, submitted_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT (product_order_id, influencer_id) DO UPDATE SET
                submission_link = excluded.submission_link,
                question_id = excluded.question_id,
                option_id = excluded.option_id,
                response_text = excluded.response_text,
                submitted_at = excluded.submitted_at
            """,
            (order_id, influencer_id, *values, _now()),
        )

    def find_submission(self, order_id: int, influencer_id: int) -> dict[str, Any] | None:
        """Return the stored submission as a dict, or ``None``."""
        cursor = self._conn.execute(
            "SELECT * FROM submission WHERE product_order_id = ? AND influencer_id = ?",
            (order_id, influencer_id),
        )
        row = cursor.fetchone()
        if row is None:
            return None
        columns = [c[0] for c in cursor.description]
        return dict(zip(columns, row, strict=True))
