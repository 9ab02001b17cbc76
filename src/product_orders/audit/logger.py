"""Convenience class for inserting audit trail entries.

Each method creates a properly structured :class:`AuditEntry` and inserts it
via :func:`insert_audit_entry`.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterable

from product_orders.audit.models import AuditEntry, EventType
from product_orders.audit.store import insert_audit_entry
from product_orders.domain.models import Participant


class AuditLogger:
    """Typed convenience API for inserting audit entries.

    Args:
        conn: An open SQLite connection to the database holding ``audit_log``.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def log_participant_added(
        self,
        product_order_id: int,
        order_kind: str,
        participant: Participant,
    ) -> int:
        """Log an add (or amount refresh) of a participant.

        Returns:
            The row ID of the inserted audit entry.
        """
        entry = AuditEntry(
            event_type=EventType.PARTICIPANT_ADDED,
            product_order_id=product_order_id,
            order_kind=order_kind,
            influencer_id=participant.influencer_id,
            to_status=participant.status.value,
            metadata={
                "agreed_amount": str(participant.agreed_amount),
                "currency": participant.currency.value,
            },
        )
        return insert_audit_entry(self._conn, entry)

    def log_status_transitions(
        self,
        product_order_id: int,
        order_kind: str,
        participants: Iterable[Participant],
        event: str,
        to_status: str,
    ) -> int:
        """Log one entry per participant moved by *event*.

        Args:
            product_order_id: The order the participants belong to.
            order_kind: ``campaign`` or ``survey``.
            participants: The participants as they were before the change.
            event: The lifecycle event that triggered the change.
            to_status: The status every participant moved to.

        Returns:
            The number of entries written.
        """
        written = 0
        for participant in participants:
            insert_audit_entry(
                self._conn,
                AuditEntry(
                    event_type=EventType.STATUS_TRANSITION,
                    product_order_id=product_order_id,
                    order_kind=order_kind,
                    influencer_id=participant.influencer_id,
                    event=event,
                    from_status=participant.status.value,
                    to_status=to_status,
                ),
            )
            written += 1
        return written

    def log_order_transition(
        self,
        product_order_id: int,
        order_kind: str,
        from_status: str,
        to_status: str,
        event: str,
    ) -> int:
        """Log a coarse order status change."""
        entry = AuditEntry(
            event_type=EventType.ORDER_TRANSITION,
            product_order_id=product_order_id,
            order_kind=order_kind,
            event=event,
            from_status=from_status,
            to_status=to_status,
        )
        return insert_audit_entry(self._conn, entry)

    def log_submission(
        self,
        product_order_id: int,
        order_kind: str,
        influencer_id: int,
        metadata: dict[str, str] | None = None,
    ) -> int:
        """Log a received submission (campaign link or survey answer)."""
        entry = AuditEntry(
            event_type=EventType.SUBMISSION_RECEIVED,
            product_order_id=product_order_id,
            order_kind=order_kind,
            influencer_id=influencer_id,
            metadata=metadata,
        )
        return insert_audit_entry(self._conn, entry)
