"""Audit trail models for tracking every lifecycle change.

Each entry records which order and influencer were touched, the status
before and after, the triggering event, and arbitrary string metadata.
"""

from enum import StrEnum

from pydantic import BaseModel


class EventType(StrEnum):
    """Types of events tracked in the audit trail."""

    PARTICIPANT_ADDED = "participant_added"
    STATUS_TRANSITION = "status_transition"
    ORDER_TRANSITION = "order_transition"
    SUBMISSION_RECEIVED = "submission_received"


class AuditEntry(BaseModel):
    """A single audit trail entry.

    All fields except event_type and product_order_id are optional to
    accommodate different event types (order transitions have no influencer).
    """

    event_type: EventType
    product_order_id: int
    order_kind: str | None = None
    influencer_id: int | None = None
    event: str | None = None
    from_status: str | None = None
    to_status: str | None = None
    metadata: dict[str, str] | None = None
