"""Transition maps defining all valid (state, event) -> state mappings.

Campaigns and surveys share one diagram except that surveys have no MATCHING
step and label the submission state TO_BE_ANSWERED instead of
TO_BE_SUBMITTED.  The per-kind maps below are generated from that single
description.
"""

from enum import StrEnum

from product_orders.domain.types import (
    OrderKind,
    OrderStatus,
    ParticipantStatus,
    submission_status,
)


class ParticipantEvent(StrEnum):
    """Events that can trigger participant status transitions."""

    INVITE = "invite"
    ACCEPT = "accept"
    DECLINE = "decline"
    CONFIRM_MATCH = "confirm_match"
    SUBMIT = "submit"
    APPROVE = "approve"
    DISAPPROVE = "disapprove"
    MARK_PAYABLE = "mark_payable"
    PAY = "pay"
    REMOVE = "remove"
    WITHDRAW = "withdraw"


class OrderEvent(StrEnum):
    """Events that move a product order through its coarse lifecycle."""

    START = "start"
    FINISH = "finish"
    ARCHIVE = "archive"


def _build_transitions(
    kind: OrderKind,
) -> dict[tuple[ParticipantStatus, str], ParticipantStatus]:
    s = ParticipantStatus
    submission = submission_status(kind)
    table: dict[tuple[ParticipantStatus, str], ParticipantStatus] = {
        # Invitation (re-inviting is a repeat invitation, not an error)
        (s.ADDED, ParticipantEvent.INVITE): s.INVITED,
        (s.INVITED, ParticipantEvent.INVITE): s.INVITED,
        (s.INVITED, ParticipantEvent.DECLINE): s.DECLINED,
        # Submission and review
        (submission, ParticipantEvent.SUBMIT): s.TO_BE_APPROVED,
        (s.NOT_APPROVED, ParticipantEvent.SUBMIT): s.TO_BE_APPROVED,
        (s.TO_BE_APPROVED, ParticipantEvent.APPROVE): s.APPROVED,
        (s.NOT_APPROVED, ParticipantEvent.APPROVE): s.APPROVED,
        (s.TO_BE_APPROVED, ParticipantEvent.DISAPPROVE): s.NOT_APPROVED,
        # Payment
        (s.APPROVED, ParticipantEvent.MARK_PAYABLE): s.TO_BE_PAID,
        (s.TO_BE_PAID, ParticipantEvent.PAY): s.PAID,
    }

    if kind is OrderKind.CAMPAIGN:
        table[(s.INVITED, ParticipantEvent.ACCEPT)] = s.MATCHING
        table[(s.MATCHING, ParticipantEvent.CONFIRM_MATCH)] = submission
    else:
        table[(s.INVITED, ParticipantEvent.ACCEPT)] = submission

    for status in PRE_APPLICATION_STATUSES[kind]:
        table[(status, ParticipantEvent.REMOVE)] = s.NOT_SELECTED
    for status in POST_APPLICATION_STATUSES[kind]:
        table[(status, ParticipantEvent.REMOVE)] = s.REMOVED

    # Self-withdrawal is possible from every accepted, still-open participation.
    for status in ParticipantStatus:
        if status.is_terminal or status <= s.INVITED:
            continue
        if status in _FOREIGN_STATUSES[kind]:
            continue
        table[(status, ParticipantEvent.WITHDRAW)] = s.WITHDRAWN

    return table


# Statuses that never occur for a kind.
_FOREIGN_STATUSES: dict[OrderKind, frozenset[ParticipantStatus]] = {
    OrderKind.CAMPAIGN: frozenset({ParticipantStatus.TO_BE_ANSWERED}),
    OrderKind.SURVEY: frozenset(
        {ParticipantStatus.MATCHING, ParticipantStatus.TO_BE_SUBMITTED}
    ),
}

# Removal before the influencer applied is harmless (NOT_SELECTED); after it
# is consequential (REMOVED).  Statuses outside both buckets are untouched.
PRE_APPLICATION_STATUSES: dict[OrderKind, frozenset[ParticipantStatus]] = {
    OrderKind.CAMPAIGN: frozenset(
        {ParticipantStatus.ADDED, ParticipantStatus.INVITED, ParticipantStatus.MATCHING}
    ),
    OrderKind.SURVEY: frozenset({ParticipantStatus.ADDED, ParticipantStatus.INVITED}),
}

POST_APPLICATION_STATUSES: dict[OrderKind, frozenset[ParticipantStatus]] = {
    kind: frozenset(
        {
            submission_status(kind),
            ParticipantStatus.TO_BE_APPROVED,
            ParticipantStatus.APPROVED,
            ParticipantStatus.TO_BE_PAID,
            ParticipantStatus.PAID,
        }
    )
    for kind in OrderKind
}

# All valid (current_state, event_string) -> next_state mappings per order
# kind.  Any pair not in a kind's dict is an invalid transition.
TRANSITIONS: dict[OrderKind, dict[tuple[ParticipantStatus, str], ParticipantStatus]] = {
    kind: _build_transitions(kind) for kind in OrderKind
}

ORDER_TRANSITIONS: dict[tuple[OrderStatus, str], OrderStatus] = {
    (OrderStatus.IN_PREPARATION, OrderEvent.START): OrderStatus.ON_GOING,
    (OrderStatus.ON_GOING, OrderEvent.FINISH): OrderStatus.FINISHED,
    (OrderStatus.FINISHED, OrderEvent.ARCHIVE): OrderStatus.ARCHIVED,
}

# Participant states that reject all events -- no outgoing transitions allowed.
TERMINAL_STATES: frozenset[ParticipantStatus] = frozenset(
    status for status in ParticipantStatus if status.is_terminal
)


def source_states(kind: OrderKind, event: str) -> frozenset[ParticipantStatus]:
    """Return every status from which *event* is legal for *kind*."""
    return frozenset(state for state, ev in TRANSITIONS[kind] if ev == event)
