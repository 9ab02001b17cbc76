"""Participant state machine with transition validation."""

from product_orders.state_machine.machine import ParticipantStateMachine
from product_orders.state_machine.transitions import (
    ORDER_TRANSITIONS,
    POST_APPLICATION_STATUSES,
    PRE_APPLICATION_STATUSES,
    TERMINAL_STATES,
    TRANSITIONS,
    OrderEvent,
    ParticipantEvent,
    source_states,
)

__all__ = [
    "ORDER_TRANSITIONS",
    "OrderEvent",
    "POST_APPLICATION_STATUSES",
    "PRE_APPLICATION_STATUSES",
    "ParticipantEvent",
    "ParticipantStateMachine",
    "TERMINAL_STATES",
    "TRANSITIONS",
    "source_states",
]
