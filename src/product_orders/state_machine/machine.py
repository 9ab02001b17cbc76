"""ParticipantStateMachine class with trigger, history, and valid_events."""

from __future__ import annotations

from product_orders.domain.errors import InvalidTransitionError
from product_orders.domain.types import OrderKind, ParticipantStatus
from product_orders.state_machine.transitions import TERMINAL_STATES, TRANSITIONS


class ParticipantStateMachine:
    """Finite state machine governing one participant of a product order.

    The transition map consulted depends on the order *kind*: campaigns pass
    through MATCHING after accepting an invitation, surveys go straight to
    TO_BE_ANSWERED.

    Usage::

        sm = ParticipantStateMachine(OrderKind.CAMPAIGN)
        sm.trigger("invite")          # -> INVITED
        sm.trigger("accept")          # -> MATCHING
        sm.trigger("confirm_match")   # -> TO_BE_SUBMITTED
    """

    def __init__(
        self,
        kind: OrderKind,
        initial_state: ParticipantStatus = ParticipantStatus.ADDED,
    ) -> None:
        self._kind = kind
        self._state: ParticipantStatus = initial_state
        self._history: list[tuple[ParticipantStatus, str, ParticipantStatus]] = []

    @property
    def kind(self) -> OrderKind:
        return self._kind

    @property
    def state(self) -> ParticipantStatus:
        """Return the current participant status."""
        return self._state

    @property
    def is_terminal(self) -> bool:
        """Return True if the participant has left the order for good."""
        return self._state in TERMINAL_STATES

    @property
    def history(self) -> list[tuple[ParticipantStatus, str, ParticipantStatus]]:
        """Return a copy of the ``(from_state, event, to_state)`` history."""
        return list(self._history)

    def can_trigger(self, event: str) -> bool:
        """Return True if *event* has an edge from the current status."""
        return (self._state, event) in TRANSITIONS[self._kind]

    def peek(self, event: str) -> ParticipantStatus:
        """Return the status *event* would lead to without applying it.

        Raises:
            InvalidTransitionError: If the event has no edge from the current
                status.
        """
        key = (self._state, event)
        if self.is_terminal or key not in TRANSITIONS[self._kind]:
            raise InvalidTransitionError(self._state, event, self._kind)
        return TRANSITIONS[self._kind][key]

    def trigger(self, event: str) -> ParticipantStatus:
        """Apply an event to the current status and transition.

        Args:
            event: The event string (e.g. ``"invite"``).

        Returns:
            The new status after the transition.

        Raises:
            InvalidTransitionError: If the transition is not allowed from
                the current status, or if the participant is terminal.
        """
        new_state = self.peek(event)
        self._history.append((self._state, event, new_state))
        self._state = new_state
        return new_state

    def get_valid_events(self) -> list[str]:
        """Return a sorted list of events valid from the current status."""
        if self.is_terminal:
            return []
        return sorted(
            str(event) for state, event in TRANSITIONS[self._kind] if state == self._state
        )
