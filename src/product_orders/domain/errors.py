"""Domain-specific exception classes for the participation lifecycle."""

from __future__ import annotations

from collections.abc import Iterable

from product_orders.domain.types import OrderKind, ParticipantStatus


class LifecycleError(Exception):
    """Base class for all domain errors in the participation lifecycle.

    Attributes:
        message: Human-readable description of the failure.
        offending_ids: Influencer ids that caused the failure, so a caller
            can retry with a corrected subset.  Empty when not applicable.
    """

    def __init__(self, message: str, offending_ids: Iterable[int] = ()) -> None:
        self.message = message
        self.offending_ids: list[int] = list(offending_ids)
        super().__init__(message)


class NotFoundError(LifecycleError):
    """A referenced order, influencer or participant does not exist."""


class BadRequestError(LifecycleError):
    """One or more targets fail a precondition (membership or status)."""


class ForbiddenError(LifecycleError):
    """The operation is structurally disallowed regardless of status."""


class ConflictError(LifecycleError):
    """A concurrent duplicate creation hit the uniqueness constraint."""


class InvalidTransitionError(BadRequestError):
    """Raised when an event has no edge from the participant's current status.

    Attributes:
        current_state: The status the participant was in.
        event: The event that was rejected.
        kind: The order kind the transition table was consulted for.
    """

    def __init__(
        self,
        current_state: ParticipantStatus,
        event: str,
        kind: OrderKind,
        offending_ids: Iterable[int] = (),
    ) -> None:
        self.current_state = current_state
        self.event = event
        self.kind = kind
        super().__init__(
            f"Cannot apply event '{event}' in state '{current_state}' for a {kind}",
            offending_ids,
        )
