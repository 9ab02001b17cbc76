"""Tests for the ParticipantStateMachine class."""

import pytest

from product_orders.domain.errors import BadRequestError, InvalidTransitionError
from product_orders.domain.types import OrderKind, ParticipantStatus
from product_orders.state_machine.machine import ParticipantStateMachine
from product_orders.state_machine.transitions import TRANSITIONS, ParticipantEvent

S = ParticipantStatus

ALL_EVENTS: list[str] = [e.value for e in ParticipantEvent]

INVALID_CAMPAIGN_PAIRS: list[tuple[ParticipantStatus, str]] = [
    (state, event)
    for state in ParticipantStatus
    if not state.is_terminal
    for event in ALL_EVENTS
    if (state, event) not in TRANSITIONS[OrderKind.CAMPAIGN]
]


class TestValidTransitions:
    """Every edge of each table can be triggered."""

    @pytest.mark.parametrize(
        ("kind", "from_state", "event"),
        [(kind, s, e) for kind in OrderKind for (s, e) in TRANSITIONS[kind]],
    )
    def test_trigger_follows_table(self, kind: OrderKind, from_state: S, event: str) -> None:
        sm = ParticipantStateMachine(kind, from_state)
        new_state = sm.trigger(event)
        assert new_state is TRANSITIONS[kind][(from_state, event)]
        assert sm.state is new_state


class TestInvalidTransitions:
    """Events without an edge raise and leave the state untouched."""

    @pytest.mark.parametrize(("from_state", "event"), INVALID_CAMPAIGN_PAIRS)
    def test_invalid_raises(self, from_state: S, event: str) -> None:
        sm = ParticipantStateMachine(OrderKind.CAMPAIGN, from_state)
        with pytest.raises(InvalidTransitionError):
            sm.trigger(event)
        assert sm.state is from_state
        assert sm.history == []

    @pytest.mark.parametrize(
        "terminal", [s for s in ParticipantStatus if s.is_terminal]
    )
    @pytest.mark.parametrize("event", ALL_EVENTS)
    def test_terminal_rejects_everything(self, terminal: S, event: str) -> None:
        sm = ParticipantStateMachine(OrderKind.SURVEY, terminal)
        assert sm.is_terminal
        with pytest.raises(InvalidTransitionError):
            sm.trigger(event)

    def test_invalid_transition_is_a_bad_request(self) -> None:
        sm = ParticipantStateMachine(OrderKind.CAMPAIGN)
        with pytest.raises(BadRequestError, match="Cannot apply event 'accept' in state 'added'"):
            sm.trigger("accept")

    def test_survey_has_no_confirm_match(self) -> None:
        sm = ParticipantStateMachine(OrderKind.SURVEY, S.TO_BE_ANSWERED)
        with pytest.raises(InvalidTransitionError) as exc_info:
            sm.trigger("confirm_match")
        assert exc_info.value.kind is OrderKind.SURVEY


class TestHappyPath:
    def test_campaign_full_path(self) -> None:
        sm = ParticipantStateMachine(OrderKind.CAMPAIGN)
        for event in ["invite", "accept", "confirm_match", "submit", "approve", "mark_payable", "pay"]:
            sm.trigger(event)
        assert sm.state is S.PAID
        assert [h[1] for h in sm.history] == [
            "invite",
            "accept",
            "confirm_match",
            "submit",
            "approve",
            "mark_payable",
            "pay",
        ]

    def test_survey_resubmission_after_disapproval(self) -> None:
        sm = ParticipantStateMachine(OrderKind.SURVEY, S.TO_BE_ANSWERED)
        sm.trigger("submit")
        sm.trigger("disapprove")
        assert sm.state is S.NOT_APPROVED
        sm.trigger("submit")
        assert sm.state is S.TO_BE_APPROVED

    def test_history_returns_copy(self) -> None:
        sm = ParticipantStateMachine(OrderKind.CAMPAIGN)
        sm.trigger("invite")
        history = sm.history
        history.clear()
        assert len(sm.history) == 1


class TestPeekAndValidEvents:
    def test_peek_does_not_move(self) -> None:
        sm = ParticipantStateMachine(OrderKind.CAMPAIGN, S.INVITED)
        assert sm.peek("accept") is S.MATCHING
        assert sm.state is S.INVITED
        assert sm.history == []

    def test_can_trigger(self) -> None:
        sm = ParticipantStateMachine(OrderKind.SURVEY, S.INVITED)
        assert sm.can_trigger("decline")
        assert not sm.can_trigger("submit")

    def test_valid_events_from_invited(self) -> None:
        sm = ParticipantStateMachine(OrderKind.CAMPAIGN, S.INVITED)
        assert sm.get_valid_events() == ["accept", "decline", "invite", "remove"]

    def test_valid_events_terminal_is_empty(self) -> None:
        sm = ParticipantStateMachine(OrderKind.CAMPAIGN, S.WITHDRAWN)
        assert sm.get_valid_events() == []
