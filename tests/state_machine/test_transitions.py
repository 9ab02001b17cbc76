"""Tests for the participant and order transition maps."""

import pytest

from product_orders.domain.types import OrderKind, OrderStatus, ParticipantStatus
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

S = ParticipantStatus


class TestParticipantEvent:
    """Tests for the ParticipantEvent enum."""

    def test_members(self) -> None:
        assert {e.value for e in ParticipantEvent} == {
            "invite",
            "accept",
            "decline",
            "confirm_match",
            "submit",
            "approve",
            "disapprove",
            "mark_payable",
            "pay",
            "remove",
            "withdraw",
        }

    def test_is_str_enum(self) -> None:
        assert str(ParticipantEvent.CONFIRM_MATCH) == "confirm_match"


class TestTransitionsMap:
    """Structural checks shared by both order kinds."""

    @pytest.mark.parametrize("kind", list(OrderKind))
    def test_terminal_states_never_appear_as_source(self, kind: OrderKind) -> None:
        sources = {state for state, _event in TRANSITIONS[kind]}
        assert not sources & TERMINAL_STATES

    @pytest.mark.parametrize("kind", list(OrderKind))
    def test_every_non_terminal_state_of_the_kind_is_a_source(self, kind: OrderKind) -> None:
        sources = {state for state, _event in TRANSITIONS[kind]}
        foreign = (
            {S.TO_BE_ANSWERED}
            if kind is OrderKind.CAMPAIGN
            else {S.MATCHING, S.TO_BE_SUBMITTED}
        )
        expected = {s for s in ParticipantStatus if not s.is_terminal} - foreign
        assert sources == expected

    @pytest.mark.parametrize("kind", list(OrderKind))
    def test_invite_is_repeatable(self, kind: OrderKind) -> None:
        assert TRANSITIONS[kind][(S.INVITED, ParticipantEvent.INVITE)] is S.INVITED
        assert TRANSITIONS[kind][(S.ADDED, ParticipantEvent.INVITE)] is S.INVITED


class TestCampaignTransitions:
    """Campaign-specific edges."""

    CAMPAIGN_EDGES = [
        (S.INVITED, ParticipantEvent.ACCEPT, S.MATCHING),
        (S.INVITED, ParticipantEvent.DECLINE, S.DECLINED),
        (S.MATCHING, ParticipantEvent.CONFIRM_MATCH, S.TO_BE_SUBMITTED),
        (S.TO_BE_SUBMITTED, ParticipantEvent.SUBMIT, S.TO_BE_APPROVED),
        (S.NOT_APPROVED, ParticipantEvent.SUBMIT, S.TO_BE_APPROVED),
        (S.TO_BE_APPROVED, ParticipantEvent.APPROVE, S.APPROVED),
        (S.NOT_APPROVED, ParticipantEvent.APPROVE, S.APPROVED),
        (S.TO_BE_APPROVED, ParticipantEvent.DISAPPROVE, S.NOT_APPROVED),
        (S.APPROVED, ParticipantEvent.MARK_PAYABLE, S.TO_BE_PAID),
        (S.TO_BE_PAID, ParticipantEvent.PAY, S.PAID),
        (S.MATCHING, ParticipantEvent.REMOVE, S.NOT_SELECTED),
        (S.PAID, ParticipantEvent.REMOVE, S.REMOVED),
        (S.MATCHING, ParticipantEvent.WITHDRAW, S.WITHDRAWN),
    ]

    @pytest.mark.parametrize(("source", "event", "target"), CAMPAIGN_EDGES)
    def test_edge(self, source: S, event: ParticipantEvent, target: S) -> None:
        assert TRANSITIONS[OrderKind.CAMPAIGN][(source, event)] is target

    def test_no_survey_submission_state(self) -> None:
        assert (S.TO_BE_ANSWERED, ParticipantEvent.SUBMIT) not in TRANSITIONS[OrderKind.CAMPAIGN]


class TestSurveyTransitions:
    """Survey-specific edges: no matching step."""

    def test_accept_goes_straight_to_answering(self) -> None:
        assert TRANSITIONS[OrderKind.SURVEY][(S.INVITED, ParticipantEvent.ACCEPT)] is (
            S.TO_BE_ANSWERED
        )

    def test_no_confirm_match(self) -> None:
        assert source_states(OrderKind.SURVEY, ParticipantEvent.CONFIRM_MATCH) == frozenset()

    def test_submit_from_to_be_answered(self) -> None:
        assert TRANSITIONS[OrderKind.SURVEY][(S.TO_BE_ANSWERED, ParticipantEvent.SUBMIT)] is (
            S.TO_BE_APPROVED
        )


class TestRemovalBuckets:
    """Pre- and post-application buckets for remove."""

    def test_campaign_pre_application(self) -> None:
        assert PRE_APPLICATION_STATUSES[OrderKind.CAMPAIGN] == {S.ADDED, S.INVITED, S.MATCHING}

    def test_survey_pre_application(self) -> None:
        assert PRE_APPLICATION_STATUSES[OrderKind.SURVEY] == {S.ADDED, S.INVITED}

    @pytest.mark.parametrize("kind", list(OrderKind))
    def test_buckets_are_disjoint(self, kind: OrderKind) -> None:
        assert not PRE_APPLICATION_STATUSES[kind] & POST_APPLICATION_STATUSES[kind]

    @pytest.mark.parametrize("kind", list(OrderKind))
    def test_not_approved_is_in_neither_bucket(self, kind: OrderKind) -> None:
        assert S.NOT_APPROVED not in source_states(kind, ParticipantEvent.REMOVE)


class TestWithdrawSources:
    @pytest.mark.parametrize("kind", list(OrderKind))
    def test_never_from_added_or_invited(self, kind: OrderKind) -> None:
        sources = source_states(kind, ParticipantEvent.WITHDRAW)
        assert S.ADDED not in sources
        assert S.INVITED not in sources

    def test_survey_sources(self) -> None:
        assert source_states(OrderKind.SURVEY, ParticipantEvent.WITHDRAW) == {
            S.TO_BE_ANSWERED,
            S.TO_BE_APPROVED,
            S.NOT_APPROVED,
            S.APPROVED,
            S.TO_BE_PAID,
            S.PAID,
        }


class TestOrderTransitions:
    def test_linear_lifecycle(self) -> None:
        assert ORDER_TRANSITIONS == {
            (OrderStatus.IN_PREPARATION, OrderEvent.START): OrderStatus.ON_GOING,
            (OrderStatus.ON_GOING, OrderEvent.FINISH): OrderStatus.FINISHED,
            (OrderStatus.FINISHED, OrderEvent.ARCHIVE): OrderStatus.ARCHIVED,
        }
