"""Domain enumerations for product orders and their participants.

Both status enums are ordered: guards compare statuses with ``<``/``>=``, so
each member carries an explicit rank instead of relying on declaration order
or string comparison.
"""

from __future__ import annotations

from enum import StrEnum


class OrderKind(StrEnum):
    """The two kinds of product order an influencer can participate in."""

    CAMPAIGN = "campaign"
    SURVEY = "survey"


class Currency(StrEnum):
    """Account currencies an agreed amount can be expressed in."""

    EUR = "EUR"
    USD = "USD"
    CHF = "CHF"


class PostType(StrEnum):
    """Content types a campaign can order."""

    POST = "post"
    REEL = "reel"
    STORY = "story"


class SurveyType(StrEnum):
    """Response formats a survey can order."""

    QUESTIONNAIRE = "questionnaire"
    SHORT_INTERVIEW = "short_interview"
    LONG_INTERVIEW = "long_interview"


# Valid ``post_type`` values per order kind.
ORDER_KIND_TYPES: dict[OrderKind, frozenset[str]] = {
    OrderKind.CAMPAIGN: frozenset(PostType),
    OrderKind.SURVEY: frozenset(SurveyType),
}


class _RankedStrEnum(StrEnum):
    """StrEnum whose ordering follows a per-member rank table."""

    @property
    def rank(self) -> float:
        return self._ranks()[self.value]

    @classmethod
    def _ranks(cls) -> dict[str, float]:
        raise NotImplementedError

    def _peer(self, other: object) -> _RankedStrEnum:
        # Plain str operands must never fall back to text ordering.
        if not isinstance(other, type(self)):
            raise TypeError(
                f"Cannot order {type(self).__name__} against {type(other).__name__}"
            )
        return other

    def __lt__(self, other: object) -> bool:
        return self.rank < self._peer(other).rank

    def __le__(self, other: object) -> bool:
        return self.rank <= self._peer(other).rank

    def __gt__(self, other: object) -> bool:
        return self.rank > self._peer(other).rank

    def __ge__(self, other: object) -> bool:
        return self.rank >= self._peer(other).rank


class OrderStatus(_RankedStrEnum):
    """Coarse lifecycle of a product order."""

    IN_PREPARATION = "in_preparation"
    ON_GOING = "on_going"
    FINISHED = "finished"
    ARCHIVED = "archived"

    @classmethod
    def _ranks(cls) -> dict[str, float]:
        return _ORDER_RANKS


class ParticipantStatus(_RankedStrEnum):
    """Status of one influencer inside one product order."""

    ADDED = "added"
    INVITED = "invited"
    MATCHING = "matching"
    TO_BE_SUBMITTED = "to_be_submitted"
    TO_BE_ANSWERED = "to_be_answered"
    TO_BE_APPROVED = "to_be_approved"
    NOT_APPROVED = "not_approved"
    APPROVED = "approved"
    TO_BE_PAID = "to_be_paid"
    PAID = "paid"
    DECLINED = "declined"
    NOT_SELECTED = "not_selected"
    REMOVED = "removed"
    WITHDRAWN = "withdrawn"

    @classmethod
    def _ranks(cls) -> dict[str, float]:
        return _PARTICIPANT_RANKS

    @property
    def is_terminal(self) -> bool:
        """Side-branch states have no outgoing edges."""
        return self in SIDE_BRANCH_STATUSES


_ORDER_RANKS: dict[str, float] = {
    "in_preparation": 0,
    "on_going": 1,
    "finished": 2,
    "archived": 3,
}

# Side-branch states rank above the main path so that "rank < invited"
# only ever matches ADDED.
_PARTICIPANT_RANKS: dict[str, float] = {
    "added": 0,
    "invited": 1,
    "matching": 2,
    "to_be_submitted": 3,
    "to_be_answered": 3,
    "to_be_approved": 4,
    "not_approved": 4.5,
    "approved": 5,
    "to_be_paid": 6,
    "paid": 7,
    "declined": 8,
    "not_selected": 9,
    "removed": 10,
    "withdrawn": 11,
}

SIDE_BRANCH_STATUSES: frozenset[ParticipantStatus] = frozenset(
    {
        ParticipantStatus.DECLINED,
        ParticipantStatus.NOT_SELECTED,
        ParticipantStatus.REMOVED,
        ParticipantStatus.WITHDRAWN,
    }
)


def submission_status(kind: OrderKind) -> ParticipantStatus:
    """Return the "waiting for the influencer's work" status for *kind*."""
    if kind is OrderKind.SURVEY:
        return ParticipantStatus.TO_BE_ANSWERED
    return ParticipantStatus.TO_BE_SUBMITTED
