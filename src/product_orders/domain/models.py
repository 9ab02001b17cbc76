"""Pydantic v2 models for product orders, participants and submissions."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from product_orders.domain.types import (
    ORDER_KIND_TYPES,
    Currency,
    OrderKind,
    OrderStatus,
    ParticipantStatus,
)


class Participant(BaseModel):
    """One influencer's participation record inside one product order.

    ``(product_order_id, influencer_id)`` is unique.  Records are never
    deleted; leaving an order is expressed through a side-branch status.
    """

    model_config = ConfigDict(frozen=True)

    id: int
    product_order_id: int
    influencer_id: int
    status: ParticipantStatus = ParticipantStatus.ADDED
    agreed_amount: Decimal
    currency: Currency

    @field_validator("agreed_amount", mode="before")
    @classmethod
    def reject_float_inputs(cls, v: object) -> object:
        """Reject float inputs for monetary fields to prevent precision errors."""
        if isinstance(v, float):
            raise ValueError("Use Decimal or string, not float, for monetary values")
        return v


class ProductOrder(BaseModel):
    """A campaign or survey together with whichever relations were hydrated.

    ``participants`` is only populated when the read asked for it through an
    ``OrderProjection``; an empty list otherwise.
    """

    id: int
    kind: OrderKind
    status: OrderStatus = OrderStatus.IN_PREPARATION
    post_type: str | None = None
    client_id: int | None = None
    instructions: str | None = None
    participants: list[Participant] = Field(default_factory=list)

    @model_validator(mode="after")
    def post_type_must_match_kind(self) -> "ProductOrder":
        """Ensure a campaign carries a post type and a survey a survey type."""
        if self.post_type is not None and self.post_type not in ORDER_KIND_TYPES[self.kind]:
            valid = ", ".join(sorted(ORDER_KIND_TYPES[self.kind]))
            raise ValueError(
                f"{self.post_type} is not valid for a {self.kind}. Valid types: {valid}"
            )
        return self

    def participant_for(self, influencer_id: int) -> Participant | None:
        """Return the hydrated participant for *influencer_id*, if any."""
        for participant in self.participants:
            if participant.influencer_id == influencer_id:
                return participant
        return None


class InfluencerRate(BaseModel):
    """Directory answer for one influencer: currency and desired amount.

    ``desired_amount`` is ``None`` when the influencer has not declared an
    amount for the requested order kind and post type.
    """

    model_config = ConfigDict(frozen=True)

    influencer_id: int
    currency: Currency
    desired_amount: Decimal | None = None


class CampaignSubmission(BaseModel):
    """Work submitted by an influencer for a campaign."""

    submission_link: str

    @field_validator("submission_link")
    @classmethod
    def link_must_not_be_empty(cls, v: str) -> str:
        """Ensure the submission link is not empty or whitespace-only."""
        if not v.strip():
            raise ValueError("submission_link must not be empty")
        return v


class SurveyAnswer(BaseModel):
    """An answer submitted by an influencer for a survey."""

    question_id: int
    option_id: int | None = None
    response_text: str | None = None

    @model_validator(mode="after")
    def must_carry_an_answer(self) -> "SurveyAnswer":
        """Ensure either a selected option or a free-text response is given."""
        if self.option_id is None and not (self.response_text or "").strip():
            raise ValueError("an answer needs option_id or response_text")
        return self


Submission = CampaignSubmission | SurveyAnswer


class BatchResult(BaseModel):
    """Outcome of a bulk transition.

    Attributes:
        count: Number of participant records actually changed.
        influencer_ids: Influencers whose record changed, in ascending order.
    """

    count: int
    influencer_ids: list[int] = Field(default_factory=list)


class RemovalResult(BatchResult):
    """Outcome of removing influencers, split by whether they had applied.

    Attributes:
        not_selected: Influencers removed before applying (now NOT_SELECTED).
        removed: Influencers removed after applying (now REMOVED).
    """

    not_selected: list[int] = Field(default_factory=list)
    removed: list[int] = Field(default_factory=list)


class OrderTransition(BaseModel):
    """Outcome of a coarse order transition.

    Attributes:
        order: The order after the transition.
        participants_changed: Participants moved as part of the same
            transaction (only ``finish`` moves any).
    """

    order: ProductOrder
    participants_changed: int = 0
