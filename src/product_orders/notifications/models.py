"""Lifecycle events and the notification codes they are delivered under."""

from enum import IntEnum, StrEnum

from pydantic import BaseModel

from product_orders.domain.types import OrderKind


class LifecycleEvent(StrEnum):
    """Events the lifecycle emits after a transition commits."""

    INFLUENCER_ADDED = "influencer_added"
    INFLUENCER_INVITED = "influencer_invited"
    INVITE_ACCEPTED = "invite_accepted"
    INVITE_DECLINED = "invite_declined"
    REMOVED_BEFORE_APPLICATION = "removed_before_application"
    REMOVED_AFTER_APPLICATION = "removed_after_application"
    INFLUENCER_WITHDREW = "influencer_withdrew"
    MATCH_CONFIRMED = "match_confirmed"
    SUBMISSION_RECEIVED = "submission_received"
    SUBMISSION_APPROVED = "submission_approved"
    SUBMISSION_DISAPPROVED = "submission_disapproved"
    ORDER_STARTED = "order_started"
    ORDER_FINISHED = "order_finished"
    ORDER_ARCHIVED = "order_archived"


class NotificationType(IntEnum):
    """Stable numeric notification codes shared with the client apps."""

    CAMPAIGN_INFLUENCER_ADDED = 202
    CAMPAIGN_INFLUENCER_REMOVED_BEFORE_APPLICATION = 203
    CAMPAIGN_INFLUENCER_REMOVED_AFTER_APPLICATION = 204
    CAMPAIGN_INFLUENCER_INVITED = 205
    CAMPAIGN_INFLUENCER_INVITE_ACCEPTED = 206
    CAMPAIGN_INFLUENCER_INVITE_DECLINED = 207
    CAMPAIGN_INFLUENCER_WITHDRAW_AFTER_APPLICATION = 208
    CAMPAIGN_INFLUENCER_LINK_SUBMITTED = 209
    CAMPAIGN_STARTED = 212
    CAMPAIGN_ENDED = 213

    SURVEY_INFLUENCER_INVITED = 502
    SURVEY_INFLUENCER_INVITE_ACCEPTED = 503
    SURVEY_INFLUENCER_INVITE_DECLINED = 504
    SURVEY_INFLUENCER_REMOVED_AFTER_APPLICATION = 505
    SURVEY_INFLUENCER_ANSWERS_SUBMITTED = 506
    SURVEY_ANSWERS_APPROVED = 507
    SURVEY_STARTED = 509
    SURVEY_ENDED = 510


# Events without an entry are still delivered, just without a numeric code.
NOTIFICATION_CODES: dict[tuple[OrderKind, LifecycleEvent], NotificationType] = {
    (OrderKind.CAMPAIGN, LifecycleEvent.INFLUENCER_ADDED): (
        NotificationType.CAMPAIGN_INFLUENCER_ADDED
    ),
    (OrderKind.CAMPAIGN, LifecycleEvent.REMOVED_BEFORE_APPLICATION): (
        NotificationType.CAMPAIGN_INFLUENCER_REMOVED_BEFORE_APPLICATION
    ),
    (OrderKind.CAMPAIGN, LifecycleEvent.REMOVED_AFTER_APPLICATION): (
        NotificationType.CAMPAIGN_INFLUENCER_REMOVED_AFTER_APPLICATION
    ),
    (OrderKind.CAMPAIGN, LifecycleEvent.INFLUENCER_INVITED): (
        NotificationType.CAMPAIGN_INFLUENCER_INVITED
    ),
    (OrderKind.CAMPAIGN, LifecycleEvent.INVITE_ACCEPTED): (
        NotificationType.CAMPAIGN_INFLUENCER_INVITE_ACCEPTED
    ),
    (OrderKind.CAMPAIGN, LifecycleEvent.INVITE_DECLINED): (
        NotificationType.CAMPAIGN_INFLUENCER_INVITE_DECLINED
    ),
    (OrderKind.CAMPAIGN, LifecycleEvent.INFLUENCER_WITHDREW): (
        NotificationType.CAMPAIGN_INFLUENCER_WITHDRAW_AFTER_APPLICATION
    ),
    (OrderKind.CAMPAIGN, LifecycleEvent.SUBMISSION_RECEIVED): (
        NotificationType.CAMPAIGN_INFLUENCER_LINK_SUBMITTED
    ),
    (OrderKind.CAMPAIGN, LifecycleEvent.ORDER_STARTED): NotificationType.CAMPAIGN_STARTED,
    (OrderKind.CAMPAIGN, LifecycleEvent.ORDER_FINISHED): NotificationType.CAMPAIGN_ENDED,
    (OrderKind.SURVEY, LifecycleEvent.INFLUENCER_INVITED): (
        NotificationType.SURVEY_INFLUENCER_INVITED
    ),
    (OrderKind.SURVEY, LifecycleEvent.INVITE_ACCEPTED): (
        NotificationType.SURVEY_INFLUENCER_INVITE_ACCEPTED
    ),
    (OrderKind.SURVEY, LifecycleEvent.INVITE_DECLINED): (
        NotificationType.SURVEY_INFLUENCER_INVITE_DECLINED
    ),
    (OrderKind.SURVEY, LifecycleEvent.REMOVED_AFTER_APPLICATION): (
        NotificationType.SURVEY_INFLUENCER_REMOVED_AFTER_APPLICATION
    ),
    (OrderKind.SURVEY, LifecycleEvent.SUBMISSION_RECEIVED): (
        NotificationType.SURVEY_INFLUENCER_ANSWERS_SUBMITTED
    ),
    (OrderKind.SURVEY, LifecycleEvent.SUBMISSION_APPROVED): (
        NotificationType.SURVEY_ANSWERS_APPROVED
    ),
    (OrderKind.SURVEY, LifecycleEvent.ORDER_STARTED): NotificationType.SURVEY_STARTED,
    (OrderKind.SURVEY, LifecycleEvent.ORDER_FINISHED): NotificationType.SURVEY_ENDED,
}


class Notification(BaseModel):
    """A single delivered notification for one recipient."""

    event: LifecycleEvent
    kind: OrderKind
    product_order_id: int
    recipient_id: int
    notification_type: NotificationType | None = None
