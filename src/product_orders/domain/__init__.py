"""Domain types, models, and errors for product order participation."""

from product_orders.domain.errors import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    InvalidTransitionError,
    LifecycleError,
    NotFoundError,
)
from product_orders.domain.models import (
    BatchResult,
    CampaignSubmission,
    InfluencerRate,
    OrderTransition,
    Participant,
    ProductOrder,
    RemovalResult,
    Submission,
    SurveyAnswer,
)
from product_orders.domain.types import (
    ORDER_KIND_TYPES,
    Currency,
    OrderKind,
    OrderStatus,
    ParticipantStatus,
    PostType,
    SurveyType,
    submission_status,
)

__all__ = [
    "ORDER_KIND_TYPES",
    "BadRequestError",
    "BatchResult",
    "CampaignSubmission",
    "ConflictError",
    "Currency",
    "ForbiddenError",
    "InfluencerRate",
    "InvalidTransitionError",
    "LifecycleError",
    "NotFoundError",
    "OrderKind",
    "OrderStatus",
    "OrderTransition",
    "Participant",
    "ParticipantStatus",
    "PostType",
    "ProductOrder",
    "RemovalResult",
    "Submission",
    "SurveyAnswer",
    "SurveyType",
    "submission_status",
]
