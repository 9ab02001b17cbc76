"""FastAPI routes exposing each lifecycle operation.

The lifecycle service is synchronous (SQLite), so every handler runs it via
``asyncio.to_thread``.  The service instance is read from
``request.app.state.services["lifecycle"]``, set at application startup.
"""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, Query, Request
from pydantic import BaseModel, Field

from product_orders.domain.models import (
    BatchResult,
    CampaignSubmission,
    OrderTransition,
    Participant,
    ProductOrder,
    RemovalResult,
    SurveyAnswer,
)
from product_orders.domain.types import ParticipantStatus
from product_orders.lifecycle.service import ProductOrderLifecycle

router = APIRouter(prefix="/orders", tags=["product-orders"])


class InfluencerIds(BaseModel):
    """Request body for bulk operations."""

    influencer_ids: list[int] = Field(default_factory=list)


def _lifecycle(request: Request) -> ProductOrderLifecycle:
    return request.app.state.services["lifecycle"]


@router.get("/{order_id}")
async def get_order(
    order_id: int,
    request: Request,
    influencer_ids: list[int] | None = Query(default=None),
    statuses: list[ParticipantStatus] | None = Query(default=None),
) -> ProductOrder:
    """Return an order with its participants, optionally filtered."""
    return await asyncio.to_thread(
        _lifecycle(request).get_order,
        order_id,
        influencer_ids=influencer_ids,
        statuses=statuses,
    )


# -- Manager-side bulk operations ---------------------------------------------


@router.post("/{order_id}/influencers")
async def add_influencers(order_id: int, body: InfluencerIds, request: Request) -> BatchResult:
    return await asyncio.to_thread(
        _lifecycle(request).add_influencers, order_id, body.influencer_ids
    )


@router.post("/{order_id}/influencers/invite")
async def invite_influencers(
    order_id: int, body: InfluencerIds, request: Request
) -> BatchResult:
    return await asyncio.to_thread(
        _lifecycle(request).invite_influencers, order_id, body.influencer_ids
    )


@router.post("/{order_id}/influencers/remove")
async def remove_influencers(
    order_id: int, body: InfluencerIds, request: Request
) -> RemovalResult:
    return await asyncio.to_thread(
        _lifecycle(request).remove_influencers, order_id, body.influencer_ids
    )


@router.post("/{order_id}/influencers/confirm-match")
async def confirm_match(order_id: int, body: InfluencerIds, request: Request) -> BatchResult:
    return await asyncio.to_thread(
        _lifecycle(request).confirm_match, order_id, body.influencer_ids
    )


@router.post("/{order_id}/submissions/approve")
async def approve_submission(
    order_id: int, body: InfluencerIds, request: Request
) -> BatchResult:
    return await asyncio.to_thread(
        _lifecycle(request).approve_submission, order_id, body.influencer_ids
    )


@router.post("/{order_id}/submissions/disapprove")
async def disapprove_submission(
    order_id: int, body: InfluencerIds, request: Request
) -> BatchResult:
    return await asyncio.to_thread(
        _lifecycle(request).disapprove_submission, order_id, body.influencer_ids
    )


# -- Influencer-side operations -----------------------------------------------


@router.post("/{order_id}/influencers/{influencer_id}/accept")
async def accept_invitation(order_id: int, influencer_id: int, request: Request) -> Participant:
    return await asyncio.to_thread(
        _lifecycle(request).accept_invitation, order_id, influencer_id
    )


@router.post("/{order_id}/influencers/{influencer_id}/decline")
async def decline_invitation(
    order_id: int, influencer_id: int, request: Request
) -> Participant:
    return await asyncio.to_thread(
        _lifecycle(request).decline_invitation, order_id, influencer_id
    )


@router.post("/{order_id}/influencers/{influencer_id}/withdraw")
async def remove_influencer_self(
    order_id: int, influencer_id: int, request: Request
) -> Participant:
    return await asyncio.to_thread(
        _lifecycle(request).remove_influencer_self, order_id, influencer_id
    )


@router.post("/{order_id}/influencers/{influencer_id}/submission")
async def submit_data(
    order_id: int,
    influencer_id: int,
    payload: CampaignSubmission | SurveyAnswer,
    request: Request,
) -> Participant:
    """Store a campaign link or a survey answer for the influencer."""
    return await asyncio.to_thread(
        _lifecycle(request).submit_data, order_id, influencer_id, payload
    )


# -- Order lifecycle ----------------------------------------------------------


@router.post("/{order_id}/start")
async def start_order(order_id: int, request: Request) -> OrderTransition:
    return await asyncio.to_thread(_lifecycle(request).start_order, order_id)


@router.post("/{order_id}/finish")
async def finish_order(order_id: int, request: Request) -> OrderTransition:
    return await asyncio.to_thread(_lifecycle(request).finish_order, order_id)


@router.post("/{order_id}/archive")
async def archive_order(order_id: int, request: Request) -> OrderTransition:
    return await asyncio.to_thread(_lifecycle(request).archive_order, order_id)
