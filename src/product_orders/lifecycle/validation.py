"""Batch precondition checks shared by every multi-influencer operation.

A batch is validated as a whole before anything is written: requested ids
are split into "not a participant" and "participant in the wrong status",
and the first non-empty group is reported (membership first).
"""

from __future__ import annotations

from collections.abc import Collection, Iterable, Sequence

from product_orders.domain.errors import BadRequestError
from product_orders.domain.models import Participant, ProductOrder
from product_orders.domain.types import ParticipantStatus


def unique_ids(ids: Iterable[int]) -> list[int]:
    """Return *ids* without duplicates, keeping first-seen order."""
    seen: set[int] = set()
    result: list[int] = []
    for influencer_id in ids:
        if influencer_id not in seen:
            seen.add(influencer_id)
            result.append(influencer_id)
    return result


def describe_ids(ids: Sequence[int], singular: str, plural: str) -> str:
    """Render ``"Influencer 4 <singular>"`` or ``"Influencers 4, 7 <plural>"``."""
    if len(ids) == 1:
        return f"Influencer {ids[0]} {singular}"
    return f"Influencers {', '.join(str(i) for i in ids)} {plural}"


def not_in_order_error(order: ProductOrder, ids: Sequence[int]) -> BadRequestError:
    return BadRequestError(
        describe_ids(
            ids,
            f"is not in the {order.kind} {order.id}",
            f"are not in the {order.kind} {order.id}",
        ),
        ids,
    )


def require_participants(order: ProductOrder, ids: Sequence[int]) -> list[Participant]:
    """Return the hydrated participants for *ids*.

    Raises:
        BadRequestError: Listing every requested id that is not a participant.
    """
    missing = [i for i in ids if order.participant_for(i) is None]
    if missing:
        raise not_in_order_error(order, missing)
    return [p for i in ids if (p := order.participant_for(i)) is not None]


def check_batch(
    order: ProductOrder,
    ids: Sequence[int],
    allowed: Collection[ParticipantStatus],
    purpose: str,
) -> list[Participant]:
    """Validate membership and current status for a whole batch.

    Args:
        order: The order, hydrated with the participants for *ids*.
        ids: Requested influencer ids (already de-duplicated).
        allowed: Statuses from which the operation is legal.
        purpose: Completes "doesn't have valid state ..." in the error, e.g.
            ``"to be invited"``.

    Returns:
        The participants for *ids*, in request order.

    Raises:
        BadRequestError: If any id is not a participant, or else if any
            participant's status is outside *allowed*.
    """
    participants = require_participants(order, ids)
    invalid = [p.influencer_id for p in participants if p.status not in allowed]
    if invalid:
        raise BadRequestError(
            describe_ids(
                invalid,
                f"doesn't have valid state {purpose}",
                f"don't have valid state {purpose}",
            ),
            invalid,
        )
    return participants
