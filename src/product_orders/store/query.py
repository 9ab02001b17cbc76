"""Participant filters and order read projections.

``ParticipantQuery`` composes a SQL predicate only for the filter keys that
are present; an unset key means "no restriction", never "match nothing".
``OrderProjection`` names which relations an order read hydrates.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from product_orders.domain.types import ParticipantStatus


@dataclass(frozen=True)
class ParticipantQuery:
    """Optional filters over ``product_order_influencer`` rows.

    Attributes:
        product_order_id: Restrict to one order.
        influencer_ids: Restrict to these influencers.  An empty tuple is a
            real filter that matches nothing.
        statuses: Restrict to participants currently in one of these statuses.
    """

    product_order_id: int | None = None
    influencer_ids: tuple[int, ...] | None = None
    statuses: frozenset[ParticipantStatus] | None = None

    @classmethod
    def build(
        cls,
        *,
        product_order_id: int | None = None,
        influencer_ids: Iterable[int] | None = None,
        statuses: Iterable[ParticipantStatus] | None = None,
    ) -> ParticipantQuery:
        """Normalize iterables into the immutable forms the query stores."""
        return cls(
            product_order_id=product_order_id,
            influencer_ids=tuple(influencer_ids) if influencer_ids is not None else None,
            statuses=frozenset(statuses) if statuses is not None else None,
        )

    def to_sql(self) -> tuple[str, list[int | str]]:
        """Compile the present filters into a ``WHERE`` clause and parameters.

        Returns:
            ``(where_clause, params)``.  ``where_clause`` is empty when no
            filter is set, otherwise it starts with ``WHERE``.
        """
        conditions: list[str] = []
        params: list[int | str] = []

        if self.product_order_id is not None:
            conditions.append("product_order_id = ?")
            params.append(self.product_order_id)

        if self.influencer_ids is not None:
            if not self.influencer_ids:
                conditions.append("0")
            else:
                placeholders = ", ".join("?" for _ in self.influencer_ids)
                conditions.append(f"influencer_id IN ({placeholders})")
                params.extend(self.influencer_ids)

        if self.statuses is not None:
            if not self.statuses:
                conditions.append("0")
            else:
                values = sorted(s.value for s in self.statuses)
                placeholders = ", ".join("?" for _ in values)
                conditions.append(f"status IN ({placeholders})")
                params.extend(values)

        if not conditions:
            return "", params
        return "WHERE " + " AND ".join(conditions), params


@dataclass(frozen=True)
class OrderProjection:
    """Relations to hydrate when reading a product order.

    Attributes:
        participants: When set, the order's participants matching this query
            are loaded; the query's ``product_order_id`` is overridden by the
            order being read.  ``None`` loads no participants.
    """

    participants: ParticipantQuery | None = None

    @classmethod
    def bare(cls) -> OrderProjection:
        return cls()

    @classmethod
    def with_participants(
        cls,
        influencer_ids: Iterable[int] | None = None,
        statuses: Iterable[ParticipantStatus] | None = None,
    ) -> OrderProjection:
        """Project the order with (optionally filtered) participants."""
        return cls(
            participants=ParticipantQuery.build(
                influencer_ids=influencer_ids, statuses=statuses
            )
        )
