"""SQLite-backed influencer directory.

Answers the one question the lifecycle asks about users: does an influencer
exist, in which currency are they paid, and how much do they want for a given
kind of post or survey.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Mapping, Sequence
from decimal import Decimal

from product_orders.domain.models import InfluencerRate
from product_orders.domain.types import Currency, OrderKind


class SqliteUserDirectory:
    """Read and maintain influencer currencies and desired amounts.

    Args:
        conn: An open SQLite connection with the lifecycle tables.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def register_influencer(
        self,
        influencer_id: int,
        currency: Currency,
        desired_amounts: Mapping[tuple[OrderKind, str], Decimal] | None = None,
    ) -> None:
        """Create or update an influencer and their desired amounts.

        Args:
            influencer_id: The influencer's id.
            currency: Account currency.
            desired_amounts: Amount per ``(order kind, post type)``.
        """
        self._conn.execute(
            """
            INSERT INTO influencer (id, currency) VALUES (?, ?)
            ON CONFLICT (id) DO UPDATE SET currency = excluded.currency
            """,
            (influencer_id, currency.value),
        )
        for (kind, post_type), amount in (desired_amounts or {}).items():
            self.set_desired_amount(influencer_id, kind, post_type, amount)

    def set_desired_amount(
        self, influencer_id: int, kind: OrderKind, post_type: str, amount: Decimal
    ) -> None:
        if isinstance(amount, float):
            raise ValueError("Use Decimal or string, not float, for monetary values")
        self._conn.execute(
            """
            INSERT INTO influencer_desired_amount (
                influencer_id, order_kind, post_type, desired_amount
            ) VALUES (?, ?, ?, ?)
            ON CONFLICT (influencer_id, order_kind, post_type)
            DO UPDATE SET desired_amount = excluded.desired_amount
            """,
            (influencer_id, kind.value, post_type, str(amount)),
        )

    def find_rates(
        self, influencer_ids: Sequence[int], kind: OrderKind, post_type: str
    ) -> dict[int, InfluencerRate]:
        """Return rates keyed by influencer id.

        Unknown influencer ids are absent from the result.  Known influencers
        without a desired amount for ``(kind, post_type)`` are present with
        ``desired_amount=None``.
        """
        if not influencer_ids:
            return {}
        placeholders = ", ".join("?" for _ in influencer_ids)
        cursor = self._conn.execute(
            f"""
            SELECT i.id, i.currency, d.desired_amount
            FROM influencer AS i
            LEFT JOIN influencer_desired_amount AS d
                ON d.influencer_id = i.id AND d.order_kind = ? AND d.post_type = ?
            WHERE i.id IN ({placeholders})
            """,
            [kind.value, post_type, *influencer_ids],
        )
        return {
            row[0]: InfluencerRate(
                influencer_id=row[0],
                currency=Currency(row[1]),
                desired_amount=Decimal(row[2]) if row[2] is not None else None,
            )
            for row in cursor.fetchall()
        }
