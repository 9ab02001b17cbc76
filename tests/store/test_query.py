"""Tests for the optional participant filter builder and order projections."""

from product_orders.domain.types import ParticipantStatus
from product_orders.store.query import OrderProjection, ParticipantQuery


class TestParticipantQueryToSql:
    """Only present filter keys contribute predicates."""

    def test_no_filters(self):
        assert ParticipantQuery().to_sql() == ("", [])

    def test_order_only(self):
        where, params = ParticipantQuery(product_order_id=4).to_sql()
        assert where == "WHERE product_order_id = ?"
        assert params == [4]

    def test_all_filters(self):
        query = ParticipantQuery.build(
            product_order_id=4,
            influencer_ids=[7, 8],
            statuses=[ParticipantStatus.INVITED, ParticipantStatus.ADDED],
        )
        where, params = query.to_sql()
        assert where == (
            "WHERE product_order_id = ? AND influencer_id IN (?, ?) AND status IN (?, ?)"
        )
        # Statuses are sorted so the SQL is deterministic.
        assert params == [4, 7, 8, "added", "invited"]

    def test_empty_id_list_matches_nothing(self):
        where, params = ParticipantQuery.build(influencer_ids=[]).to_sql()
        assert where == "WHERE 0"
        assert params == []

    def test_empty_status_set_matches_nothing(self):
        where, _ = ParticipantQuery.build(product_order_id=1, statuses=[]).to_sql()
        assert where == "WHERE product_order_id = ? AND 0"

    def test_build_normalizes_iterables(self):
        query = ParticipantQuery.build(influencer_ids=iter([3, 1]))
        assert query.influencer_ids == (3, 1)
        assert query.statuses is None


class TestOrderProjection:
    def test_bare_loads_no_participants(self):
        assert OrderProjection.bare().participants is None

    def test_with_participants_unfiltered(self):
        projection = OrderProjection.with_participants()
        assert projection.participants == ParticipantQuery()

    def test_with_participants_filtered(self):
        projection = OrderProjection.with_participants(
            influencer_ids=[2], statuses=[ParticipantStatus.APPROVED]
        )
        assert projection.participants is not None
        assert projection.participants.influencer_ids == (2,)
        assert projection.participants.statuses == frozenset({ParticipantStatus.APPROVED})
