"""Tests for quarter bookkeeping and quarter-wide stats."""

from datetime import date

import pytest

from promotrack.services.errors import NotFoundError, ValidationError


@pytest.fixture
def quarters(container):
    return container.get("quarter_service")


class TestQuarters:

    def test_single_active_quarter(self, quarters, seed, store):
        quarters.set_active_quarter(seed["q2"].id)
        assert store.count("quarters", {"is_active": True}) == 1
        assert quarters.get_active_quarter().id == seed["q2"].id

    def test_create_validates_range(self, quarters):
        with pytest.raises(ValidationError):
            quarters.create_quarter("Backwards", date(2026, 4, 1), date(2026, 1, 1))
        with pytest.raises(ValidationError):
            quarters.create_quarter("Empty", date(2026, 4, 1), date(2026, 4, 1))

    def test_create_accepts_strings(self, quarters):
        quarter = quarters.create_quarter("Q3 2026", "2026-07-01", "2026-09-30")
        assert quarter.start_date == date(2026, 7, 1)
        assert quarter.is_active is False

    def test_activate_unknown(self, quarters):
        with pytest.raises(NotFoundError):
            quarters.set_active_quarter("missing")

    def test_next_quarter_after(self, quarters, seed):
        assert quarters.next_quarter_after(seed["q1"].end_date).name == "Q2 2026"
        assert quarters.next_quarter_after(seed["q2"].end_date) is None

    def test_list_ordered_by_start(self, quarters, seed):
        assert [q.name for q in quarters.list_quarters()] == ["Q1 2026", "Q2 2026"]


def test_quarter_stats(quarters, container, seed):
    assignments = container.get("assignment_service")
    transactions = container.get("transaction_service")
    assignments.assign_promo(seed["north"], seed["promo"]["id"], 100, seed["actor"], initial_units=100)
    assignments.assign_promo(seed["south"], seed["promo"]["id"], 100, seed["actor"])
    transactions.log_transaction(seed["south"], None, 80, seed["actor"])
    assignments.assign_promo(seed["both"], seed["promo"]["id"], 200, seed["actor"], initial_units=20)

    stats = quarters.quarter_stats()

    assert stats.total_accounts == 3
    assert stats.total_target == 400
    assert stats.total_sold == 200
    assert stats.met_count == 1
    assert stats.behind_count == 1
    assert stats.overall_pct == 50
