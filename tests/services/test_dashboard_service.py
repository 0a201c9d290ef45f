"""Tests for dashboard rollups."""

import pytest

from promotrack.models.entities import Actor
from promotrack.models.enums import PaceStatus


@pytest.fixture
def dashboard(container):
    return container.get("dashboard_service")


@pytest.fixture
def activity(container, seed):
    assignments = container.get("assignment_service")
    transactions = container.get("transaction_service")
    assignments.assign_promo(seed["north"], seed["promo"]["id"], 100, seed["actor"])
    assignments.assign_promo(seed["south"], seed["promo2"]["id"], 50, seed["actor"])

    gus = Actor(id=seed["reps"][1]["id"], name="Gus Global")
    transactions.log_transaction(seed["north"], None, 30, seed["actor"], transaction_date="2026-02-09")
    transactions.log_transaction(seed["north"], None, 25, gus, transaction_date="2026-02-12")
    transactions.log_transaction(seed["south"], None, 10, gus, transaction_date="2026-01-15")
    # Different promo on the same account does not count.
    transactions.log_transaction(seed["north"], seed["promo2"]["id"], 99, gus, transaction_date="2026-02-12")
    return seed


class TestAccountProgressRows:

    def test_rows_and_pace(self, dashboard, activity, now):
        rows = dashboard.account_progress_rows(now)

        assert [r.account.account_name for r in rows] == ["Acme Market", "Bodega South"]
        north, south = rows
        assert north.promo_name == "Spring Push"
        assert (north.progress.units_sold, north.progress.progress_pct) == (55, 55)
        assert north.pace is PaceStatus.ON_PACE
        assert (south.progress.units_sold, south.progress.progress_pct) == (10, 20)
        assert south.pace is PaceStatus.BEHIND

    def test_unassigned_accounts_omitted(self, dashboard, seed, now):
        assert dashboard.account_progress_rows(now) == []


class TestTeamSummary:

    def test_summary(self, dashboard, activity, now):
        summary = dashboard.team_summary(now)

        assert summary.total_units == 65
        assert summary.total_target == 150
        assert summary.team_goal_pct == 43
        assert summary.quarter_name == "Q1 2026"
        assert summary.quarter_elapsed_pct == 51
        assert summary.days_left == 44
        # Week of Monday 2026-02-09 includes the 99 units on the other promo.
        assert summary.units_this_week == 30 + 25 + 99
        assert summary.average_progress_pct == 38
        assert summary.accounts_on_promo == 2

    def test_no_active_quarter_defaults(self, dashboard, container, store, now):
        summary = dashboard.team_summary(now)
        assert summary.quarter_name is None
        assert summary.quarter_elapsed_pct == 50
        assert summary.days_left == 0
        assert summary.team_goal_pct == 0


def test_rep_breakdown(dashboard, activity):
    breakdown = dashboard.rep_breakdown(activity["north"])

    assert [(r.rep_name, r.units, r.pct_of_target) for r in breakdown] == [
        ("Rita North", 30, 30),
        ("Gus Global", 25, 25),
    ]


def test_rep_breakdown_without_assignment(dashboard, seed):
    assert dashboard.rep_breakdown(seed["both"]) == []
