"""Tests for progress aggregation."""

from datetime import date, datetime, timedelta, timezone

import pytest

from promotrack.models.entities import Account, Assignment, Transaction
from promotrack.services.progress_aggregator import (
    AccountProgress,
    compute_account_progress,
    compute_team_progress,
    current_assignments,
    percent_of,
    units_by_rep,
)

T0 = datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc)


def _assignment(target=100, promo_id="P", account_id="A", assigned=T0, id="as1"):
    return Assignment(account_id=account_id, promo_id=promo_id, target_units=target,
                      assigned_date=assigned, id=id)


def _txn(units, promo_id="P", account_id="A", rep_id="R"):
    return Transaction(account_id=account_id, promo_id=promo_id, units_sold=units,
                       transaction_date=date(2026, 1, 10), rep_id=rep_id)


ACCOUNT = Account(account_name="Acme", id="A")


class TestPercentOf:

    @pytest.mark.parametrize("numerator,denominator,expected", [
        (63, 125, 50),
        (40, 100, 40),
        (1, 8, 13),      # 12.5 rounds half-up
        (1, 3, 33),
        (2, 3, 67),
        (150, 100, 150),
        (0, 100, 0),
        (5, 0, 0),
    ])
    def test_half_up_rounding(self, numerator, denominator, expected):
        assert percent_of(numerator, denominator) == expected


class TestComputeAccountProgress:

    def test_no_transactions(self):
        progress = compute_account_progress(ACCOUNT, _assignment(), [])
        assert progress.units_sold == 0
        assert progress.progress_pct == 0
        assert progress.met_target is False

    def test_rounding_example(self):
        progress = compute_account_progress(ACCOUNT, _assignment(target=125), [_txn(60), _txn(3)])
        assert progress.units_sold == 63
        assert progress.progress_pct == 50

    def test_zero_target_never_divides(self):
        assignment = _assignment(target=0)
        progress = compute_account_progress(ACCOUNT, assignment, [_txn(10)])
        assert progress.progress_pct == 0
        assert progress.met_target is False

    def test_only_matching_account_and_promo_count(self):
        transactions = [
            _txn(40),
            _txn(25, promo_id="OLD"),          # replaced promo
            _txn(30, account_id="B"),          # other account
        ]
        progress = compute_account_progress(ACCOUNT, _assignment(), transactions)
        assert progress.units_sold == 40
        assert progress.progress_pct == 40

    def test_met_target_at_100(self):
        progress = compute_account_progress(ACCOUNT, _assignment(target=50), [_txn(50)])
        assert progress.met_target is True

    def test_end_to_end_scenario(self):
        progress = compute_account_progress(ACCOUNT, _assignment(target=100), [_txn(40, rep_id="R")])
        assert (progress.units_sold, progress.progress_pct, progress.met_target) == (40, 40, False)


class TestTeamProgress:

    def test_sums_units_and_targets(self):
        team = compute_team_progress([
            AccountProgress(units_sold=30, progress_pct=30, met_target=False, target_units=100),
            AccountProgress(units_sold=70, progress_pct=70, met_target=False, target_units=100),
        ])
        assert team.total_units == 100
        assert team.total_target == 200
        assert team.team_goal_pct == 50

    def test_empty_team_is_zero(self):
        team = compute_team_progress([])
        assert team.team_goal_pct == 0
        assert team.total_target == 0


class TestCurrentAssignments:

    def test_latest_assigned_date_wins(self):
        older = _assignment(promo_id="P1", id="a", assigned=T0)
        newer = _assignment(promo_id="P2", id="b", assigned=T0 + timedelta(microseconds=1))
        current = current_assignments([newer, older])
        assert current["A"].promo_id == "P2"

    def test_ties_broken_by_id(self):
        first = _assignment(promo_id="P1", id="a")
        second = _assignment(promo_id="P2", id="b")
        assert current_assignments([second, first])["A"].id == "b"
        assert current_assignments([first, second])["A"].id == "b"

    def test_one_per_account(self):
        current = current_assignments([
            _assignment(account_id="A", id="1"),
            _assignment(account_id="B", id="2"),
        ])
        assert set(current) == {"A", "B"}


def test_units_by_rep_ignores_other_promos():
    totals = units_by_rep(_assignment(), [
        _txn(10, rep_id="R1"),
        _txn(5, rep_id="R1"),
        _txn(7, rep_id="R2"),
        _txn(100, rep_id="R1", promo_id="OLD"),
    ])
    assert totals == {"R1": 15, "R2": 7}
