"""
Read-side rollups for the dashboard: per-account progress cards, the team
stats header and the per-rep breakdown of an account's current promo.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Optional

from ..models.entities import Account, Assignment, Transaction
from ..models.enums import PaceStatus
from ..repositories.interfaces import RecordStore
from ..utils.date_range_utils import DateRangeUtils
from .account_service import AccountService
from .directory_service import PromoService, RepService
from .pace_engine import days_left, elapsed_or_default, pace_status
from .progress_aggregator import (
    AccountProgress,
    compute_account_progress,
    compute_team_progress,
    current_assignments,
    percent_of,
    units_by_rep,
)
from .quarter_service import QuarterService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProgressRow:
    """One progress card."""
    account: Account
    assignment: Assignment
    promo_name: str
    progress: AccountProgress
    pace: PaceStatus


@dataclass(frozen=True)
class TeamSummary:
    total_units: int
    total_target: int
    team_goal_pct: int
    quarter_name: Optional[str]
    quarter_elapsed_pct: int
    days_left: int
    units_this_week: int
    average_progress_pct: int
    accounts_on_promo: int


@dataclass(frozen=True)
class RepUnits:
    rep_id: Optional[str]
    rep_name: str
    units: int
    pct_of_target: int


class DashboardService:
    """Joins store reads with the pure aggregator and pace engine."""

    def __init__(
        self,
        store: RecordStore,
        accounts: AccountService,
        promos: PromoService,
        reps: RepService,
        quarters: QuarterService,
        clock: Callable[[], datetime] = DateRangeUtils.utc_now,
    ):
        self.store = store
        self.accounts = accounts
        self.promos = promos
        self.reps = reps
        self.quarters = quarters
        self.clock = clock

    def account_progress_rows(self, now: Optional[datetime] = None) -> List[ProgressRow]:
        """Progress and pace for every account with a current assignment."""
        now = now or self.clock()
        elapsed = elapsed_or_default(self.quarters.get_active_quarter(), now)

        assignments = self._current_assignments()
        if not assignments:
            return []
        transactions = self._transactions()
        accounts = {a.id: a for a in self.accounts.list_accounts(assignments.keys())}
        promo_names = self.promos.names_by_id(a.promo_id for a in assignments.values())

        rows = []
        for account_id, assignment in assignments.items():
            account = accounts.get(account_id)
            if account is None:
                logger.warning(f"Assignment {assignment.id} references missing account {account_id}")
                continue
            progress = compute_account_progress(account, assignment, transactions)
            rows.append(ProgressRow(
                account=account,
                assignment=assignment,
                promo_name=promo_names.get(assignment.promo_id, ""),
                progress=progress,
                pace=pace_status(progress.progress_pct, elapsed),
            ))
        rows.sort(key=lambda r: r.account.account_name.lower())
        return rows

    def team_summary(self, now: Optional[datetime] = None) -> TeamSummary:
        now = now or self.clock()
        quarter = self.quarters.get_active_quarter()
        _, progresses = self.quarters.current_progress()
        team = compute_team_progress(progresses)

        week_start = DateRangeUtils.start_of_week(now)
        units_this_week = sum(
            t.units_sold for t in self._transactions({"transaction_date__gte": week_start})
        )
        average = percent_of(sum(p.progress_pct for p in progresses), 100 * len(progresses))

        return TeamSummary(
            total_units=team.total_units,
            total_target=team.total_target,
            team_goal_pct=team.team_goal_pct,
            quarter_name=quarter.name if quarter else None,
            quarter_elapsed_pct=elapsed_or_default(quarter, now),
            days_left=days_left(quarter, now),
            units_this_week=units_this_week,
            average_progress_pct=average,
            accounts_on_promo=len(progresses),
        )

    def rep_breakdown(self, account: Account) -> List[RepUnits]:
        """Units per rep on the account's current promo, highest first."""
        row = self.store.find_one(
            "account_promos", {"account_id": account.id}, order=["-assigned_date", "-id"]
        )
        if row is None:
            return []
        assignment = Assignment.from_record(row)
        totals = units_by_rep(
            assignment,
            self._transactions({"account_id": account.id, "promo_id": assignment.promo_id}),
        )
        names = self.reps.names_by_id(totals.keys())
        breakdown = [
            RepUnits(
                rep_id=rep_id,
                rep_name=names.get(rep_id) or "Unknown",
                units=units,
                pct_of_target=percent_of(units, assignment.target_units),
            )
            for rep_id, units in totals.items()
        ]
        breakdown.sort(key=lambda r: r.units, reverse=True)
        return breakdown

    def _current_assignments(self) -> Dict[str, Assignment]:
        return current_assignments(
            Assignment.from_record(r) for r in self.store.select("account_promos")
        )

    def _transactions(self, filters=None) -> List[Transaction]:
        return [Transaction.from_record(r) for r in self.store.select("transactions", filters)]
