"""Quarter lookup, creation and activation, plus quarter-wide progress stats."""

import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Tuple

from ..models.entities import Account, Assignment, Quarter, Transaction
from ..repositories.interfaces import RecordStore
from ..utils.date_range_utils import DateRangeUtils
from .errors import NotFoundError, ValidationError
from .progress_aggregator import (
    AccountProgress,
    compute_account_progress,
    compute_team_progress,
    current_assignments,
)

logger = logging.getLogger(__name__)

# Quarter stats count an account as behind below this progress.
STATS_BEHIND_PCT = 75


@dataclass(frozen=True)
class QuarterStats:
    """Quarter-wide counts shown before a rollover and on the admin view."""
    total_accounts: int
    total_target: int
    total_sold: int
    met_count: int
    behind_count: int
    overall_pct: int


class QuarterService:
    """Single-active-quarter bookkeeping."""

    def __init__(self, store: RecordStore):
        self.store = store

    def get_active_quarter(self) -> Optional[Quarter]:
        row = self.store.find_one("quarters", {"is_active": True}, order=["-start_date"])
        return Quarter.from_record(row) if row else None

    def list_quarters(self) -> List[Quarter]:
        rows = self.store.select("quarters", order=["start_date"])
        return [Quarter.from_record(r) for r in rows]

    def create_quarter(self, name: str, start_date, end_date, is_active: bool = False) -> Quarter:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Quarter name is required", field="name")
        start = DateRangeUtils.parse_date(start_date)
        end = DateRangeUtils.parse_date(end_date)
        if start is None or end is None:
            raise ValidationError("Quarter start and end dates are required", field="start_date")
        if start >= end:
            raise ValidationError("Quarter start must be before its end", field="end_date")

        row = self.store.insert("quarters", {
            "name": name,
            "start_date": start,
            "end_date": end,
            "is_active": False,
        })[0]
        quarter = Quarter.from_record(row)
        logger.info(f"Created quarter {quarter.id} '{name}' {start} -> {end}")

        if is_active:
            quarter = self.set_active_quarter(quarter.id)
        return quarter

    def set_active_quarter(self, quarter_id: str) -> Quarter:
        """Deactivate every quarter, then activate ``quarter_id``."""
        row = self.store.find_one("quarters", {"id": quarter_id})
        if row is None:
            raise NotFoundError(f"Quarter {quarter_id} not found")

        with self.store.transaction():
            self.store.update("quarters", {"is_active": False}, {"is_active": True})
            self.store.update("quarters", {"is_active": True}, {"id": quarter_id})

        logger.info(f"Activated quarter {quarter_id} '{row.get('name')}'")
        return Quarter.from_record({**row, "is_active": True})

    def next_quarter_after(self, end_date: date) -> Optional[Quarter]:
        """First quarter starting strictly after ``end_date``."""
        row = self.store.find_one(
            "quarters", {"start_date__gt": end_date}, order=["start_date"]
        )
        return Quarter.from_record(row) if row else None

    # ------------------------------------------------------------------ stats

    def current_progress(self) -> Tuple[List[Assignment], List[AccountProgress]]:
        """Current assignments and their progress, in account order of assignment."""
        assignments = current_assignments(
            Assignment.from_record(r) for r in self.store.select("account_promos")
        )
        transactions = [Transaction.from_record(r) for r in self.store.select("transactions")]
        ordered = list(assignments.values())
        progresses = [
            compute_account_progress(Account(account_name="", id=a.account_id), a, transactions)
            for a in ordered
        ]
        return ordered, progresses

    def quarter_stats(self) -> QuarterStats:
        _, progresses = self.current_progress()
        team = compute_team_progress(progresses)
        return QuarterStats(
            total_accounts=len(progresses),
            total_target=team.total_target,
            total_sold=team.total_units,
            met_count=sum(1 for p in progresses if p.met_target),
            behind_count=sum(1 for p in progresses if p.progress_pct < STATS_BEHIND_PCT),
            overall_pct=team.team_goal_pct,
        )
