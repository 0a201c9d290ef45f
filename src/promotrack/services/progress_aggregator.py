"""
Progress aggregation over accounts, assignments and transactions.

Everything here is a pure function of its inputs: no store access, no side
effects, safe to call concurrently or memoize.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from ..models.entities import Account, Assignment, Transaction


def percent_of(numerator: int, denominator: int) -> int:
    """
    Half-up rounded percentage of two non-negative integers; 0 when denominator <= 0.

    Integer arithmetic avoids float artefacts at the .5 boundary.

    Examples:
        >>> percent_of(63, 125)
        50
        >>> percent_of(1, 8)
        13
        >>> percent_of(5, 0)
        0
    """
    if denominator <= 0:
        return 0
    return (200 * numerator + denominator) // (2 * denominator)


@dataclass(frozen=True)
class AccountProgress:
    """Units sold and percent of target for one account's current assignment."""
    units_sold: int
    progress_pct: int
    met_target: bool
    target_units: int = 0
    account_id: Optional[str] = None
    promo_id: Optional[str] = None


@dataclass(frozen=True)
class TeamProgress:
    """Team-wide rollup across accounts."""
    total_units: int
    total_target: int
    team_goal_pct: int


def current_assignments(assignments: Iterable[Assignment]) -> Dict[str, Assignment]:
    """
    Pick the authoritative assignment per account.

    The assignment with the most recent ``assigned_date`` wins; ties are broken
    by id so the choice is deterministic.
    """
    current: Dict[str, Assignment] = {}
    for assignment in assignments:
        existing = current.get(assignment.account_id)
        if existing is None or _sort_key(assignment) > _sort_key(existing):
            current[assignment.account_id] = assignment
    return current


def _sort_key(assignment: Assignment):
    return (assignment.assigned_date, assignment.id or "")


def compute_account_progress(
    account: Account,
    assignment: Assignment,
    transactions: Iterable[Transaction],
) -> AccountProgress:
    """
    Compute progress of ``account`` against ``assignment``.

    Only transactions for this account AND the assignment's promo count;
    units logged against a replaced promo are ignored.
    """
    account_id = account.id if account.id is not None else assignment.account_id
    units_sold = sum(
        t.units_sold
        for t in transactions
        if t.account_id == account_id and t.promo_id == assignment.promo_id
    )
    progress_pct = percent_of(units_sold, assignment.target_units)
    return AccountProgress(
        units_sold=units_sold,
        progress_pct=progress_pct,
        met_target=progress_pct >= 100,
        target_units=assignment.target_units,
        account_id=account_id,
        promo_id=assignment.promo_id,
    )


def compute_team_progress(progresses: Iterable[AccountProgress]) -> TeamProgress:
    """Sum units and targets across accounts; a zero total target yields 0 %."""
    items: List[AccountProgress] = list(progresses)
    total_units = sum(p.units_sold for p in items)
    total_target = sum(p.target_units for p in items)
    return TeamProgress(
        total_units=total_units,
        total_target=total_target,
        team_goal_pct=percent_of(total_units, total_target),
    )


def units_by_rep(
    assignment: Assignment,
    transactions: Iterable[Transaction],
) -> Dict[Optional[str], int]:
    """Units sold per rep id for an assignment's account and promo."""
    totals: Dict[Optional[str], int] = {}
    for t in transactions:
        if t.account_id == assignment.account_id and t.promo_id == assignment.promo_id:
            totals[t.rep_id] = totals.get(t.rep_id, 0) + t.units_sold
    return totals
