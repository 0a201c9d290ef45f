"""
Promo assignment management.

An account has at most one *current* assignment: the row with the most recent
``assigned_date``. A new assignment for an already-assigned account supersedes
the previous one by writing a newer row; the superseded row stays in the table
until the next quarter rollover archives it. Concurrent writers therefore
cannot produce two current assignments, the later ``assigned_date`` simply
wins.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Iterable, List, Optional

from ..models.entities import Account, Actor, Assignment, Promo, SideEffectResult, Transaction
from ..models.enums import ActivityType
from ..repositories.interfaces import RecordStore
from ..utils.date_range_utils import DateRangeUtils
from .account_service import AccountService
from .activity_log_service import ActivityLogService
from .directory_service import PromoService
from .errors import DuplicateAssignmentError, NotFoundError, ValidationError
from .notification_service import PromoAssignedEvent
from .side_effects import best_effort

logger = logging.getLogger(__name__)

INITIAL_UNITS_NOTE = "Initial units on promo assignment"


@dataclass
class AssignmentResult:
    """Outcome of an assignment write plus the side effects it triggered."""
    assignment: Assignment
    promo: Promo
    superseded: Optional[Assignment] = None
    seed_transaction: Optional[Transaction] = None
    territory_changed: bool = False
    side_effects: List[SideEffectResult] = field(default_factory=list)


def _positive_int(value, field_name: str, allow_zero: bool = False) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a whole number", field=field_name)
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a whole number", field=field_name) from None
    if number != value and not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a whole number", field=field_name)
    if number < 0 or (number == 0 and not allow_zero):
        raise ValidationError(f"{field_name} must be greater than 0", field=field_name)
    return number


@contextmanager
def _restore_territories_on_error(account: Account):
    """Put ``account.territories`` back when the enclosing write fails."""
    saved = account.territories
    try:
        yield
    except Exception:
        account.territories = saved
        raise


class AssignmentService:
    """Creates and edits promo assignments and fires their side effects."""

    def __init__(
        self,
        store: RecordStore,
        accounts: AccountService,
        promos: PromoService,
        activity: ActivityLogService,
        notifier=None,
        clock: Callable[[], datetime] = DateRangeUtils.utc_now,
    ):
        self.store = store
        self.accounts = accounts
        self.promos = promos
        self.activity = activity
        self.notifier = notifier
        self.clock = clock

    # ---------------------------------------------------------------- lookups

    def current_assignment(self, account_id: str) -> Optional[Assignment]:
        """The authoritative assignment for an account, or None."""
        row = self.store.find_one(
            "account_promos", {"account_id": account_id}, order=["-assigned_date", "-id"]
        )
        return Assignment.from_record(row) if row else None

    def get_assignment(self, assignment_id: str) -> Assignment:
        row = self.store.find_one("account_promos", {"id": assignment_id})
        if row is None:
            raise NotFoundError(f"Assignment {assignment_id} not found")
        return Assignment.from_record(row)

    def list_assignments(self) -> List[Assignment]:
        return [Assignment.from_record(r) for r in self.store.select("account_promos")]

    # ----------------------------------------------------------------- writes

    def assign_promo(
        self,
        account: Account,
        promo_id: str,
        target_units,
        actor: Optional[Actor],
        terms: Optional[str] = None,
        initial_units=0,
        territories: Optional[Iterable[str]] = None,
        replace: bool = True,
    ) -> AssignmentResult:
        """
        Assign ``account`` to a promo.

        An existing current assignment is superseded when ``replace`` is True
        (the default) and rejected with DuplicateAssignmentError otherwise.
        ``initial_units`` > 0 seeds one transaction attributed to ``actor``.
        ``territories``, when given, is written in the same unit of work.
        """
        target = _positive_int(target_units, "target_units")
        seed_units = _positive_int(initial_units or 0, "initial_units", allow_zero=True)
        promo = self.promos.get_active_promo(promo_id)
        terms = terms if terms else promo.terms

        territory_changed = False
        with _restore_territories_on_error(account), self.store.transaction():
            if territories is not None:
                territory_changed = self.accounts.change_territory(account, territories)

            # Re-read right before the insert so the superseded row is accurate.
            previous = self.current_assignment(account.id)
            if previous is not None and not replace:
                raise DuplicateAssignmentError(account.id, previous.id)

            assignment = Assignment(
                account_id=account.id,
                promo_id=promo.id,
                target_units=target,
                terms=terms,
                assigned_date=self._next_assigned_date(previous),
            )
            row = self.store.insert("account_promos", assignment.to_record())[0]
            assignment = Assignment.from_record(row)

            seed = None
            if seed_units > 0:
                seed = self._insert_transaction(account.id, promo.id, seed_units, actor, INITIAL_UNITS_NOTE)

        logger.info(
            f"Assigned account {account.id} to promo {promo.id} (target {target})"
            + (f", superseding {previous.id}" if previous else "")
        )

        result = AssignmentResult(
            assignment=assignment,
            promo=promo,
            superseded=previous,
            seed_transaction=seed,
            territory_changed=territory_changed,
        )

        details = {"promo_name": promo.promo_name, "target_units": target}
        if previous is not None:
            details["previous_promo_id"] = previous.promo_id
            action = ActivityType.PROMO_CHANGED
        else:
            action = ActivityType.PROMO_ASSIGNED
        result.side_effects.append(self.activity.record(action, account.id, actor, details))

        if seed is not None:
            result.side_effects.append(self.activity.record(
                ActivityType.UNITS_LOGGED, account.id, actor,
                {"units": seed_units, "note": INITIAL_UNITS_NOTE},
            ))

        result.side_effects.append(self._notify(account, promo, target, terms, actor))
        return result

    def update_assignment(
        self,
        assignment_id: str,
        promo_id: str,
        target_units,
        actor: Optional[Actor],
        terms: Optional[str] = None,
        territories: Optional[Iterable[str]] = None,
    ) -> AssignmentResult:
        """
        Edit an existing assignment in place (edit path).

        Refreshes ``assigned_date`` so the edited row stays current. No seed
        transaction and no assignment notification.
        """
        target = _positive_int(target_units, "target_units")
        promo = self.promos.get_active_promo(promo_id)
        existing = self.get_assignment(assignment_id)
        account = self.accounts.get_account(existing.account_id)
        terms = terms if terms else promo.terms

        territory_changed = False
        with _restore_territories_on_error(account), self.store.transaction():
            if territories is not None:
                territory_changed = self.accounts.change_territory(account, territories)
            assigned_date = self._next_assigned_date(self.current_assignment(account.id))
            self.store.update(
                "account_promos",
                {
                    "promo_id": promo.id,
                    "target_units": target,
                    "terms": terms,
                    "assigned_date": DateRangeUtils.to_iso(assigned_date),
                },
                {"id": assignment_id},
            )

        updated = self.get_assignment(assignment_id)
        logger.info(f"Updated assignment {assignment_id} for account {account.id} -> promo {promo.id}")

        result = AssignmentResult(
            assignment=updated,
            promo=promo,
            superseded=existing,
            territory_changed=territory_changed,
        )
        result.side_effects.append(self.activity.record(
            ActivityType.PROMO_CHANGED, account.id, actor,
            {"promo_name": promo.promo_name, "target_units": target},
        ))
        return result

    # ---------------------------------------------------------------- helpers

    def _next_assigned_date(self, previous: Optional[Assignment]) -> datetime:
        """Now, nudged past the previous current row so the new row always wins."""
        now = DateRangeUtils.as_utc(self.clock())
        if previous is not None and previous.assigned_date is not None and now <= previous.assigned_date:
            return previous.assigned_date + timedelta(microseconds=1)
        return now

    def _insert_transaction(self, account_id, promo_id, units, actor, note) -> Transaction:
        transaction = Transaction(
            account_id=account_id,
            promo_id=promo_id,
            units_sold=units,
            transaction_date=DateRangeUtils.as_utc(self.clock()).date(),
            rep_id=actor.id if actor else None,
            notes=note,
        )
        row = self.store.insert("transactions", transaction.to_record())[0]
        return Transaction.from_record(row)

    def _notify(self, account, promo, target, terms, actor) -> SideEffectResult:
        if self.notifier is None:
            return SideEffectResult(ok=True)
        event = PromoAssignedEvent(
            account_id=account.id,
            account_name=account.account_name,
            territories=frozenset(account.territories),
            promo_name=promo.promo_name,
            target_units=target,
            terms=terms,
            assigned_by=actor.display_name if actor else "Unknown",
        )
        return best_effort(
            f"Promo-assigned notification for account {account.id}",
            self.notifier.notify_promo_assigned,
            event,
        )
