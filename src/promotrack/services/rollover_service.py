"""
Quarter rollover: archive the quarter's promo state, reset it and advance the
active quarter.

The rollover is an operator-driven, three-phase state machine:

    IDLE -> STATS_FETCHED -> CONFIRMED -> EXECUTING -> DONE
                 |                           |
                 +---------> ERROR <---------+

Execution is an ordered sequence of steps that each commit on their own. A
failing step leaves earlier steps committed and raises PartialRolloverError;
there is no automatic compensation. Archive steps are safe to re-run
(duplicates in the archive are acceptable), delete steps are not.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from ..models.entities import Actor, Quarter
from ..models.enums import RolloverState
from ..repositories.interfaces import Record, RecordStore
from .errors import PartialRolloverError, RolloverStateError, ValidationError
from .quarter_service import QuarterService

logger = logging.getLogger(__name__)

CONFIRMATION_PHRASE = "END QUARTER"
UNKNOWN_QUARTER_NAME = "Unknown Quarter"

ARCHIVE_ASSIGNMENTS = "archive_assignments"
ARCHIVE_TRANSACTIONS = "archive_transactions"
DELETE_TRANSACTIONS = "delete_transactions"
DELETE_ASSIGNMENTS = "delete_assignments"
ADVANCE_QUARTER = "advance_quarter"


@dataclass(frozen=True)
class RolloverStats:
    """Counts shown to the operator before confirming."""
    assignments: int
    transactions: int
    accounts: int
    quarter_name: str


@dataclass
class RolloverResult:
    quarter_name: str
    archived_assignments: int = 0
    archived_transactions: int = 0
    deleted_transactions: int = 0
    deleted_assignments: int = 0
    deactivated_quarter: Optional[Quarter] = None
    activated_quarter: Optional[Quarter] = None
    completed_steps: List[str] = field(default_factory=list)


class QuarterRolloverService:
    """Drives one quarter rollover through stats, confirmation and execution."""

    def __init__(self, store: RecordStore, quarters: QuarterService):
        self.store = store
        self.quarters = quarters
        self.state = RolloverState.IDLE
        self.stats: Optional[RolloverStats] = None
        self.result: Optional[RolloverResult] = None
        self.error: Optional[Exception] = None

    # ---------------------------------------------------------------- phase 1

    def fetch_stats(self) -> RolloverStats:
        """
        Count what the rollover will archive. Mutates nothing.

        Allowed from any state except EXECUTING; a previous run's DONE or ERROR
        state is discarded.
        """
        if self.state is RolloverState.EXECUTING:
            raise RolloverStateError("A rollover is executing; stats cannot be refetched now")

        self.result = None
        self.error = None
        try:
            quarter = self.quarters.get_active_quarter()
            stats = RolloverStats(
                assignments=self.store.count("account_promos"),
                transactions=self.store.count("transactions"),
                accounts=self.store.count("accounts"),
                quarter_name=quarter.name if quarter else UNKNOWN_QUARTER_NAME,
            )
        except Exception as e:
            logger.error(f"Failed to fetch rollover stats: {e}")
            self.state = RolloverState.ERROR
            self.error = e
            raise

        self.stats = stats
        self.state = RolloverState.STATS_FETCHED
        logger.info(
            f"Rollover stats for {stats.quarter_name}: {stats.assignments} assignment(s), "
            f"{stats.transactions} transaction(s), {stats.accounts} account(s)"
        )
        return stats

    # ---------------------------------------------------------------- phase 2

    def confirm(self, token: str) -> None:
        """Require the operator to type CONFIRMATION_PHRASE exactly."""
        if self.state is not RolloverState.STATS_FETCHED:
            raise RolloverStateError(
                f"Rollover must be in {RolloverState.STATS_FETCHED.value} to confirm "
                f"(currently {self.state.value})"
            )
        if token != CONFIRMATION_PHRASE:
            raise ValidationError(
                f"Type '{CONFIRMATION_PHRASE}' to confirm the rollover", field="confirmation"
            )
        self.state = RolloverState.CONFIRMED
        logger.info("Rollover confirmed by operator")

    # ---------------------------------------------------------------- phase 3

    def execute(self, actor: Optional[Actor] = None) -> RolloverResult:
        """
        Archive both tables, delete both tables, then advance the active quarter.

        Raises:
            RolloverStateError: when not confirmed
            PartialRolloverError: when a step fails; earlier steps stay committed
        """
        if self.state is not RolloverState.CONFIRMED:
            raise RolloverStateError(
                f"Rollover must be confirmed before executing (currently {self.state.value})"
            )
        self.state = RolloverState.EXECUTING

        who = actor.display_name if actor else "unknown operator"
        logger.info(f"Quarter rollover started by {who}")

        try:
            outgoing = self.quarters.get_active_quarter()
        except Exception as e:
            raise self._fail("read_active_quarter", RolloverResult(UNKNOWN_QUARTER_NAME), e) from e

        result = RolloverResult(quarter_name=outgoing.name if outgoing else UNKNOWN_QUARTER_NAME)
        steps: List[Tuple[str, Callable[[RolloverResult], None]]] = [
            (ARCHIVE_ASSIGNMENTS, self._archive_assignments),
            (ARCHIVE_TRANSACTIONS, self._archive_transactions),
            (DELETE_TRANSACTIONS, self._delete_transactions),
            (DELETE_ASSIGNMENTS, self._delete_assignments),
            (ADVANCE_QUARTER, lambda r: self._advance_quarter(r, outgoing)),
        ]

        for name, step in steps:
            try:
                step(result)
            except Exception as e:
                raise self._fail(name, result, e) from e
            result.completed_steps.append(name)
            logger.debug(f"Rollover step '{name}' completed")

        self.state = RolloverState.DONE
        self.result = result
        logger.info(
            f"Quarter rollover of {result.quarter_name} complete: archived "
            f"{result.archived_assignments} assignment(s) and {result.archived_transactions} "
            f"transaction(s); next quarter: "
            f"{result.activated_quarter.name if result.activated_quarter else 'none'}"
        )
        return result

    def run(self, token: str, actor: Optional[Actor] = None) -> RolloverResult:
        """All three phases in one call, for non-interactive callers."""
        self.fetch_stats()
        self.confirm(token)
        return self.execute(actor)

    # ------------------------------------------------------------------ steps

    def _archive_assignments(self, result: RolloverResult) -> None:
        rows = self.store.select("account_promos")
        if rows:
            self.store.insert("archived_account_promos", [
                self._archive_copy(r, result.quarter_name,
                                   ("account_id", "promo_id", "target_units", "terms", "assigned_date"))
                for r in rows
            ])
        result.archived_assignments = len(rows)

    def _archive_transactions(self, result: RolloverResult) -> None:
        rows = self.store.select("transactions")
        if rows:
            self.store.insert("archived_transactions", [
                self._archive_copy(r, result.quarter_name,
                                   ("rep_id", "account_id", "promo_id", "units_sold",
                                    "transaction_date", "notes"))
                for r in rows
            ])
        result.archived_transactions = len(rows)

    def _delete_transactions(self, result: RolloverResult) -> None:
        result.deleted_transactions = self.store.delete("transactions")

    def _delete_assignments(self, result: RolloverResult) -> None:
        result.deleted_assignments = self.store.delete("account_promos")

    def _advance_quarter(self, result: RolloverResult, outgoing: Optional[Quarter]) -> None:
        if outgoing is None:
            return
        self.store.update("quarters", {"is_active": False}, {"id": outgoing.id})
        result.deactivated_quarter = outgoing

        following = self.quarters.next_quarter_after(outgoing.end_date)
        if following is None:
            logger.warning(f"No quarter starts after {outgoing.end_date}; no quarter is active now")
            return
        self.store.update("quarters", {"is_active": True}, {"id": following.id})
        following.is_active = True
        result.activated_quarter = following

    @staticmethod
    def _archive_copy(row: Record, quarter_name: str, columns) -> Record:
        copy = {c: row.get(c) for c in columns}
        copy["original_id"] = row.get("id")
        copy["quarter_name"] = quarter_name
        return copy

    def _fail(self, step: str, result: RolloverResult, cause: Exception) -> PartialRolloverError:
        logger.error(
            f"Quarter rollover failed at step '{step}' after {result.completed_steps}: {cause}"
        )
        self.state = RolloverState.ERROR
        self.result = result
        self.error = PartialRolloverError(step, result.completed_steps, cause)
        return self.error
