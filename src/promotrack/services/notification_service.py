"""
Notification events: territory alerts on promo assignment and the weekly
progress summary.

Every send attempt, successful or not, is recorded in ``notification_log``
together with the payload that produced it. Recording is best-effort.
"""

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, FrozenSet, List, Optional

from jinja2 import Environment, PackageLoader, select_autoescape

from ..models.entities import Rep, SideEffectResult, format_territories
from ..models.enums import NotificationStatus, NotificationType
from ..repositories.interfaces import RecordStore
from ..utils.date_range_utils import DateRangeUtils
from .errors import DispatchError
from .pace_engine import days_left, elapsed_or_default, is_behind_pace
from .progress_aggregator import percent_of
from .side_effects import best_effort

logger = logging.getLogger(__name__)

TOP_BEHIND_PACE = 5


@dataclass(frozen=True)
class PromoAssignedEvent:
    """Payload of the territory alert sent when an account joins a promo."""
    account_id: str
    account_name: str
    promo_name: str
    target_units: int
    territories: FrozenSet[str] = field(default_factory=frozenset)
    terms: Optional[str] = None
    assigned_by: str = "Unknown"

    def to_details(self) -> Dict[str, Any]:
        details = asdict(self)
        details["territories"] = sorted(self.territories)
        return details


@dataclass(frozen=True)
class SummaryAccount:
    account_name: str
    territory: str
    territories: FrozenSet[str]
    promo_name: str
    target: int
    units_sold: int
    progress: int
    behind_pace: bool
    met_target: bool


def _load_environment() -> Environment:
    return Environment(
        loader=PackageLoader("promotrack", "templates"),
        autoescape=select_autoescape(["html"]),
    )


def _receives(rep: Rep, territories: FrozenSet[str]) -> bool:
    """Reps with no territories receive everything."""
    return not rep.territories or bool(rep.territories & territories)


class NotificationService:
    """Selects recipients, renders emails, dispatches them and logs the outcome."""

    def __init__(
        self,
        store: RecordStore,
        dispatcher,
        reps,
        accounts,
        promos,
        quarters,
        dashboard_url: str = "https://promosync.io",
        clock: Callable[[], datetime] = DateRangeUtils.utc_now,
    ):
        self.store = store
        self.dispatcher = dispatcher
        self.reps = reps
        self.accounts = accounts
        self.promos = promos
        self.quarters = quarters
        self.dashboard_url = dashboard_url
        self.clock = clock
        self.templates = _load_environment()

    # ----------------------------------------------------------- assignments

    def notify_promo_assigned(self, event: PromoAssignedEvent) -> Dict[str, Any]:
        """Alert opted-in reps whose territories overlap the account's."""
        recipients = [
            rep for rep in self.reps.reps_opted_in("notify_territory_alerts")
            if _receives(rep, event.territories)
        ]
        if not recipients:
            logger.info(f"No territory-alert recipients for account {event.account_id}")
            return {"success": True, "count": 0}

        template = self.templates.get_template("email/promo_assigned.html")
        subject = f"New Promo: {event.account_name} assigned to {event.promo_name}"
        sent = 0
        for rep in recipients:
            html = template.render(
                rep_name=rep.name,
                account_name=event.account_name,
                territory_label=format_territories(event.territories) or "No territory",
                promo_name=event.promo_name,
                target_units=event.target_units,
                terms=event.terms,
                assigned_by=event.assigned_by,
                dashboard_url=self.dashboard_url,
            )
            outcome = self._send(rep, subject, html)
            if outcome.ok:
                sent += 1
            self._log(rep, NotificationType.PROMO_ASSIGNED, subject, outcome, event.to_details())

        logger.info(f"Promo-assigned alert for account {event.account_id}: {sent}/{len(recipients)} sent")
        return {"success": True, "count": sent}

    # --------------------------------------------------------- weekly summary

    def send_weekly_summaries(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Send each opted-in rep a summary of the accounts in their territories."""
        now = now or self.clock()
        reps = self.reps.reps_opted_in("notify_weekly_summary")
        if not reps:
            logger.info("No reps opted in to weekly summaries")
            return {"success": True, "count": 0, "message": "No reps opted in"}

        quarter = self.quarters.get_active_quarter()
        quarter_progress = elapsed_or_default(quarter, now)
        remaining = days_left(quarter, now)
        accounts = self.summary_accounts(quarter_progress)
        template = self.templates.get_template("email/weekly_summary.html")

        sent = 0
        for rep in reps:
            rep_accounts = [a for a in accounts if _receives(rep, a.territories)]
            behind = [a for a in rep_accounts if a.behind_pace]
            met_count = sum(1 for a in rep_accounts if a.met_target)
            overall = percent_of(
                sum(a.units_sold for a in rep_accounts),
                sum(a.target for a in rep_accounts),
            )
            top_behind = sorted(behind, key=lambda a: a.progress)[:TOP_BEHIND_PACE]

            if behind:
                subject = f"Weekly Summary: {len(behind)} accounts need attention"
            else:
                subject = "Weekly Summary: All on pace!"

            html = template.render(
                rep_name=rep.name,
                quarter_name=quarter.name if quarter else "Current Quarter",
                days_left=remaining,
                overall_progress=overall,
                quarter_progress=quarter_progress,
                behind_pace_count=len(behind),
                met_target_count=met_count,
                behind_pace_accounts=top_behind,
                dashboard_url=self.dashboard_url,
            )
            outcome = self._send(rep, subject, html)
            if outcome.ok:
                sent += 1
            self._log(rep, NotificationType.WEEKLY_SUMMARY, subject, outcome, {
                "overall_progress": overall,
                "behind_pace_count": len(behind),
                "met_target_count": met_count,
                "total_accounts": len(rep_accounts),
            })

        logger.info(f"Sent {sent} of {len(reps)} weekly summary email(s)")
        return {"success": True, "count": sent, "message": f"Sent {sent} weekly summary email(s)"}

    def summary_accounts(self, quarter_progress: int) -> List[SummaryAccount]:
        """Progress of every currently assigned account, using promo-matched transactions."""
        assignments, progresses = self.quarters.current_progress()
        if not assignments:
            return []
        accounts = {a.id: a for a in self.accounts.list_accounts([a.account_id for a in assignments])}
        promo_names = self.promos.names_by_id(a.promo_id for a in assignments)

        summary = []
        for assignment, progress in zip(assignments, progresses):
            account = accounts.get(assignment.account_id)
            if account is None:
                continue
            summary.append(SummaryAccount(
                account_name=account.account_name,
                territory=format_territories(account.territories),
                territories=frozenset(account.territories),
                promo_name=promo_names.get(assignment.promo_id, ""),
                target=assignment.target_units,
                units_sold=progress.units_sold,
                progress=progress.progress_pct,
                behind_pace=is_behind_pace(progress.progress_pct, quarter_progress),
                met_target=progress.met_target,
            ))
        return summary

    # ---------------------------------------------------------------- helpers

    def _deliver(self, to: str, subject: str, html: str) -> Dict[str, Any]:
        result = self.dispatcher.send(to, subject, html)
        if not result.ok:
            raise DispatchError(result.error or "Email API did not accept the message")
        return {"message_id": result.message_id}

    def _send(self, rep: Rep, subject: str, html: str) -> SideEffectResult:
        """Dispatch one email; a failed send is logged and reported, never raised."""
        return best_effort(f"Email to rep {rep.id}", self._deliver, rep.email, subject, html)

    def _log(self, rep: Rep, kind: NotificationType, subject: str, outcome: SideEffectResult,
             details: Dict[str, Any]):
        status = NotificationStatus.SENT if outcome.ok else NotificationStatus.FAILED
        payload = dict(details)
        if outcome.record and outcome.record.get("message_id"):
            payload["message_id"] = outcome.record["message_id"]
        if outcome.error:
            payload["error"] = outcome.error

        return best_effort(
            f"Notification log for rep {rep.id}",
            self.store.insert,
            "notification_log",
            {
                "rep_id": rep.id,
                "notification_type": kind.value,
                "subject": subject,
                "status": status.value,
                "details": payload,
            },
        )
