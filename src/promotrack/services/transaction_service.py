"""Quick entry of unit sales against an account's promo."""

import logging
from datetime import date, datetime
from typing import Callable, List, Optional

from ..models.entities import Account, Actor, Transaction
from ..models.enums import ActivityType
from ..repositories.interfaces import RecordStore
from ..utils.date_range_utils import DateRangeUtils
from .activity_log_service import ActivityLogService
from .directory_service import PromoService
from .errors import ValidationError

logger = logging.getLogger(__name__)


class TransactionService:
    """Writes immutable Transaction rows attributed to an explicit actor."""

    def __init__(
        self,
        store: RecordStore,
        promos: PromoService,
        activity: ActivityLogService,
        clock: Callable[[], datetime] = DateRangeUtils.utc_now,
    ):
        self.store = store
        self.promos = promos
        self.activity = activity
        self.clock = clock

    def log_transaction(
        self,
        account: Account,
        promo_id: Optional[str],
        units,
        actor: Optional[Actor],
        note: Optional[str] = None,
        transaction_date: Optional[date] = None,
    ) -> Transaction:
        """
        Log ``units`` sold for ``account``.

        When ``promo_id`` is omitted the account's current assignment supplies
        it; an account with no assignment cannot take units.
        """
        try:
            units = int(units)
        except (TypeError, ValueError):
            raise ValidationError("units must be a whole number", field="units") from None
        if units <= 0:
            raise ValidationError("units must be greater than 0", field="units")

        if not promo_id:
            current = self.store.find_one(
                "account_promos", {"account_id": account.id}, order=["-assigned_date", "-id"]
            )
            if current is None:
                raise ValidationError(
                    f"Account '{account.account_name}' is not on a promo", field="promo_id"
                )
            promo_id = current["promo_id"]
        promo = self.promos.get_promo(promo_id)

        if isinstance(transaction_date, str):
            try:
                transaction_date = DateRangeUtils.parse_date(transaction_date)
            except ValueError:
                raise ValidationError(
                    f"Invalid transaction date: {transaction_date!r}", field="transaction_date"
                ) from None
        transaction = Transaction(
            account_id=account.id,
            promo_id=promo.id,
            units_sold=units,
            transaction_date=transaction_date or DateRangeUtils.as_utc(self.clock()).date(),
            rep_id=actor.id if actor else None,
            notes=(note or "").strip() or None,
        )
        row = self.store.insert("transactions", transaction.to_record())[0]
        transaction = Transaction.from_record(row)
        logger.info(f"Logged {units} unit(s) for account {account.id} on promo {promo.id}")

        self.activity.record(
            ActivityType.UNITS_LOGGED, account.id, actor,
            {"units": units, "promo_name": promo.promo_name},
        )
        return transaction

    def list_transactions(
        self,
        account_id: Optional[str] = None,
        promo_id: Optional[str] = None,
        since: Optional[date] = None,
    ) -> List[Transaction]:
        filters = {}
        if account_id:
            filters["account_id"] = account_id
        if promo_id:
            filters["promo_id"] = promo_id
        if since:
            filters["transaction_date__gte"] = since
        rows = self.store.select("transactions", filters or None, order=["-transaction_date", "-created_at"])
        return [Transaction.from_record(r) for r in rows]
