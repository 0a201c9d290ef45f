"""
Account management: creation, lookup, search and territory sets.

Territories are a set relationship stored in ``account_territories``. Accounts
created before that table existed carry a comma-joined ``accounts.territory``
string; it is read as a fallback until ``migrate_legacy_territories`` has
copied it into set rows.
"""

import logging
from typing import Dict, FrozenSet, Iterable, List, Optional

from ..models.entities import Account, Actor, parse_territories
from ..models.enums import ActivityType
from ..repositories.interfaces import RecordStore
from .activity_log_service import ActivityLogService
from .errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 50


class AccountService:
    """Accounts and their territory sets. Accounts are never deleted here."""

    def __init__(self, store: RecordStore, activity: ActivityLogService):
        self.store = store
        self.activity = activity

    # ---------------------------------------------------------------- lookups

    def get_account(self, account_id: str) -> Account:
        row = self.store.find_one("accounts", {"id": account_id})
        if row is None:
            raise NotFoundError(f"Account {account_id} not found")
        return self._to_account(row, self._territory_rows([account_id]))

    def list_accounts(self, account_ids: Optional[Iterable[str]] = None) -> List[Account]:
        filters = {"id__in": list(account_ids)} if account_ids is not None else None
        rows = self.store.select("accounts", filters, order=["account_name"])
        territory_rows = self._territory_rows([r["id"] for r in rows])
        return [self._to_account(r, territory_rows) for r in rows]

    def search_accounts(self, term: str = "", limit: int = SEARCH_LIMIT) -> List[Account]:
        """Case-insensitive match on account name or any territory."""
        accounts = self.list_accounts()
        needle = (term or "").strip().lower()
        if needle:
            accounts = [
                a for a in accounts
                if needle in a.account_name.lower()
                or any(needle in t.lower() for t in a.territories)
            ]
        return accounts[:limit]

    def list_territories(self) -> List[str]:
        """Distinct territory names across all accounts, sorted."""
        names = set()
        for account in self.list_accounts():
            names.update(account.territories)
        return sorted(names)

    # ----------------------------------------------------------------- writes

    def create_account(
        self,
        account_name: str,
        actor: Optional[Actor],
        account_number: Optional[str] = None,
        territories: Iterable[str] = (),
    ) -> Account:
        name = (account_name or "").strip()
        if not name:
            raise ValidationError("Account name is required", field="account_name")
        territory_set = parse_territories(territories)

        with self.store.transaction():
            row = self.store.insert("accounts", {
                "account_name": name,
                "account_number": (account_number or None),
            })[0]
            self._write_territories(row["id"], territory_set)

        account = self._to_account(row, {row["id"]: territory_set})
        logger.info(f"Created account {account.id} '{name}'")

        self.activity.record(
            ActivityType.ACCOUNT_CREATED, account.id, actor, {"account_name": name}
        )
        return account

    def change_territory(self, account: Account, territories: Iterable[str]) -> bool:
        """
        Replace the account's territory set.

        No-op (returns False) when the normalised set is unchanged. When called
        inside ``store.transaction()`` the write joins that unit of work.
        """
        new_set = parse_territories(territories)
        if new_set == account.territories:
            return False

        with self.store.transaction():
            self.store.delete("account_territories", {"account_id": account.id})
            self._write_territories(account.id, new_set)
            # The set rows are now authoritative; drop the legacy string.
            self.store.update("accounts", {"territory": None}, {"id": account.id})

        logger.info(
            f"Account {account.id} territories changed "
            f"{sorted(account.territories)} -> {sorted(new_set)}"
        )
        account.territories = new_set
        return True

    def migrate_legacy_territories(self) -> int:
        """
        Copy comma-joined ``accounts.territory`` values into set rows.

        Accounts that already have set rows are skipped. Returns the number of
        accounts migrated.
        """
        rows = self.store.select("accounts", {"territory__isnull": False})
        existing = self._territory_rows([r["id"] for r in rows])
        migrated = 0
        for row in rows:
            if row["id"] in existing:
                continue
            territory_set = parse_territories(row.get("territory"))
            if not territory_set:
                continue
            with self.store.transaction():
                self._write_territories(row["id"], territory_set)
                self.store.update("accounts", {"territory": None}, {"id": row["id"]})
            migrated += 1

        logger.info(f"Migrated legacy territories for {migrated} account(s)")
        return migrated

    # ---------------------------------------------------------------- helpers

    def _write_territories(self, account_id: str, territories: FrozenSet[str]) -> None:
        if territories:
            self.store.insert("account_territories", [
                {"account_id": account_id, "territory": t} for t in sorted(territories)
            ])

    def _territory_rows(self, account_ids: List[str]) -> Dict[str, FrozenSet[str]]:
        if not account_ids:
            return {}
        rows = self.store.select("account_territories", {"account_id__in": account_ids})
        grouped: Dict[str, set] = {}
        for row in rows:
            grouped.setdefault(row["account_id"], set()).add(row["territory"])
        return {k: frozenset(v) for k, v in grouped.items()}

    @staticmethod
    def _to_account(row: dict, territory_rows: Dict[str, FrozenSet[str]]) -> Account:
        territories = territory_rows.get(row["id"])
        if territories is None:
            territories = parse_territories(row.get("territory"))
        return Account.from_record(row, territories)
