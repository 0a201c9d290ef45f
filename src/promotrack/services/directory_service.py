"""
Lookups for reps and promos.

Reps carry their territory set from ``rep_territories``; promos are referenced
by assignments and transactions but never owned by them.
"""

import logging
from typing import Dict, FrozenSet, Iterable, List, Optional

from ..models.entities import Promo, Rep
from ..repositories.interfaces import RecordStore
from .errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


class RepService:
    """Read access to reps and their territories and notification opt-ins."""

    def __init__(self, store: RecordStore):
        self.store = store

    def get_rep(self, rep_id: str) -> Rep:
        row = self.store.find_one("reps", {"id": rep_id})
        if row is None:
            raise NotFoundError(f"Rep {rep_id} not found")
        return Rep.from_record(row, self._territories([rep_id]).get(rep_id))

    def find_rep(self, rep_id: Optional[str]) -> Optional[Rep]:
        if not rep_id:
            return None
        try:
            return self.get_rep(rep_id)
        except NotFoundError:
            return None

    def list_reps(self, **filters) -> List[Rep]:
        rows = self.store.select("reps", filters or None, order=["name"])
        territories = self._territories([r["id"] for r in rows])
        return [Rep.from_record(r, territories.get(r["id"])) for r in rows]

    def reps_opted_in(self, flag: str) -> List[Rep]:
        """Reps with an email address and the given notification flag set."""
        if flag not in ("notify_territory_alerts", "notify_weekly_summary"):
            raise ValueError(f"Unknown notification flag: {flag}")
        return self.list_reps(**{flag: True, "email__isnull": False})

    def names_by_id(self, rep_ids: Iterable[Optional[str]]) -> Dict[str, str]:
        ids = sorted({r for r in rep_ids if r})
        if not ids:
            return {}
        rows = self.store.select("reps", {"id__in": ids})
        return {r["id"]: r.get("name") or "" for r in rows}

    def _territories(self, rep_ids: List[str]) -> Dict[str, FrozenSet[str]]:
        if not rep_ids:
            return {}
        rows = self.store.select("rep_territories", {"rep_id__in": rep_ids})
        grouped: Dict[str, set] = {}
        for row in rows:
            grouped.setdefault(row["rep_id"], set()).add(row["territory"])
        return {k: frozenset(v) for k, v in grouped.items()}


class PromoService:
    """Read access to promos."""

    def __init__(self, store: RecordStore):
        self.store = store

    def get_promo(self, promo_id: str) -> Promo:
        row = self.store.find_one("promos", {"id": promo_id})
        if row is None:
            raise NotFoundError(f"Promo {promo_id} not found")
        return Promo.from_record(row)

    def get_active_promo(self, promo_id: str) -> Promo:
        """Return the promo, requiring it to exist and be active."""
        promo = self.get_promo(promo_id)
        if not promo.is_active:
            raise ValidationError(f"Promo '{promo.promo_name}' is not active", field="promo_id")
        return promo

    def list_active_promos(self) -> List[Promo]:
        rows = self.store.select("promos", {"is_active": True}, order=["promo_name"])
        return [Promo.from_record(r) for r in rows]

    def names_by_id(self, promo_ids: Iterable[str]) -> Dict[str, str]:
        ids = sorted(set(promo_ids))
        if not ids:
            return {}
        rows = self.store.select("promos", {"id__in": ids})
        return {r["id"]: r.get("promo_name") or "" for r in rows}
