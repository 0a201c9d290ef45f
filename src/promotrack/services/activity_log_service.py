"""Append-only activity feed (best-effort writes)."""

import logging
from typing import Any, Dict, List, Optional

from ..models.entities import ActivityEntry, Actor, SideEffectResult
from ..models.enums import ActivityType
from ..repositories.interfaces import RecordStore
from .side_effects import best_effort

logger = logging.getLogger(__name__)


class ActivityLogService:
    """Records and lists activity entries."""

    def __init__(self, store: RecordStore):
        self.store = store

    def record(
        self,
        action_type: ActivityType,
        account_id: Optional[str],
        actor: Optional[Actor],
        details: Optional[Dict[str, Any]] = None,
    ) -> SideEffectResult:
        """Append an entry; failures are logged and reported, never raised."""
        entry = {
            "action_type": action_type.value,
            "account_id": account_id,
            "rep_id": actor.id if actor else None,
            "details": details or {},
        }

        def _insert():
            return self.store.insert("activity_log", entry)[0]

        result = best_effort(f"Activity log '{action_type.value}' for account {account_id}", _insert)
        if result.ok:
            logger.debug(f"Logged activity {action_type.value} for account {account_id}")
        return result

    def recent(self, limit: int = 20) -> List[ActivityEntry]:
        rows = self.store.select("activity_log", order=["-created_at"], limit=limit)
        return [ActivityEntry.from_record(r) for r in rows]

    def for_account(self, account_id: str, limit: int = 50) -> List[ActivityEntry]:
        rows = self.store.select(
            "activity_log", {"account_id": account_id}, order=["-created_at"], limit=limit
        )
        return [ActivityEntry.from_record(r) for r in rows]
