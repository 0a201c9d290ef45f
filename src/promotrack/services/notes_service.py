"""
Account notes.

Notes live in the ``account_notes`` collection. Deployments that predate that
collection keep notes as free text in ``accounts.notes``; when the store
reports the collection unavailable the service switches to that legacy
representation explicitly rather than failing the write.
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional

from ..models.entities import Account, AccountNote, Actor
from ..models.enums import ActivityType
from ..repositories.interfaces import RecordStore
from ..utils.date_range_utils import DateRangeUtils
from .activity_log_service import ActivityLogService
from .directory_service import RepService
from .errors import CollectionUnavailableError, ValidationError

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 50


class NotesService:
    """Adds and lists notes with a legacy free-text fallback."""

    def __init__(
        self,
        store: RecordStore,
        reps: RepService,
        activity: ActivityLogService,
        clock: Callable[[], datetime] = DateRangeUtils.utc_now,
    ):
        self.store = store
        self.reps = reps
        self.activity = activity
        self.clock = clock

    def add_note(self, account: Account, body: str, actor: Optional[Actor]) -> AccountNote:
        text = (body or "").strip()
        if not text:
            raise ValidationError("Note text is required", field="note")

        try:
            row = self.store.insert("account_notes", {
                "account_id": account.id,
                "note": text,
                "created_by": actor.id if actor else None,
            })[0]
            note = AccountNote.from_record(row, actor.display_name if actor else None)
        except CollectionUnavailableError:
            logger.warning(
                f"account_notes unavailable; writing note for account {account.id} to accounts.notes"
            )
            note = self._append_legacy_note(account, text, actor)

        self.activity.record(
            ActivityType.NOTE_ADDED, account.id, actor, {"preview": text[:PREVIEW_LENGTH]}
        )
        return note

    def list_notes(self, account: Account) -> List[AccountNote]:
        """Newest first; a single synthesized note when only legacy text exists."""
        try:
            rows = self.store.select(
                "account_notes", {"account_id": account.id}, order=["-created_at"]
            )
        except CollectionUnavailableError:
            return self._legacy_notes(account)

        if not rows:
            return self._legacy_notes(account)

        authors = self.reps.names_by_id(r.get("created_by") for r in rows)
        return [AccountNote.from_record(r, authors.get(r.get("created_by"))) for r in rows]

    # ---------------------------------------------------------------- helpers

    def _append_legacy_note(self, account: Account, text: str, actor: Optional[Actor]) -> AccountNote:
        now = DateRangeUtils.as_utc(self.clock())
        author = actor.display_name if actor else "Unknown"
        entry = f"[{now.strftime('%Y-%m-%d %H:%M')}] {author}: {text}"

        current = self.store.find_one("accounts", {"id": account.id})
        existing = (current or {}).get("notes") or ""
        combined = f"{entry}\n\n{existing}" if existing else entry
        self.store.update("accounts", {"notes": combined}, {"id": account.id})
        account.notes = combined
        logger.info(f"Appended legacy note to account {account.id}")

        return AccountNote(
            account_id=account.id,
            note=text,
            created_by=actor.id if actor else None,
            author_name=author,
            created_at=now,
            is_legacy=True,
        )

    @staticmethod
    def _legacy_notes(account: Account) -> List[AccountNote]:
        if not account.notes:
            return []
        return [AccountNote(account_id=account.id, note=account.notes, is_legacy=True)]
