"""
Enums for type safety in the promo tracking tool.
"""

from enum import Enum


class ActivityType(Enum):
    """Activity log action types."""
    UNITS_LOGGED = "units_logged"
    PROMO_ASSIGNED = "promo_assigned"
    PROMO_CHANGED = "promo_changed"
    NOTE_ADDED = "note_added"
    ACCOUNT_CREATED = "account_created"


class PaceStatus(Enum):
    """Progress relative to elapsed quarter time."""
    AHEAD = "ahead"
    ON_PACE = "on_pace"
    BEHIND = "behind"
    MET = "met"


class RolloverState(Enum):
    """Quarter rollover controller states."""
    IDLE = "idle"
    STATS_FETCHED = "stats_fetched"
    CONFIRMED = "confirmed"
    EXECUTING = "executing"
    DONE = "done"
    ERROR = "error"


class NotificationType(Enum):
    """Notification log categories."""
    PROMO_ASSIGNED = "promo_assigned"
    WEEKLY_SUMMARY = "weekly_summary"


class NotificationStatus(Enum):
    """Delivery outcome recorded in the notification log."""
    SENT = "sent"
    FAILED = "failed"
