#!/usr/bin/env python3
"""
Date and timestamp utilities shared by the store, the entities and the pace engine.

All timestamps are handled as timezone-aware UTC datetimes. Values coming back
from a store may be ``date``/``datetime`` objects or ISO-8601 strings; naive
values are interpreted as UTC.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Union

DateLike = Union[str, date, datetime, None]


class DateRangeUtils:
    """Utility class for parsing and normalising dates and timestamps."""

    @staticmethod
    def utc_now() -> datetime:
        """Return the current time as an aware UTC datetime."""
        return datetime.now(timezone.utc)

    @staticmethod
    def as_utc(value: datetime) -> datetime:
        """
        Coerce a datetime to aware UTC.

        Examples:
            >>> DateRangeUtils.as_utc(datetime(2025, 1, 1, 12))
            datetime.datetime(2025, 1, 1, 12, 0, tzinfo=datetime.timezone.utc)
        """
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @staticmethod
    def parse_date(value: DateLike) -> Optional[date]:
        """
        Parse a date from a string, date or datetime.

        Examples:
            >>> DateRangeUtils.parse_date("2025-03-31")
            datetime.date(2025, 3, 31)
            >>> DateRangeUtils.parse_date("2025-03-31T08:00:00+00:00")
            datetime.date(2025, 3, 31)
        """
        if value is None or value == "":
            return None
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        text = str(value).strip()
        return date.fromisoformat(text[:10])

    @staticmethod
    def parse_datetime(value: DateLike) -> Optional[datetime]:
        """
        Parse an aware UTC datetime from a string, date or datetime.

        Dates are taken as midnight UTC; a trailing ``Z`` is accepted.
        """
        if value is None or value == "":
            return None
        if isinstance(value, datetime):
            return DateRangeUtils.as_utc(value)
        if isinstance(value, date):
            return datetime.combine(value, time.min, tzinfo=timezone.utc)
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        if len(text) == 10:
            return datetime.combine(date.fromisoformat(text), time.min, tzinfo=timezone.utc)
        return DateRangeUtils.as_utc(datetime.fromisoformat(text))

    @staticmethod
    def to_iso(value: DateLike) -> Optional[str]:
        """Serialize a date or datetime for storage; datetimes keep microseconds."""
        if value is None:
            return None
        if isinstance(value, datetime):
            return DateRangeUtils.as_utc(value).isoformat(timespec="microseconds")
        if isinstance(value, date):
            return value.isoformat()
        return str(value)

    @staticmethod
    def start_of_week(value: datetime) -> date:
        """Return the Monday of the week containing ``value``."""
        day = DateRangeUtils.as_utc(value).date()
        return day - timedelta(days=day.weekday())
