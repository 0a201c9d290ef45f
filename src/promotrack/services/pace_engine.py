"""
Pace classification: progress percentage versus elapsed quarter time.

Quarter boundaries are midnight UTC of the quarter's start and end dates.
"""

import math
from datetime import datetime, time, timezone
from typing import Optional

from ..models.entities import Quarter
from ..models.enums import PaceStatus
from ..utils.date_range_utils import DateRangeUtils
from .progress_aggregator import percent_of

# Baseline used by callers when no quarter is active.
DEFAULT_ELAPSED_PCT = 50

AHEAD_THRESHOLD = 10
BEHIND_THRESHOLD = -10

_SECONDS_PER_DAY = 86400


def _boundaries(quarter: Quarter):
    start = datetime.combine(quarter.start_date, time.min, tzinfo=timezone.utc)
    end = datetime.combine(quarter.end_date, time.min, tzinfo=timezone.utc)
    return start, end


def quarter_elapsed_pct(quarter: Quarter, now: datetime) -> int:
    """
    Percent of the quarter elapsed at ``now``, rounded half-up and clamped to [0, 100].
    """
    start, end = _boundaries(quarter)
    now = DateRangeUtils.as_utc(now)
    if now <= start:
        return 0
    if now >= end:
        return 100
    elapsed_us = _microseconds(now - start)
    total_us = _microseconds(end - start)
    return min(100, max(0, percent_of(elapsed_us, total_us)))


def elapsed_or_default(quarter: Optional[Quarter], now: datetime) -> int:
    """Elapsed percent for ``quarter``, or DEFAULT_ELAPSED_PCT when there is none."""
    if quarter is None:
        return DEFAULT_ELAPSED_PCT
    return quarter_elapsed_pct(quarter, now)


def days_left(quarter: Optional[Quarter], now: datetime) -> int:
    """Whole days remaining until the quarter end, rounded up, never negative."""
    if quarter is None:
        return 0
    _, end = _boundaries(quarter)
    remaining = (end - DateRangeUtils.as_utc(now)).total_seconds() / _SECONDS_PER_DAY
    return max(0, math.ceil(remaining))


def pace_status(progress_pct: int, elapsed_pct: int) -> PaceStatus:
    """
    Classify progress against elapsed time.

    MET when progress >= 100; otherwise by diff = progress - elapsed:
    AHEAD when diff >= 10, ON_PACE when diff >= -10, else BEHIND.
    """
    if progress_pct >= 100:
        return PaceStatus.MET
    diff = progress_pct - elapsed_pct
    if diff >= AHEAD_THRESHOLD:
        return PaceStatus.AHEAD
    if diff >= BEHIND_THRESHOLD:
        return PaceStatus.ON_PACE
    return PaceStatus.BEHIND


def is_behind_pace(progress_pct: int, elapsed_pct: int) -> bool:
    """Summary/notification flag: not yet met and more than 10 points behind."""
    return progress_pct < 100 and (progress_pct - elapsed_pct) < BEHIND_THRESHOLD


def _microseconds(delta) -> int:
    return (delta.days * _SECONDS_PER_DAY + delta.seconds) * 1_000_000 + delta.microseconds
