"""Tests for pace classification and quarter timing."""

from datetime import date, datetime, timezone

import pytest

from promotrack.models.entities import Quarter
from promotrack.models.enums import PaceStatus
from promotrack.services.pace_engine import (
    DEFAULT_ELAPSED_PCT,
    days_left,
    elapsed_or_default,
    is_behind_pace,
    pace_status,
    quarter_elapsed_pct,
)

# 100-day quarter so elapsed days map directly to percent.
QUARTER = Quarter(name="Test", start_date=date(2026, 1, 1), end_date=date(2026, 4, 11))


def _at(month, day, hour=0):
    return datetime(2026, month, day, hour, tzinfo=timezone.utc)


class TestPaceStatus:

    @pytest.mark.parametrize("progress,elapsed,expected", [
        (59, 50, PaceStatus.ON_PACE),    # diff 9
        (60, 50, PaceStatus.AHEAD),      # diff 10
        (40, 50, PaceStatus.ON_PACE),    # diff -10
        (39, 50, PaceStatus.BEHIND),     # diff -11
        (100, 0, PaceStatus.MET),
        (100, 100, PaceStatus.MET),
        (130, 20, PaceStatus.MET),
        (0, 0, PaceStatus.ON_PACE),
    ])
    def test_boundaries(self, progress, elapsed, expected):
        assert pace_status(progress, elapsed) == expected

    def test_behind_pace_flag(self):
        assert is_behind_pace(39, 50) is True
        assert is_behind_pace(40, 50) is False
        assert is_behind_pace(100, 100) is False
        assert is_behind_pace(0, 11) is True


class TestQuarterElapsed:

    def test_clamps_before_start(self):
        assert quarter_elapsed_pct(QUARTER, datetime(2025, 12, 1, tzinfo=timezone.utc)) == 0

    def test_clamps_after_end(self):
        assert quarter_elapsed_pct(QUARTER, datetime(2026, 6, 1, tzinfo=timezone.utc)) == 100

    def test_midpoint(self):
        # Day 50 of 100 starts 2026-02-20.
        assert quarter_elapsed_pct(QUARTER, _at(2, 20)) == 50

    def test_naive_datetime_treated_as_utc(self):
        assert quarter_elapsed_pct(QUARTER, datetime(2026, 2, 20)) == 50

    def test_default_when_no_quarter(self):
        assert elapsed_or_default(None, _at(2, 20)) == DEFAULT_ELAPSED_PCT == 50


class TestDaysLeft:

    def test_rounds_up(self):
        assert days_left(QUARTER, _at(4, 10, 12)) == 1

    def test_never_negative(self):
        assert days_left(QUARTER, _at(5, 1)) == 0

    def test_no_quarter(self):
        assert days_left(None, _at(1, 1)) == 0


def test_end_to_end_pace_boundary():
    elapsed = quarter_elapsed_pct(QUARTER, _at(2, 20))
    assert pace_status(40, elapsed) == PaceStatus.ON_PACE
