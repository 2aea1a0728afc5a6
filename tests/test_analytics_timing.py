"""Tests for biopulse.analytics.timing -- night windows and timing trends."""

from datetime import date, datetime, time, timedelta, timezone

import pytest

from biopulse.analytics.timing import (
    circadian_mismatch,
    goal_times,
    minutes_since_midnight,
    night_of,
    night_window,
    sleep_timing_points,
)

from tests.conftest import NIGHT, make_night


class TestNightWindow:
    def test_fourteen_to_fourteen(self):
        w = night_window(NIGHT)
        assert w.start == datetime(2026, 10, 17, 14, 0)
        assert w.end == datetime(2026, 10, 18, 14, 0)
        assert w.day == NIGHT

    def test_contains_is_half_open(self):
        w = night_window(NIGHT)
        assert datetime(2026, 10, 17, 14, 0) in w
        assert datetime(2026, 10, 18, 3, 0) in w
        assert datetime(2026, 10, 18, 14, 0) not in w

    def test_timezone(self):
        w = night_window(NIGHT, tz=timezone.utc)
        assert w.end.tzinfo is timezone.utc

    def test_crosses_month(self):
        w = night_window(date(2026, 11, 1))
        assert w.start == datetime(2026, 10, 31, 14, 0)


class TestNightOf:
    def test_after_midnight(self):
        assert night_of(datetime(2026, 10, 18, 2, 30)) == NIGHT

    def test_evening(self):
        assert night_of(datetime(2026, 10, 17, 23, 0)) == NIGHT

    def test_boundary_belongs_to_next_night(self):
        assert night_of(datetime(2026, 10, 18, 14, 0)) == date(2026, 10, 19)


class TestMinutesSinceMidnight:
    def test_evening(self):
        assert minutes_since_midnight(datetime(2026, 10, 17, 23, 30)) == 1410

    def test_morning_wraps(self):
        assert minutes_since_midnight(datetime(2026, 10, 18, 7, 0)) == 1860

    def test_afternoon_unchanged(self):
        assert minutes_since_midnight(datetime(2026, 10, 18, 14, 0)) == 840


class TestGoalTimes:
    def test_bedtime_from_wake(self):
        bed, wake = goal_times(NIGHT, time(6, 45), 450)
        assert wake == datetime(2026, 10, 18, 6, 45)
        assert bed == datetime(2026, 10, 17, 23, 15)


class TestSleepTimingPoints:
    def test_limited_and_ascending(self):
        nights = [make_night(NIGHT - timedelta(days=i)) for i in range(20)]
        points = sleep_timing_points(nights, time(7, 0), 480, limit=14)
        assert len(points) == 14
        assert points[0].date == NIGHT - timedelta(days=13)
        assert points[-1].date == NIGHT

    def test_point_fields(self):
        night = make_night(sleep_hours=7.5)
        (point,) = sleep_timing_points([night], time(7, 0), 480)
        assert point.bedtime == night.sleep_start_time
        assert point.wake_time == night.sleep_end_time
        assert point.goal_bedtime == datetime(2026, 10, 17, 23, 0)
        assert point.bedtime_offset_min == 30

    def test_empty(self):
        assert sleep_timing_points([], time(7, 0), 480) == []


class TestCircadianMismatch:
    def test_no_nights(self):
        assert circadian_mismatch([], NIGHT) == 0.0

    def test_wakes_earlier_than_ideal(self):
        # make_night wakes at 07:00 on its own date
        assert circadian_mismatch([make_night()], NIGHT) == pytest.approx(-1.0)

    def test_average_over_nights(self):
        nights = [make_night(), make_night(NIGHT - timedelta(days=1))]
        # 07:00 today (-1h) and 07:00 yesterday (-25h)
        assert circadian_mismatch(nights, NIGHT) == pytest.approx(-13.0)
