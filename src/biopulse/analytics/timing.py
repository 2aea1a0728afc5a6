"""Night windows and bedtime/wake timing.

A "night" runs from 14:00 the previous day to 14:00 on its date, so a
late sleeper's 03:00 bedtime still lands in the right night.  A night is
keyed by the date its window ends on.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from biopulse.analytics.night import NightData

NIGHT_BOUNDARY = time(14, 0)
IDEAL_WAKE_TIME = time(8, 0)


@dataclass(frozen=True)
class NightWindow:
    """The [start, end) span used to bucket one night's samples."""

    start: datetime
    end: datetime

    @property
    def day(self) -> date:
        return self.end.date()

    def __contains__(self, moment: datetime) -> bool:
        return self.start <= moment < self.end


def night_window(day: date, tz: tzinfo | None = None) -> NightWindow:
    """Return the 14:00-to-14:00 window ending on *day*."""
    end = datetime.combine(day, NIGHT_BOUNDARY, tzinfo=tz)
    return NightWindow(start=end - timedelta(days=1), end=end)


def night_of(moment: datetime) -> date:
    """The night (window-end date) a timestamp belongs to."""
    if moment.time() < NIGHT_BOUNDARY:
        return moment.date()
    return moment.date() + timedelta(days=1)


def minutes_since_midnight(moment: datetime) -> int:
    """Minutes after midnight, with pre-14:00 times pushed past 24:00.

    Keeps a night's bedtime (23:30 -> 1410) and wake time
    (07:00 -> 1860) on one continuous axis.
    """
    minutes = moment.hour * 60 + moment.minute
    if moment.hour < NIGHT_BOUNDARY.hour:
        minutes += 24 * 60
    return minutes


def goal_times(
    day: date,
    goal_wake_time: time,
    sleep_goal_min: int,
    tz: tzinfo | None = None,
) -> tuple[datetime, datetime]:
    """Goal ``(bedtime, wake_time)`` for the night ending on *day*."""
    wake = datetime.combine(day, goal_wake_time, tzinfo=tz)
    return wake - timedelta(minutes=sleep_goal_min), wake


@dataclass(frozen=True)
class SleepTimingPoint:
    """Actual vs. goal bedtime and wake time for one night."""

    date: date
    bedtime: datetime
    wake_time: datetime
    goal_bedtime: datetime
    goal_wake_time: datetime

    @property
    def bedtime_offset_min(self) -> int:
        """Minutes after the goal bedtime the user actually went to sleep."""
        return minutes_since_midnight(self.bedtime) - minutes_since_midnight(
            self.goal_bedtime
        )


def sleep_timing_points(
    nights: Iterable[NightData],
    goal_wake_time: time,
    sleep_goal_min: int,
    limit: int = 14,
) -> list[SleepTimingPoint]:
    """Bedtime/wake trend for the most recent *limit* nights, oldest first."""
    recent = sorted(nights, key=lambda n: n.date, reverse=True)[:limit]
    points = []
    for n in reversed(recent):
        day = n.date.date()
        goal_bed, goal_wake = goal_times(
            day, goal_wake_time, sleep_goal_min, tz=n.date.tzinfo
        )
        points.append(SleepTimingPoint(
            date=day,
            bedtime=n.sleep_start_time,
            wake_time=n.sleep_end_time,
            goal_bedtime=goal_bed,
            goal_wake_time=goal_wake,
        ))
    return points


def circadian_mismatch(
    nights: Iterable[NightData],
    reference: date,
    ideal_wake_time: time = IDEAL_WAKE_TIME,
) -> float:
    """Hours between the average wake time and the ideal wake time.

    Positive means the user wakes later than ideal.  Returns 0.0 when there
    are no nights.
    """
    wakes = [n.sleep_end_time for n in nights]
    if not wakes:
        return 0.0
    ideal = datetime.combine(reference, ideal_wake_time, tzinfo=wakes[0].tzinfo)
    mean_offset = sum((w - ideal).total_seconds() for w in wakes) / len(wakes)
    return mean_offset / 3600.0
