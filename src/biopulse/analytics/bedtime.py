"""Bedtime recommendation from the sleep goal and recent sleep debt.

The recommended bedtime works back from the goal wake time by the sleep
goal plus the time typically spent awake in bed, then moves earlier by 10
minutes per hour of accumulated 14-night debt, at most one hour.

A net surplus (negative debt) is not floored and moves bedtime later.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Iterable

import numpy as np

from biopulse.analytics.debt import ROLLING_WINDOW_DAYS, compute_debt
from biopulse.analytics.night import NightData
from biopulse.errors import GoalNotConfiguredError

SHIFT_PER_DEBT_HOUR_SEC = 600.0
MAX_SHIFT_SEC = 3600.0


@dataclass(frozen=True)
class BedtimeRecommendation:
    """Recommended bedtime and wake time for one night."""

    bedtime: datetime
    wake_time: datetime
    shift_sec: float  # how much earlier than the baseline bedtime

    def __repr__(self) -> str:
        return (
            f"BedtimeRecommendation(bed={self.bedtime:%H:%M}, "
            f"wake={self.wake_time:%H:%M}, shift={self.shift_sec / 60:+.0f}min)"
        )


def bedtime_shift(debt_sec: float) -> float:
    """Seconds to move bedtime earlier for *debt_sec* of sleep debt."""
    return min(MAX_SHIFT_SEC, debt_sec / 3600.0 * SHIFT_PER_DEBT_HOUR_SEC)


def trailing_nights(
    nights: Iterable[NightData],
    reference: date,
    window_days: int = ROLLING_WINDOW_DAYS,
) -> list[NightData]:
    """Nights dated within the *window_days* days ending on *reference*."""
    if isinstance(reference, datetime):
        reference = reference.date()
    earliest = reference - timedelta(days=window_days - 1)
    return [n for n in nights if earliest <= n.date.date() <= reference]


def average_awake_seconds(nights: Iterable[NightData]) -> float:
    """Mean time awake during sleep across *nights*; 0.0 with no nights."""
    awake = [n.total_awake_time for n in nights]
    if not awake:
        return 0.0
    return float(np.mean(awake))


def recommend_bedtime(
    reference: date,
    goal_wake_time: time | None,
    sleep_goal_min: int,
    average_awake_sec: float,
    debt_sec: float,
    tz: tzinfo | None = None,
) -> BedtimeRecommendation:
    """Compute the recommended bedtime for the night ending on *reference*.

    Args:
        reference: Date the user wakes up on.
        goal_wake_time: Goal wake time of day.
        sleep_goal_min: Sleep goal in minutes.
        average_awake_sec: Typical time awake in bed per night.
        debt_sec: Net 14-night sleep debt in seconds.
        tz: Timezone for the returned datetimes.

    Raises:
        GoalNotConfiguredError: if the goal or the wake time is not set.
    """
    if sleep_goal_min <= 0 or goal_wake_time is None:
        raise GoalNotConfiguredError("sleep goal and wake time are required")

    adjusted_goal_sec = sleep_goal_min * 60.0 + average_awake_sec
    wake = datetime.combine(reference, goal_wake_time, tzinfo=tz)
    shift = bedtime_shift(debt_sec)
    bedtime = wake - timedelta(seconds=adjusted_goal_sec + shift)
    return BedtimeRecommendation(bedtime=bedtime, wake_time=wake, shift_sec=shift)


def recommend_from_nights(
    reference: date,
    nights: Iterable[NightData],
    goal_wake_time: time | None,
    sleep_goal_min: int,
    tz: tzinfo | None = None,
) -> BedtimeRecommendation:
    """Recommend a bedtime using the nights in the trailing 14-day window."""
    if sleep_goal_min <= 0 or goal_wake_time is None:
        raise GoalNotConfiguredError("sleep goal and wake time are required")
    recent = trailing_nights(nights, reference)
    return recommend_bedtime(
        reference,
        goal_wake_time,
        sleep_goal_min,
        average_awake_seconds(recent),
        compute_debt(recent, sleep_goal_min).total,
        tz=tz,
    )
