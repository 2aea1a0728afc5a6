"""Sleep debt: the signed gap between the sleep goal and actual sleep.

Positive values mean under-slept, negative values mean a surplus.  Per-day
deltas are never floored; only the rolling series used for charting is
clamped at zero.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterable

from biopulse.analytics.night import NightData
from biopulse.errors import GoalNotConfiguredError

ROLLING_WINDOW_DAYS = 14


@dataclass
class DebtSeries:
    """Per-day sleep debt deltas (seconds) and their net total."""

    daily: dict[date, float] = field(default_factory=dict)
    total: float = 0.0

    def __repr__(self) -> str:
        return f"DebtSeries(days={len(self.daily)}, total={self.total / 3600:+.1f}h)"


@dataclass
class RollingDebt:
    """Trailing-window debt per day, clamped at zero, for charting."""

    rolling: dict[date, float] = field(default_factory=dict)
    current: float = 0.0  # rolling value on the latest day


def _goal_seconds(sleep_goal_min: int) -> float:
    if sleep_goal_min <= 0:
        raise GoalNotConfiguredError("sleep goal is required to compute sleep debt")
    return sleep_goal_min * 60.0


def compute_debt(nights: Iterable[NightData], sleep_goal_min: int) -> DebtSeries:
    """Accumulate ``goal - sleep_duration`` per calendar day.

    Nights are keyed by the day their window ends on.  Two nights landing
    on the same day are summed.

    Raises:
        GoalNotConfiguredError: if the sleep goal is not set.
    """
    goal_sec = _goal_seconds(sleep_goal_min)
    series = DebtSeries()
    for n in sorted(nights, key=lambda n: n.date):
        day = n.date.date()
        series.daily[day] = series.daily.get(day, 0.0) + (goal_sec - n.sleep_duration)
    series.total = sum(series.daily.values())
    return series


def rolling_debt(
    nights: Iterable[NightData],
    sleep_goal_min: int,
    window_days: int = ROLLING_WINDOW_DAYS,
) -> RollingDebt:
    """Trailing *window_days* debt for each day that has a night.

    Each value is the sum of the daily deltas from ``day - (window_days - 1)``
    through ``day``, clamped at zero.
    """
    daily = compute_debt(nights, sleep_goal_min).daily
    days = sorted(daily)
    result = RollingDebt()
    for day in days:
        earliest = day - timedelta(days=window_days - 1)
        window_sum = sum(daily[d] for d in days if earliest <= d <= day)
        result.rolling[day] = max(0.0, window_sum)
    if days:
        result.current = result.rolling[days[-1]]
    return result
