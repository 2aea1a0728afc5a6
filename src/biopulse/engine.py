"""Sleep engine: wire health-store queries into the analytics modules.

Each night runs as its own pipeline:

  1. fetch the window's sleep samples
  2. pick one provider and merge its samples into a stage timeline
  3. fetch HRV and heart rate over the sleep span, concurrently
  4. score and summarize the night

Multi-night queries run every night's pipeline concurrently and collect
the results once all of them have finished.  A night without data, or
whose sample query failed, is left out of the result.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Iterable

from biopulse.analytics.bedtime import BedtimeRecommendation, recommend_from_nights
from biopulse.analytics.debt import DebtSeries, RollingDebt, compute_debt, rolling_debt
from biopulse.analytics.intervals import StageInterval, merge_samples
from biopulse.analytics.night import NightData, sleep_bounds, summarize_night
from biopulse.analytics.sources import group_by_provider, select_source
from biopulse.analytics.timing import (
    NightWindow,
    SleepTimingPoint,
    night_window,
    sleep_timing_points,
)
from biopulse.analytics.vitals import HR_BUCKET_SEC, resting_heart_rate
from biopulse.config import ConfigStore, require_goal
from biopulse.errors import GoalNotConfiguredError, SourceError
from biopulse.store import HealthStore, Metric

logger = logging.getLogger(__name__)


class SleepEngine:
    """Async entry points used by the presentation layer.

    Args:
        store: Health-store collaborator.
        config: Preference store holding the sleep goal and wake time.
        tz: Timezone for night windows; None means naive local time.
    """

    def __init__(
        self,
        store: HealthStore,
        config: ConfigStore,
        tz: tzinfo | None = None,
    ) -> None:
        self.store = store
        self.config = config
        self.tz = tz

    def _today(self) -> date:
        return datetime.now(self.tz).date()

    def _goal(self, sleep_goal_min: int | None) -> int:
        if sleep_goal_min is None:
            return require_goal(self.config.read_config())
        if sleep_goal_min <= 0:
            raise GoalNotConfiguredError("sleep goal is not set")
        return sleep_goal_min

    # ------------------------------------------------------------------
    # Per-night pipeline
    # ------------------------------------------------------------------

    async def fetch_timeline(self, window: NightWindow) -> list[StageInterval]:
        """Merged stage timeline for one window (empty if no data)."""
        samples = await self.store.fetch_sleep_samples(window.start, window.end)
        best = select_source(group_by_provider(samples))
        return merge_samples(best)

    async def _fetch_vitals(
        self, start: datetime, end: datetime
    ) -> tuple[float | None, float | None]:
        hrv, hr_series = await asyncio.gather(
            self.store.fetch_average(Metric.HRV, start, end),
            self.store.fetch_average_series(
                Metric.HEART_RATE, start, end, timedelta(seconds=HR_BUCKET_SEC)
            ),
            return_exceptions=True,
        )
        # A failed vitals query scores like a missing one.
        if isinstance(hrv, SourceError):
            logger.warning("HRV query failed for %s-%s: %s", start, end, hrv)
            hrv = None
        elif isinstance(hrv, BaseException):
            raise hrv
        if isinstance(hr_series, SourceError):
            logger.warning("heart rate query failed for %s-%s: %s", start, end, hr_series)
            hr_series = []
        elif isinstance(hr_series, BaseException):
            raise hr_series
        return hrv, resting_heart_rate(hr_series)

    async def _night(self, window: NightWindow, sleep_goal_min: int) -> NightData | None:
        intervals = await self.fetch_timeline(window)
        if not intervals:
            logger.debug("no sleep data for night ending %s", window.day)
            return None
        start, end = sleep_bounds(intervals)
        hrv, rhr = await self._fetch_vitals(start, end)
        return summarize_night(window.end, intervals, hrv, rhr, sleep_goal_min)

    async def get_night(
        self, day: date, sleep_goal_min: int | None = None
    ) -> NightData | None:
        """Summarize the night ending at 14:00 on *day*.

        Returns None when the window has no sleep data.

        Raises:
            SourceError: if the sleep sample query fails.
            GoalNotConfiguredError: if no goal is given or configured.
        """
        goal = self._goal(sleep_goal_min)
        return await self._night(night_window(day, self.tz), goal)

    async def get_nights(
        self,
        days: int,
        sleep_goal_min: int | None = None,
        today: date | None = None,
    ) -> list[NightData]:
        """Nights ending on each of the last *days* days, newest first.

        Nights without data and nights whose query failed are omitted.
        """
        if days <= 0:
            return []
        goal = self._goal(sleep_goal_min)
        today = today or self._today()
        windows = [night_window(today - timedelta(days=i), self.tz) for i in range(days)]

        results = await asyncio.gather(
            *(self._night(w, goal) for w in windows),
            return_exceptions=True,
        )

        nights: list[NightData] = []
        for window, result in zip(windows, results):
            if isinstance(result, SourceError):
                logger.warning("skipping night ending %s: %s", window.day, result)
            elif isinstance(result, BaseException):
                raise result
            elif result is not None:
                nights.append(result)

        nights.sort(key=lambda n: n.date, reverse=True)
        return nights

    # ------------------------------------------------------------------
    # Goal-relative derivations
    # ------------------------------------------------------------------

    def get_debt_series(
        self, nights: Iterable[NightData], sleep_goal_min: int | None = None
    ) -> DebtSeries:
        return compute_debt(nights, self._goal(sleep_goal_min))

    def get_rolling_debt(
        self, nights: Iterable[NightData], sleep_goal_min: int | None = None
    ) -> RollingDebt:
        return rolling_debt(nights, self._goal(sleep_goal_min))

    def get_bedtime_recommendation(
        self,
        reference: date,
        nights: Iterable[NightData],
        goal_wake_time: time | None = None,
        sleep_goal_min: int | None = None,
    ) -> BedtimeRecommendation:
        """Recommended bedtime for the night ending on *reference*.

        Missing arguments fall back to the configured preferences.
        """
        config = self.config.read_config()
        if goal_wake_time is None:
            goal_wake_time = config.goal_wake_time
        return recommend_from_nights(
            reference,
            nights,
            goal_wake_time,
            self._goal(sleep_goal_min),
            tz=self.tz,
        )

    def get_timing_trend(
        self, nights: Iterable[NightData], limit: int = 14
    ) -> list[SleepTimingPoint]:
        config = self.config.read_config()
        goal = require_goal(config, need_wake_time=True)
        return sleep_timing_points(nights, config.goal_wake_time, goal, limit)

    # ------------------------------------------------------------------
    # Auxiliary statistics
    # ------------------------------------------------------------------

    async def weekly_steps(self, start: date) -> dict[date, float]:
        """Step totals for the 7 days starting on *start*, zero-filled."""
        first = datetime.combine(start, time(0), tzinfo=self.tz)
        sums = await self.store.fetch_cumulative(
            Metric.STEPS, first, first + timedelta(days=7), timedelta(days=1)
        )
        by_day = {t.date(): v for t, v in sums.items()}
        return {
            start + timedelta(days=i): by_day.get(start + timedelta(days=i), 0.0)
            for i in range(7)
        }

    async def average_hrv(
        self, last_n_days: int = 7, now: datetime | None = None
    ) -> float | None:
        """Average HRV over the last *last_n_days* days, or None."""
        now = now or datetime.now(self.tz)
        return await self.store.fetch_average(
            Metric.HRV, now - timedelta(days=last_n_days), now
        )
