"""Per-night aggregation of a merged stage timeline."""

from __future__ import annotations

from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Any, Sequence

from biopulse.analytics.intervals import SleepStage, StageInterval
from biopulse.analytics.scoring import asleep_seconds, score_sleep, stage_durations


@dataclass(frozen=True, eq=False)
class NightData:
    """A single night's sleep summary.

    Equality and hashing use ``date`` only, so the same night fetched twice
    compares equal.
    """

    date: datetime  # end of the night window
    sleep_score: int
    hrv: float  # 0 if unavailable
    resting_heart_rate: float  # 0 if unavailable
    sleep_duration: float  # seconds asleep
    sleep_start_time: datetime
    sleep_end_time: datetime
    total_awake_time: float  # seconds
    stage_seconds: dict[str, float] = field(default_factory=dict)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NightData):
            return NotImplemented
        return self.date == other.date

    def __hash__(self) -> int:
        return hash(self.date)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dict."""
        d = asdict(self)
        for key in ("date", "sleep_start_time", "sleep_end_time"):
            d[key] = d[key].isoformat()
        return d

    def __repr__(self) -> str:
        return (
            f"NightData({self.date:%Y-%m-%d}: "
            f"score={self.sleep_score}, "
            f"sleep={self.sleep_duration / 3600:.1f}h, "
            f"hrv={self.hrv:.0f}ms, rhr={self.resting_heart_rate:.0f}bpm)"
        )


def sleep_bounds(intervals: Sequence[StageInterval]) -> tuple[datetime, datetime]:
    """Earliest start and latest end of a non-empty timeline."""
    return min(iv.start for iv in intervals), max(iv.end for iv in intervals)


def summarize_night(
    day: datetime,
    intervals: Sequence[StageInterval],
    hrv_ms: float | None,
    resting_hr: float | None,
    sleep_goal_min: int,
) -> NightData | None:
    """Build the NightData for one window from its merged timeline.

    Args:
        day: End of the night window; becomes ``NightData.date``.
        intervals: Merged stage timeline.
        hrv_ms: Average HRV over the sleep span, or None.
        resting_hr: Resting HR estimate over the sleep span, or None.
        sleep_goal_min: Sleep goal in minutes.

    Returns:
        The night summary, or None if the timeline is empty.
    """
    if not intervals:
        return None

    durations = stage_durations(intervals)
    start, end = sleep_bounds(intervals)

    return NightData(
        date=day,
        sleep_score=score_sleep(intervals, hrv_ms, resting_hr, sleep_goal_min),
        hrv=hrv_ms if hrv_ms is not None else 0.0,
        resting_heart_rate=resting_hr if resting_hr is not None else 0.0,
        sleep_duration=asleep_seconds(durations),
        sleep_start_time=start,
        sleep_end_time=end,
        total_awake_time=durations.get(SleepStage.AWAKE, 0.0),
        stage_seconds={stage.value: secs for stage, secs in durations.items()},
    )
