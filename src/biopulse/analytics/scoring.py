"""Composite 0-100 sleep score.

Starts at 100 and deducts for:
  - too little deep sleep (< 13% of sleep)      -15
  - too little REM sleep (< 20% of sleep)       -15
  - too much time awake (> 10% of time in bed)  -10
  - duration short of the goal                   up to -25, proportional
  - HRV below 30 ms, or unknown                  -5
  - resting HR above 100 bpm, or unknown         -5

Unknown vitals are penalized exactly like bad ones: a night whose quality
cannot be verified does not get the benefit of the doubt.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from biopulse.analytics.intervals import SleepStage, StageInterval
from biopulse.errors import GoalNotConfiguredError

DEEP_MIN_FRACTION = 0.13
REM_MIN_FRACTION = 0.20
AWAKE_MAX_FRACTION = 0.10

DEEP_PENALTY = 15
REM_PENALTY = 15
AWAKE_PENALTY = 10
DURATION_POINTS = 25

HRV_LOW_MS = 30.0
RHR_HIGH_BPM = 100.0
VITALS_PENALTY = 5


@dataclass
class ScoreBreakdown:
    """Sleep score and the deductions that produced it."""

    score: int
    deep_penalty: int = 0
    rem_penalty: int = 0
    awake_penalty: int = 0
    duration_points: int = DURATION_POINTS
    hrv_penalty: int = 0
    rhr_penalty: int = 0

    def __repr__(self) -> str:
        return (
            f"ScoreBreakdown(score={self.score}, "
            f"duration={self.duration_points}/{DURATION_POINTS}, "
            f"deep=-{self.deep_penalty}, rem=-{self.rem_penalty}, "
            f"awake=-{self.awake_penalty}, hrv=-{self.hrv_penalty}, "
            f"rhr=-{self.rhr_penalty})"
        )


def stage_durations(intervals: Iterable[StageInterval]) -> dict[SleepStage, float]:
    """Total seconds spent in each stage."""
    totals: dict[SleepStage, float] = {}
    for iv in intervals:
        totals[iv.stage] = totals.get(iv.stage, 0.0) + iv.duration
    return totals


def asleep_seconds(durations: dict[SleepStage, float]) -> float:
    """Seconds in any stage other than Awake and InBed."""
    return sum(
        secs for stage, secs in durations.items()
        if stage not in (SleepStage.AWAKE, SleepStage.IN_BED)
    )


def score_breakdown(
    intervals: Iterable[StageInterval],
    hrv_ms: float | None,
    resting_hr: float | None,
    sleep_goal_min: int,
) -> ScoreBreakdown:
    """Score one night and report each component.

    Args:
        intervals: Merged stage timeline for the night.
        hrv_ms: Average HRV during sleep, or None if unavailable.
        resting_hr: Resting HR estimate, or None if unavailable.
        sleep_goal_min: Sleep goal in minutes; must be positive.

    Raises:
        GoalNotConfiguredError: if the sleep goal is not set.
    """
    goal_sec = sleep_goal_min * 60.0
    if goal_sec <= 0:
        raise GoalNotConfiguredError("sleep goal is required to score a night")

    durations = stage_durations(intervals)
    total_sleep = asleep_seconds(durations)
    result = ScoreBreakdown(score=100)

    if total_sleep > 0:
        deep = durations.get(SleepStage.DEEP, 0.0)
        rem = durations.get(SleepStage.REM, 0.0)
        awake = durations.get(SleepStage.AWAKE, 0.0)
        in_bed = durations.get(SleepStage.IN_BED, 0.0)

        if deep / total_sleep < DEEP_MIN_FRACTION:
            result.deep_penalty = DEEP_PENALTY
        if rem / total_sleep < REM_MIN_FRACTION:
            result.rem_penalty = REM_PENALTY
        total_in_bed = total_sleep + awake + in_bed
        if total_in_bed > 0 and awake / total_in_bed > AWAKE_MAX_FRACTION:
            result.awake_penalty = AWAKE_PENALTY

    # Truncated, not rounded: 7h against an 8h goal earns 21 points.
    result.duration_points = int(DURATION_POINTS * min(1.0, total_sleep / goal_sec))

    if hrv_ms is None or hrv_ms < HRV_LOW_MS:
        result.hrv_penalty = VITALS_PENALTY
    if resting_hr is None or resting_hr > RHR_HIGH_BPM:
        result.rhr_penalty = VITALS_PENALTY

    raw = (
        100
        - result.deep_penalty
        - result.rem_penalty
        - result.awake_penalty
        - DURATION_POINTS
        + result.duration_points
        - result.hrv_penalty
        - result.rhr_penalty
    )
    result.score = max(0, min(100, raw))
    return result


def score_sleep(
    intervals: Iterable[StageInterval],
    hrv_ms: float | None,
    resting_hr: float | None,
    sleep_goal_min: int,
) -> int:
    """Compute the 0-100 sleep score for one night."""
    return score_breakdown(intervals, hrv_ms, resting_hr, sleep_goal_min).score
