"""Shared fixtures and helpers for the biopulse test suite."""

from __future__ import annotations

import json
from datetime import date, datetime, timedelta
from pathlib import Path

import pytest

from biopulse.analytics.intervals import RawSample, SleepStage, StageInterval
from biopulse.analytics.night import NightData
from biopulse.config import ConfigStore
from biopulse.store import MemoryHealthStore, Metric


NIGHT = date(2026, 10, 18)  # window 2026-10-17 14:00 -> 2026-10-18 14:00
BEDTIME = datetime(2026, 10, 17, 22, 0)

# HealthKit sleepAnalysis codes
IN_BED, ASLEEP, AWAKE, CORE, DEEP, REM = 0, 1, 2, 3, 4, 5


# ---------------------------------------------------------------------------
# Sample-building helpers
# ---------------------------------------------------------------------------


def at(hour: int, minute: int = 0, day: date = NIGHT) -> datetime:
    """Timestamp on the night ending on *day*; hours >= 14 fall on the eve."""
    base = day - timedelta(days=1) if hour >= 14 else day
    return datetime(base.year, base.month, base.day, hour, minute)


def make_sample(
    code: int,
    start: datetime,
    end: datetime,
    provider: str = "watch",
) -> RawSample:
    return RawSample(provider_id=provider, stage_value=code, start=start, end=end)


def make_samples(
    spec: list[tuple[int, int]],
    start: datetime = BEDTIME,
    provider: str = "watch",
) -> list[RawSample]:
    """Build back-to-back samples from ``(code, minutes)`` pairs."""
    samples = []
    t = start
    for code, minutes in spec:
        samples.append(make_sample(code, t, t + timedelta(minutes=minutes), provider))
        t += timedelta(minutes=minutes)
    return samples


def make_timeline(
    spec: list[tuple[SleepStage, int]],
    start: datetime = BEDTIME,
) -> list[StageInterval]:
    """Build back-to-back intervals from ``(stage, minutes)`` pairs."""
    intervals = []
    t = start
    for stage, minutes in spec:
        intervals.append(StageInterval(stage, t, t + timedelta(minutes=minutes)))
        t += timedelta(minutes=minutes)
    return intervals


def make_night(
    day: date = NIGHT,
    sleep_hours: float = 8.0,
    awake_min: float = 0.0,
    score: int = 80,
) -> NightData:
    end = datetime(day.year, day.month, day.day, 7, 0)
    start = end - timedelta(hours=sleep_hours, minutes=awake_min)
    return NightData(
        date=datetime(day.year, day.month, day.day, 14, 0),
        sleep_score=score,
        hrv=45.0,
        resting_heart_rate=55.0,
        sleep_duration=sleep_hours * 3600.0,
        sleep_start_time=start,
        sleep_end_time=end,
        total_awake_time=awake_min * 60.0,
    )


def hr_series(start: datetime, values: list[float], step_min: int = 5):
    """Heart-rate samples, one per *step_min* minutes."""
    return [(start + timedelta(minutes=step_min * i), v) for i, v in enumerate(values)]


# A well-staged 8h night: 20% deep, 25% REM, no awake time.
GOOD_NIGHT = [(CORE, 132), (DEEP, 96), (CORE, 132), (REM, 120)]


def make_store(
    nights: dict[date, list[RawSample]] | None = None,
    hrv: float | None = 45.0,
    resting: float | None = 52.0,
    **kwargs,
) -> MemoryHealthStore:
    """A store with sleep samples plus flat HRV/HR over each night's sleep."""
    sleep: list[RawSample] = []
    quantities: dict[Metric, list] = {Metric.HRV: [], Metric.HEART_RATE: []}
    for samples in (nights or {}).values():
        sleep.extend(samples)
        if not samples:
            continue
        first = min(s.start for s in samples)
        if hrv is not None:
            quantities[Metric.HRV].append((first + timedelta(hours=1), hrv))
        if resting is not None:
            quantities[Metric.HEART_RATE].extend(
                hr_series(first, [resting] * 12 + [resting + 20] * 12)
            )
    return MemoryHealthStore(sleep=sleep, quantities=quantities, **kwargs)


@pytest.fixture
def config() -> ConfigStore:
    return ConfigStore({"sleepGoal": 480, "goalWakeTime": "07:00"})


# ---------------------------------------------------------------------------
# Export file helpers
# ---------------------------------------------------------------------------


def write_jsonl(path: Path, entries: list[dict]) -> Path:
    """Write a list of dicts as JSONL to the given path."""
    with open(path, "w") as f:
        for entry in entries:
            f.write(json.dumps(entry) + "\n")
    return path


def sleep_entry(code: int, start: datetime, end: datetime, provider: str = "watch") -> dict:
    return {
        "type": "sleep",
        "provider": provider,
        "value": code,
        "start": start.isoformat(),
        "end": end.isoformat(),
    }


def quantity_entry(kind: str, moment: datetime, value: float) -> dict:
    return {"type": kind, "value": value, "time": moment.isoformat()}
