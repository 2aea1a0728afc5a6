"""Sleep-stage intervals and the merge of raw stage samples.

Health stores report sleep as categorical interval samples which can
overlap or duplicate each other (one sample per stage change, re-synced
copies, ...).  :func:`merge_samples` collapses a provider's samples into
a minimal, time-ordered, run-length-encoded stage timeline.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Iterable


class SleepStage(str, Enum):
    """Coarse sleep stage label."""

    IN_BED = "InBed"
    CORE = "Core"
    DEEP = "Deep"
    REM = "REM"
    AWAKE = "Awake"
    UNKNOWN = "Unknown"

    @property
    def is_asleep(self) -> bool:
        return self in (SleepStage.CORE, SleepStage.DEEP, SleepStage.REM)


# Platform category codes (HealthKit sleepAnalysis raw values).
# 1 is "asleep, unspecified", which carries no stage information.
STAGE_CODES: dict[int, SleepStage] = {
    0: SleepStage.IN_BED,
    2: SleepStage.AWAKE,
    3: SleepStage.CORE,
    4: SleepStage.DEEP,
    5: SleepStage.REM,
}

_STAGE_NAMES = {s.value.lower(): s for s in SleepStage}


def stage_from_code(code: int | str) -> SleepStage:
    """Map a platform stage code (or a stage name) to a :class:`SleepStage`.

    Unrecognized codes map to ``SleepStage.UNKNOWN``.
    """
    if isinstance(code, str):
        if code.strip().lstrip("-").isdigit():
            return STAGE_CODES.get(int(code), SleepStage.UNKNOWN)
        return _STAGE_NAMES.get(code.strip().lower(), SleepStage.UNKNOWN)
    return STAGE_CODES.get(int(code), SleepStage.UNKNOWN)


@dataclass(frozen=True)
class RawSample:
    """One categorical sleep sample as reported by a data provider."""

    provider_id: str
    stage_value: int | str
    start: datetime
    end: datetime

    @property
    def stage(self) -> SleepStage:
        return stage_from_code(self.stage_value)


@dataclass(frozen=True)
class StageInterval:
    """A contiguous stretch of a single sleep stage."""

    stage: SleepStage
    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.end <= self.start:
            raise ValueError(
                f"interval end {self.end} must be after start {self.start}"
            )

    @property
    def duration(self) -> float:
        """Length in seconds."""
        return (self.end - self.start).total_seconds()

    def __repr__(self) -> str:
        return (
            f"StageInterval({self.stage.value} "
            f"{self.start:%H:%M}-{self.end:%H:%M})"
        )


def merge_samples(
    samples: Iterable[RawSample | StageInterval],
) -> list[StageInterval]:
    """Merge raw stage samples into non-overlapping stage intervals.

    Samples are sorted by start time.  A sample of the same stage that
    starts at or before the end of the open interval extends it; anything
    else closes the open interval and starts a new one.  Samples with an
    unrecognized stage, and zero-length samples, are dropped.

    Already-merged intervals can be passed back in; the result is unchanged.
    """
    usable = [
        s for s in samples
        if s.stage is not SleepStage.UNKNOWN and s.end > s.start
    ]
    usable.sort(key=lambda s: (s.start, s.end))

    merged: list[StageInterval] = []
    stage: SleepStage | None = None
    start = end = None

    for s in usable:
        if stage is not None and s.stage is stage and s.start <= end:
            end = max(end, s.end)
            continue
        if stage is not None:
            merged.append(StageInterval(stage, start, end))
        stage, start, end = s.stage, s.start, s.end

    if stage is not None:
        merged.append(StageInterval(stage, start, end))

    return merged
