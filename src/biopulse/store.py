"""Health-store collaborator: the queries the engine issues, and an
in-memory implementation backed by a JSON-lines export.

Export format, one JSON object per line::

    {"type": "sleep", "provider": "com.apple.health", "value": 4,
     "start": "2026-10-17T23:10:00", "end": "2026-10-17T23:55:00"}
    {"type": "hrv", "value": 48.2, "time": "2026-10-18T02:00:00"}
    {"type": "heart_rate", "value": 54, "time": "2026-10-18T02:00:00"}
    {"type": "steps", "value": 812, "time": "2026-10-18T09:00:00"}
"""

from __future__ import annotations

import json
import logging
from collections import defaultdict
from datetime import datetime, timedelta
from enum import Enum
from pathlib import Path
from typing import Iterable, Protocol

from biopulse.analytics.intervals import RawSample, stage_from_code
from biopulse.analytics.vitals import mean_value
from biopulse.errors import SourceError

logger = logging.getLogger(__name__)


class Metric(str, Enum):
    """Quantity types the engine reads."""

    HRV = "hrv"
    HEART_RATE = "heart_rate"
    STEPS = "steps"


METRIC_TYPES = {m.value for m in Metric}


class HealthStore(Protocol):
    """Queries answered by the platform health store.

    Every method raises :class:`SourceError` when the query itself fails.
    Missing data is an empty result or ``None``.
    """

    async def fetch_sleep_samples(
        self, start: datetime, end: datetime
    ) -> list[RawSample]:
        """Sleep samples starting in [start, end), from every provider."""
        ...

    async def fetch_average(
        self, metric: Metric, start: datetime, end: datetime
    ) -> float | None:
        """Average of *metric* over [start, end), or None without samples."""
        ...

    async def fetch_average_series(
        self, metric: Metric, start: datetime, end: datetime, bucket: timedelta
    ) -> list[float | None]:
        """Per-bucket averages of *metric*, buckets anchored at *start*."""
        ...

    async def fetch_cumulative(
        self, metric: Metric, start: datetime, end: datetime, bucket: timedelta
    ) -> dict[datetime, float]:
        """Per-bucket sums of *metric*; buckets without samples are omitted."""
        ...


class MemoryHealthStore:
    """A :class:`HealthStore` answering queries from in-memory samples."""

    def __init__(
        self,
        sleep: Iterable[RawSample] = (),
        quantities: dict[Metric, list[tuple[datetime, float]]] | None = None,
        denied: Iterable[Metric | str] = (),
    ) -> None:
        self.sleep = list(sleep)
        self.quantities: dict[Metric, list[tuple[datetime, float]]] = defaultdict(list)
        for metric, samples in (quantities or {}).items():
            self.quantities[Metric(metric)].extend(samples)
        self.denied = {str(getattr(d, "value", d)) for d in denied}

    def _check_access(self, name: str) -> None:
        if name in self.denied:
            raise SourceError(f"authorization denied for {name}")

    def _in_range(
        self, metric: Metric, start: datetime, end: datetime
    ) -> list[tuple[datetime, float]]:
        self._check_access(metric.value)
        return [(t, v) for t, v in self.quantities[metric] if start <= t < end]

    async def fetch_sleep_samples(
        self, start: datetime, end: datetime
    ) -> list[RawSample]:
        self._check_access("sleep")
        return [s for s in self.sleep if start <= s.start < end]

    async def fetch_average(
        self, metric: Metric, start: datetime, end: datetime
    ) -> float | None:
        return mean_value([v for _, v in self._in_range(metric, start, end)])

    async def fetch_average_series(
        self, metric: Metric, start: datetime, end: datetime, bucket: timedelta
    ) -> list[float | None]:
        samples = self._in_range(metric, start, end)
        buckets: list[list[float]] = []
        edge = start
        while edge < end:
            buckets.append([])
            edge += bucket
        for t, v in samples:
            buckets[int((t - start) / bucket)].append(v)
        return [mean_value(b) for b in buckets]

    async def fetch_cumulative(
        self, metric: Metric, start: datetime, end: datetime, bucket: timedelta
    ) -> dict[datetime, float]:
        sums: dict[datetime, float] = {}
        for t, v in self._in_range(metric, start, end):
            key = start + bucket * int((t - start) / bucket)
            sums[key] = sums.get(key, 0.0) + v
        return dict(sorted(sums.items()))


def load_export(path: str | Path) -> MemoryHealthStore:
    """Load a JSON-lines health export into a :class:`MemoryHealthStore`.

    Blank lines, invalid JSON, unknown record types and records with
    missing or malformed fields (including a null sleep stage) are skipped.
    """
    sleep: list[RawSample] = []
    quantities: dict[Metric, list[tuple[datetime, float]]] = defaultdict(list)
    skipped = 0

    with open(path) as f:
        for line_num, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                entry = json.loads(line)
            except json.JSONDecodeError:
                logger.debug("line %d: invalid JSON, skipping", line_num)
                skipped += 1
                continue
            if not isinstance(entry, dict):
                skipped += 1
                continue

            kind = entry.get("type")
            try:
                if kind == "sleep":
                    value = entry["value"]
                    stage_from_code(value)  # rejects null and container values
                    sleep.append(RawSample(
                        provider_id=str(entry.get("provider", "unknown")),
                        stage_value=value,
                        start=datetime.fromisoformat(entry["start"]),
                        end=datetime.fromisoformat(entry["end"]),
                    ))
                elif kind in METRIC_TYPES:
                    quantities[Metric(kind)].append(
                        (datetime.fromisoformat(entry["time"]), float(entry["value"]))
                    )
                else:
                    logger.debug("line %d: unknown record type %r", line_num, kind)
                    skipped += 1
            except (KeyError, TypeError, ValueError) as e:
                logger.debug("line %d: malformed %s record (%s)", line_num, kind, e)
                skipped += 1

    logger.info(
        "loaded %d sleep samples, %d quantity samples from %s (%d skipped)",
        len(sleep), sum(len(v) for v in quantities.values()), path, skipped,
    )
    return MemoryHealthStore(sleep=sleep, quantities=quantities)
