"""Reduce heart-rate and HRV observations to one value per night."""

from __future__ import annotations

from typing import Sequence

import numpy as np

# Physiologically plausible band for a sleeping heart rate (bpm)
HR_MIN_BPM = 30.0
HR_MAX_BPM = 120.0

# Fraction of the lowest readings averaged into the resting estimate
RESTING_FRACTION = 0.10

# Bucket width used when querying heart rate during sleep (seconds)
HR_BUCKET_SEC = 300


def resting_heart_rate(
    hr_values: Sequence[float | None],
    fraction: float = RESTING_FRACTION,
) -> float | None:
    """Estimate resting HR as the mean of the lowest decile of readings.

    Readings outside [30, 120] bpm are discarded first.  At least one
    reading is always averaged.

    Args:
        hr_values: Average HR per 5-minute bucket; ``None`` for empty buckets.
        fraction: Share of the lowest readings to average.

    Returns:
        Resting HR in bpm, or None if no plausible readings remain.
    """
    arr = np.asarray([v for v in hr_values if v is not None], dtype=np.float64)
    arr = arr[(arr >= HR_MIN_BPM) & (arr <= HR_MAX_BPM)]
    if arr.size == 0:
        return None

    arr.sort()
    count = max(1, int(arr.size * fraction))
    return float(np.mean(arr[:count]))


def mean_value(values: Sequence[float]) -> float | None:
    """Arithmetic mean of HRV (or any statistic) samples, or None for none."""
    if len(values) == 0:
        return None
    return float(np.mean(np.asarray(values, dtype=np.float64)))
