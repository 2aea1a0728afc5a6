"""Pick one provider's samples when several devices recorded the same night.

Phones, watches and third-party apps all write sleep samples.  Mixing
them double counts, so a single provider is chosen per night: the one
that recorded real stage data (Deep or REM), then the one with the most
samples.
"""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from biopulse.analytics.intervals import RawSample, SleepStage

logger = logging.getLogger(__name__)

STAGED = (SleepStage.DEEP, SleepStage.REM)


def group_by_provider(samples: Iterable[RawSample]) -> dict[str, list[RawSample]]:
    """Group samples by provider id, in order of first appearance."""
    groups: dict[str, list[RawSample]] = {}
    for s in samples:
        groups.setdefault(s.provider_id, []).append(s)
    return groups


def _has_stages(samples: Sequence[RawSample]) -> bool:
    return any(s.stage in STAGED for s in samples)


def select_source(groups: dict[str, list[RawSample]]) -> list[RawSample]:
    """Return the best provider's samples, or ``[]`` if there are none.

    Ranking: groups containing a Deep or REM sample beat groups without;
    then the larger group wins.  Ties go to the group seen first.
    """
    if not groups:
        return []

    provider, best = max(
        groups.items(),
        key=lambda item: (_has_stages(item[1]), len(item[1])),
    )
    logger.debug(
        "selected provider %s (%d samples) out of %d", provider, len(best), len(groups)
    )
    return best
