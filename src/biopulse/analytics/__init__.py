"""Analytics engine for nightly sleep metrics.

Modules:
    intervals -- Sleep stages, raw samples and interval merging
    sources   -- Per-night provider selection
    vitals    -- Resting HR (lowest decile) and HRV averaging
    scoring   -- Composite 0-100 sleep score
    night     -- Per-night aggregation into NightData
    debt      -- Signed sleep debt and the rolling 14-night series
    bedtime   -- Debt-adjusted bedtime recommendation
    timing    -- 14:00 night windows and bedtime/wake trends
"""

from biopulse.analytics.intervals import (
    SleepStage,
    RawSample,
    StageInterval,
    stage_from_code,
    merge_samples,
)
from biopulse.analytics.sources import group_by_provider, select_source
from biopulse.analytics.vitals import resting_heart_rate, mean_value
from biopulse.analytics.scoring import score_sleep, score_breakdown, ScoreBreakdown
from biopulse.analytics.night import NightData, summarize_night
from biopulse.analytics.debt import DebtSeries, RollingDebt, compute_debt, rolling_debt
from biopulse.analytics.bedtime import (
    BedtimeRecommendation,
    recommend_bedtime,
    recommend_from_nights,
)
from biopulse.analytics.timing import (
    NightWindow,
    night_window,
    sleep_timing_points,
    circadian_mismatch,
)

__all__ = [
    # intervals
    "SleepStage",
    "RawSample",
    "StageInterval",
    "stage_from_code",
    "merge_samples",
    # sources
    "group_by_provider",
    "select_source",
    # vitals
    "resting_heart_rate",
    "mean_value",
    # scoring
    "score_sleep",
    "score_breakdown",
    "ScoreBreakdown",
    # night
    "NightData",
    "summarize_night",
    # debt
    "DebtSeries",
    "RollingDebt",
    "compute_debt",
    "rolling_debt",
    # bedtime
    "BedtimeRecommendation",
    "recommend_bedtime",
    "recommend_from_nights",
    # timing
    "NightWindow",
    "night_window",
    "sleep_timing_points",
    "circadian_mismatch",
]
