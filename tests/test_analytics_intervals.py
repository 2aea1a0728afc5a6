"""Tests for biopulse.analytics.intervals -- stage codes and merging."""

from datetime import timedelta

import pytest

from biopulse.analytics.intervals import (
    RawSample,
    SleepStage,
    StageInterval,
    merge_samples,
    stage_from_code,
)

from tests.conftest import (
    AWAKE,
    ASLEEP,
    CORE,
    DEEP,
    IN_BED,
    REM,
    at,
    make_sample,
    make_samples,
)


class TestStageFromCode:
    def test_platform_codes(self):
        assert stage_from_code(IN_BED) is SleepStage.IN_BED
        assert stage_from_code(AWAKE) is SleepStage.AWAKE
        assert stage_from_code(CORE) is SleepStage.CORE
        assert stage_from_code(DEEP) is SleepStage.DEEP
        assert stage_from_code(REM) is SleepStage.REM

    def test_unspecified_asleep_is_unknown(self):
        assert stage_from_code(ASLEEP) is SleepStage.UNKNOWN

    def test_unrecognized_code(self):
        assert stage_from_code(99) is SleepStage.UNKNOWN
        assert stage_from_code("Other") is SleepStage.UNKNOWN

    def test_stage_names(self):
        assert stage_from_code("REM") is SleepStage.REM
        assert stage_from_code("inbed") is SleepStage.IN_BED
        assert stage_from_code("4") is SleepStage.DEEP

    def test_is_asleep(self):
        assert SleepStage.CORE.is_asleep
        assert not SleepStage.AWAKE.is_asleep
        assert not SleepStage.IN_BED.is_asleep


class TestStageInterval:
    def test_duration(self):
        iv = StageInterval(SleepStage.CORE, at(22), at(23, 30))
        assert iv.duration == 5400.0

    def test_end_must_follow_start(self):
        with pytest.raises(ValueError):
            StageInterval(SleepStage.CORE, at(23), at(22))
        with pytest.raises(ValueError):
            StageInterval(SleepStage.CORE, at(23), at(23))


class TestMergeSamples:
    def test_empty_input(self):
        assert merge_samples([]) == []

    def test_contiguous_same_stage(self):
        samples = [
            make_sample(CORE, at(22), at(23)),
            make_sample(CORE, at(23), at(0, 30)),
        ]
        assert merge_samples(samples) == [
            StageInterval(SleepStage.CORE, at(22), at(0, 30)),
        ]

    def test_overlapping_same_stage_extends(self):
        samples = [
            make_sample(DEEP, at(1), at(2)),
            make_sample(DEEP, at(1, 30), at(2, 15)),
        ]
        merged = merge_samples(samples)
        assert merged == [StageInterval(SleepStage.DEEP, at(1), at(2, 15))]

    def test_contained_sample_keeps_end(self):
        samples = [
            make_sample(CORE, at(1), at(3)),
            make_sample(CORE, at(1, 30), at(2)),
        ]
        assert merge_samples(samples)[0].end == at(3)

    def test_duplicates_collapse(self):
        s = make_sample(REM, at(4), at(4, 30))
        assert merge_samples([s, s, s]) == [StageInterval(SleepStage.REM, at(4), at(4, 30))]

    def test_stage_change_starts_new_interval(self):
        samples = make_samples([(CORE, 60), (DEEP, 30), (CORE, 60)])
        merged = merge_samples(samples)
        assert [iv.stage for iv in merged] == [
            SleepStage.CORE, SleepStage.DEEP, SleepStage.CORE,
        ]

    def test_gap_starts_new_interval(self):
        samples = [
            make_sample(CORE, at(22), at(23)),
            make_sample(CORE, at(23, 5), at(23, 30)),
        ]
        assert len(merge_samples(samples)) == 2

    def test_unsorted_input(self):
        samples = [
            make_sample(CORE, at(23), at(0)),
            make_sample(CORE, at(22), at(23)),
        ]
        assert merge_samples(samples) == [StageInterval(SleepStage.CORE, at(22), at(0))]

    def test_unknown_stages_dropped(self):
        samples = [
            make_sample(CORE, at(22), at(23)),
            make_sample(ASLEEP, at(23), at(0)),
            make_sample(99, at(0), at(1)),
        ]
        assert merge_samples(samples) == [StageInterval(SleepStage.CORE, at(22), at(23))]

    def test_zero_length_sample_dropped(self):
        samples = [make_sample(AWAKE, at(3), at(3))]
        assert merge_samples(samples) == []

    def test_merging_merged_timeline_is_identity(self):
        samples = make_samples([(CORE, 45), (CORE, 15), (DEEP, 40), (REM, 20), (AWAKE, 5)])
        samples.append(make_sample(DEEP, at(23, 10), at(23, 30)))
        once = merge_samples(samples)
        assert merge_samples(once) == once

    def test_overlap_counted_once(self):
        # Union of [22:00, 23:30) and [23:00, 00:00) is 2h.
        samples = [
            make_sample(CORE, at(22), at(23, 30), provider="a"),
            make_sample(CORE, at(23), at(0), provider="a"),
        ]
        merged = merge_samples(samples)
        assert sum(iv.duration for iv in merged) == 2 * 3600.0

    def test_result_is_time_ordered(self):
        samples = make_samples([(CORE, 30), (DEEP, 30), (REM, 30)])
        merged = merge_samples(reversed(samples))
        starts = [iv.start for iv in merged]
        assert starts == sorted(starts)

    def test_accepts_raw_sample_string_codes(self):
        s = RawSample("phone", "Deep", at(1), at(1) + timedelta(minutes=10))
        assert merge_samples([s])[0].stage is SleepStage.DEEP
