from datetime import datetime, timedelta

import pytest

from sleep_tracker.core.analysis.stage_aggregator import aggregate_night, apply_in_bed_correction
from sleep_tracker.core.models.data_models import RawSegment, SleepStage


def segment(stage, start, minutes):
    return RawSegment(
        stage=stage,
        start_time=start,
        end_time=start + timedelta(minutes=minutes),
        duration_seconds=minutes * 60,
    )


def test_staged_night_totals():
    start = datetime(2026, 1, 7, 22, 30)
    segments = [
        segment(SleepStage.CORE, start, 60),
        segment(SleepStage.AWAKE, start + timedelta(minutes=60), 10),
        segment(SleepStage.DEEP, start + timedelta(minutes=70), 120),
        segment(SleepStage.REM, start + timedelta(minutes=190), 30),
    ]

    night = aggregate_night("2026-01-07", segments)

    assert night.sleep_date == "2026-01-07"
    assert night.stages.total_sleep_minutes == pytest.approx(210)
    assert night.stages.awake_minutes == pytest.approx(10)
    assert night.interruptions.count == 1
    assert night.interruptions.total_minutes == pytest.approx(10)
    assert night.sleep_start == start
    assert night.sleep_end == datetime(2026, 1, 8, 2, 10)


def test_generic_asleep_folds_into_core():
    start = datetime(2026, 1, 7, 23, 0)
    segments = [
        segment(SleepStage.ASLEEP, start, 200),
        segment(SleepStage.AWAKE, start + timedelta(minutes=200), 15),
        segment(SleepStage.ASLEEP, start + timedelta(minutes=215), 180),
    ]

    night = aggregate_night("2026-01-07", segments)

    assert night.stages.total_sleep_minutes == night.stages.core_minutes == pytest.approx(380)
    assert night.stages.rem_minutes == 0
    assert night.stages.deep_minutes == 0


def test_sparse_in_bed_is_corrected():
    start = datetime(2026, 1, 7, 23, 0)
    segments = [
        segment(SleepStage.IN_BED, start, 30),
        segment(SleepStage.CORE, start, 300),
        segment(SleepStage.AWAKE, start + timedelta(minutes=300), 20),
    ]

    night = aggregate_night("2026-01-07", segments)

    assert night.stages.in_bed_minutes == pytest.approx(320)
    assert night.stages.in_bed_minutes >= night.stages.total_sleep_minutes


def test_complete_in_bed_is_kept():
    totals = {'in_bed_minutes': 500.0, 'total_sleep_minutes': 450.0, 'awake_minutes': 20.0}
    assert apply_in_bed_correction(totals)['in_bed_minutes'] == 500.0


def test_empty_night_is_dropped():
    assert aggregate_night("2026-01-07", []) is None
