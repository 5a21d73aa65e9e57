from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from sleep_tracker.api.dependencies import get_repository
from sleep_tracker.api.main import app
from sleep_tracker.core.models.data_models import (
    InterruptionSummary,
    ScoreBreakdown,
    SleepEntry,
    StageBreakdown,
)
from sleep_tracker.core.repositories.data_repository import DataRepository


def raw_sample(stage, start, end):
    return {"value": stage, "startDate": start, "endDate": end, "source": "Watch"}


@pytest.fixture
def raw_night_samples():
    """Core, Awake, Deep and REM segments of the night of 2026-01-07"""
    return [
        raw_sample("Core", "2026-01-07T22:30:00-05:00", "2026-01-07T23:30:00-05:00"),
        raw_sample("Awake", "2026-01-07T23:30:00-05:00", "2026-01-07T23:40:00-05:00"),
        raw_sample("Deep", "2026-01-07T23:40:00-05:00", "2026-01-08T01:40:00-05:00"),
        raw_sample("REM", "2026-01-08T01:40:00-05:00", "2026-01-08T02:10:00-05:00"),
    ]


@pytest.fixture
def aggregated_night_sample():
    return {
        "date": "2026-01-07",
        "sleepStart": "2026-01-07T22:45:00-05:00",
        "sleepEnd": "2026-01-08T06:40:00-05:00",
        "totalSleep": "7.5",
        "deep": "1.2",
        "rem": "1.5",
        "core": "4.8",
        "awake": "0.3",
        "inBed": "7.8",
    }


@pytest.fixture
def make_entry():
    """Build a stored-style entry for analytics tests"""
    def _make_entry(sleep_date, bedtime="22:30", wake="06:30", sleep_minutes=420.0,
                    awake_minutes=20.0, interruptions=1, scores=(40, 30, 20)):
        night = datetime.strptime(sleep_date, "%Y-%m-%d")
        bed_hour, bed_minute = map(int, bedtime.split(":"))
        wake_hour, wake_minute = map(int, wake.split(":"))

        sleep_start = night.replace(hour=bed_hour, minute=bed_minute)
        if bed_hour < 12:
            sleep_start += timedelta(days=1)
        sleep_end = (night + timedelta(days=1)).replace(hour=wake_hour, minute=wake_minute)

        return SleepEntry(
            sleep_date=sleep_date,
            score=ScoreBreakdown.from_components(*scores),
            stages=StageBreakdown(
                awake_minutes=awake_minutes,
                rem_minutes=90.0,
                core_minutes=sleep_minutes - 150.0,
                deep_minutes=60.0,
                in_bed_minutes=sleep_minutes + awake_minutes,
                total_sleep_minutes=sleep_minutes,
            ),
            interruptions=InterruptionSummary(count=interruptions, total_minutes=awake_minutes),
            sleep_start=sleep_start,
            sleep_end=sleep_end,
        )
    return _make_entry


@pytest.fixture
def repository(tmp_path):
    return DataRepository(data_dir=str(tmp_path / "store"))


@pytest.fixture
def client(repository):
    app.dependency_overrides[get_repository] = lambda: repository
    yield TestClient(app)
    app.dependency_overrides.clear()
