from datetime import date, datetime

import pytest

from sleep_tracker.core.analysis.trend_analysis import (
    average_over_period,
    average_time_over_period,
    comparison_entry,
    get_comparison_date,
    get_cutoff_date,
    get_period_end,
    period_delta,
    summarize_period,
)
from sleep_tracker.core.models.data_models import TrendPeriod

# A Thursday
NOW = datetime(2026, 5, 14, 12, 0)


@pytest.mark.parametrize("period, expected", [
    (TrendPeriod.DAYS_7, date(2026, 5, 7)),
    (TrendPeriod.DAYS_30, date(2026, 4, 14)),
    (TrendPeriod.DAYS_90, date(2026, 2, 13)),
    (TrendPeriod.WEEK, date(2026, 5, 11)),
    (TrendPeriod.MONTH, date(2026, 5, 1)),
    (TrendPeriod.QUARTER, date(2026, 4, 1)),
    (TrendPeriod.YTD, date(2026, 1, 1)),
    (TrendPeriod.PREVIOUS_YEAR, date(2025, 1, 1)),
])
def test_cutoff_dates(period, expected):
    assert get_cutoff_date(period, NOW) == expected


def test_week_starts_monday_even_on_sunday():
    assert get_cutoff_date("week", datetime(2026, 5, 17)) == date(2026, 5, 11)


def test_previous_year_ends_on_december_31():
    assert get_period_end("PY", NOW) == date(2025, 12, 31)
    assert get_period_end("30", NOW) == NOW.date()


@pytest.mark.parametrize("period, expected", [
    ("7", date(2026, 5, 7)),
    ("month", date(2026, 4, 14)),
    ("quarter", date(2026, 2, 14)),
    ("YTD", date(2025, 5, 14)),
])
def test_comparison_dates(period, expected):
    assert get_comparison_date(period, NOW) == expected


def test_bedtimes_either_side_of_midnight_average_to_midnight(make_entry):
    entries = [make_entry("2026-05-12", bedtime="23:30"), make_entry("2026-05-13", bedtime="00:30")]

    average = average_time_over_period(entries, "7", lambda e: e.sleep_start, is_bedtime=True, now=NOW)

    assert average == pytest.approx(0)


def test_wake_times_average_linearly(make_entry):
    entries = [make_entry("2026-05-12", wake="06:00"), make_entry("2026-05-13", wake="07:00")]

    average = average_time_over_period(entries, "7", lambda e: e.sleep_end, now=NOW)

    assert average == pytest.approx(390)


def test_average_ignores_entries_outside_period(make_entry):
    entries = [
        make_entry("2026-05-13", scores=(40, 30, 20)),
        make_entry("2026-05-12", scores=(30, 20, 10)),
        make_entry("2026-04-01", scores=(0, 0, 0)),
    ]

    assert average_over_period(entries, "7", lambda e: e.score.total_score, NOW) == pytest.approx(75)


def test_average_of_nothing_is_none(make_entry):
    assert average_over_period([], "7", lambda e: e.score.total_score, NOW) is None
    assert average_over_period([make_entry("2026-05-13")], "7", lambda e: None, NOW) is None


def test_average_accepts_plain_dicts():
    entries = [{"sleepDate": "2026-05-13", "score": 80}, {"sleep_date": "2026-05-12", "score": 60}]

    assert average_over_period(entries, "7", lambda e: e["score"], NOW) == pytest.approx(70)


def test_comparison_entry_absent(make_entry):
    entries = [make_entry("2026-05-12"), make_entry("2026-05-13")]

    assert comparison_entry(entries, "7", NOW) is None
    assert period_delta(entries, "7", lambda e: e.score.total_score, NOW) is None


def test_comparison_entry_is_most_recent_before_cutoff(make_entry):
    entries = [
        make_entry("2026-05-13", scores=(45, 30, 20)),
        make_entry("2026-05-06", scores=(30, 30, 20)),
        make_entry("2026-05-01", scores=(10, 10, 10)),
    ]

    assert comparison_entry(entries, "7", NOW).sleep_date == "2026-05-06"
    assert period_delta(entries, "7", lambda e: e.score.total_score, NOW) == pytest.approx(15)


def test_summary(make_entry):
    entries = [
        make_entry("2026-05-13", bedtime="23:30", sleep_minutes=480, scores=(50, 30, 20)),
        make_entry("2026-05-12", bedtime="00:30", sleep_minutes=360, scores=(38, 20, 15)),
        make_entry("2026-05-05", scores=(40, 30, 20)),
    ]

    summary = summarize_period(entries, "7", NOW)

    assert summary["entry_count"] == 2
    assert summary["average_score"] == pytest.approx(86.5)
    assert summary["average_duration_minutes"] == pytest.approx(420)
    assert summary["average_bedtime_minutes"] == pytest.approx(0)
    assert summary["display"]["average_bedtime"] == "12:00 AM"
    assert summary["display"]["average_duration"] == "7h 0m"
    assert summary["comparison_date"] == "2026-05-05"
    assert summary["deltas"]["sleep_score"] == pytest.approx(10)
    assert summary["best_night"] == "2026-05-13"
    assert summary["worst_night"] == "2026-05-12"


def test_summary_of_empty_history():
    summary = summarize_period([], "month", NOW)

    assert summary["entry_count"] == 0
    assert summary["average_score"] is None
    assert summary["display"]["average_bedtime"] == "-"
    assert "best_night" not in summary
