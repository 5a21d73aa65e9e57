from datetime import datetime

import pytest

from sleep_tracker.core.analysis.goal_comparator import (
    compare_to_goal,
    evaluate_goals,
    format_gap,
    normalize_time_of_day,
    to_goal_domain,
)
from sleep_tracker.core.models.data_models import Goal, GoalDirection

NOW = datetime(2026, 5, 14, 12, 0)


def test_duration_goal_close():
    result = compare_to_goal(400, 480, GoalDirection.HIGHER_IS_BETTER)

    assert result.is_met is False
    assert result.is_far is False
    assert result.gap == pytest.approx(80)
    assert result.status == "close"


def test_higher_is_better_far():
    result = compare_to_goal(300, 480, "higher_is_better")

    assert result.is_far is True
    assert result.status == "far"


def test_met_goal_is_never_far():
    result = compare_to_goal(500, 480, "higher_is_better")

    assert result.is_met is True
    assert result.is_far is False
    assert result.gap == pytest.approx(20)


@pytest.mark.parametrize("current, is_met, is_far", [
    (25, True, False),
    (30, True, False),
    (34, False, False),
    (35, False, True),
])
def test_lower_is_better(current, is_met, is_far):
    result = compare_to_goal(current, 30, GoalDirection.LOWER_IS_BETTER)

    assert (result.is_met, result.is_far) == (is_met, is_far)


def test_custom_thresholds():
    assert compare_to_goal(400, 480, "higher_is_better", far_threshold_higher=0.9).is_far is True


def test_early_morning_times_move_past_midnight():
    assert normalize_time_of_day(30) == 1470
    assert normalize_time_of_day(1380) == 1380


def test_gap_formatting():
    assert format_gap(80, "duration") == "1h 20m"
    assert format_gap(7.4, "score") == "7 pts"
    assert format_gap(2, "count") == "2"


def test_evaluate_goals(make_entry):
    entries = [
        make_entry("2026-05-12", bedtime="23:30", sleep_minutes=400, interruptions=2),
        make_entry("2026-05-13", bedtime="00:30", sleep_minutes=400, interruptions=2),
    ]
    goals = [
        Goal(metric_key="sleep_duration", target_value=480),
        Goal(metric_key="sleep_bedtime", target_value=1410),
        Goal(metric_key="sleep_interruptions", target_value=3),
        Goal(metric_key="unknown_metric", target_value=1),
    ]

    rows = {row["metric_key"]: row for row in evaluate_goals(entries, goals, "7", NOW)}

    assert set(rows) == {"sleep_duration", "sleep_bedtime", "sleep_interruptions"}
    assert rows["sleep_duration"]["status"] == "close"
    assert rows["sleep_duration"]["gap"] == pytest.approx(80)
    assert rows["sleep_duration"]["display_current"] == "6h 40m"

    # Midnight average compares as 24:00 against a 23:30 goal
    assert rows["sleep_bedtime"]["current_value"] == pytest.approx(1440)
    assert rows["sleep_bedtime"]["is_met"] is False
    assert rows["sleep_bedtime"]["gap"] == pytest.approx(30)
    assert rows["sleep_bedtime"]["display_target"] == "11:30 PM"

    assert rows["sleep_interruptions"]["status"] == "met"


def test_goal_without_data():
    rows = evaluate_goals([], [Goal(metric_key="sleep_score", target_value=80)], "7", NOW)

    assert rows[0]["status"] == "no_data"
    assert rows[0]["display_current"] == "-"


def test_morning_bedtimes_count_as_late(make_entry):
    # 07:00 bedtimes sit on the day after the sleep date
    entries = [make_entry("2026-05-12", bedtime="07:00"), make_entry("2026-05-13", bedtime="07:00")]

    row = evaluate_goals(entries, [Goal(metric_key="sleep_bedtime", target_value=1410)], "7", NOW)[0]

    assert row["current_value"] == pytest.approx(1860)
    assert row["is_met"] is False
    assert row["status"] == "far"
    assert row["gap"] == pytest.approx(450)
    assert row["display_gap"] == "7h 30m"


def test_bedtime_goal_and_wake_goal_domains():
    assert to_goal_domain("sleep_bedtime", 30) == 1470
    assert to_goal_domain("sleep_bedtime", 420) == 1860
    assert to_goal_domain("sleep_bedtime", 1410) == 1410
    assert to_goal_domain("sleep_wake", 420) == 420
    assert to_goal_domain("sleep_wake", 300) == 1740
