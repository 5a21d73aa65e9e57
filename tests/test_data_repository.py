import pytest

from sleep_tracker.core.models.data_models import SleepPreferences
from sleep_tracker.core.repositories.data_repository import DataRepository


def test_saving_same_night_twice_keeps_one_entry(repository, make_entry):
    first = repository.save_sleep_entry(make_entry("2026-05-12", scores=(30, 30, 20)))
    second = repository.save_sleep_entry(make_entry("2026-05-12", scores=(40, 30, 20)))

    entries = repository.list_sleep_entries()

    assert len(entries) == 1
    assert entries[0].score.total_score == 90
    assert second.created_at == first.created_at
    assert second.updated_at >= first.updated_at


def test_entries_survive_a_new_repository(tmp_path, make_entry):
    DataRepository(data_dir=str(tmp_path)).save_sleep_entry(make_entry("2026-05-12", bedtime="00:15"))

    entry = DataRepository(data_dir=str(tmp_path)).get_sleep_entry("2026-05-12")

    assert entry.sleep_start.hour == 0
    assert entry.stages.total_sleep_minutes == pytest.approx(420)
    assert entry.interruptions.count == 1


def test_listing_order_and_limits(repository, make_entry):
    for sleep_date in ["2026-05-10", "2026-05-12", "2026-05-11", "2026-05-13"]:
        repository.save_sleep_entry(make_entry(sleep_date))

    newest = repository.list_sleep_entries(limit=2)
    in_range = repository.list_sleep_entries(start_date="2026-05-11", end_date="2026-05-12")

    assert [e.sleep_date for e in newest] == ["2026-05-13", "2026-05-12"]
    assert [e.sleep_date for e in in_range] == ["2026-05-11", "2026-05-12"]


def test_delete_entry(repository, make_entry):
    repository.save_sleep_entry(make_entry("2026-05-12"))

    assert repository.delete_sleep_entry("2026-05-12") is True
    assert repository.delete_sleep_entry("2026-05-12") is False
    assert repository.list_sleep_entries() == []


def test_default_preferences(repository):
    assert repository.get_sleep_preferences() == SleepPreferences()


def test_saved_preferences(repository):
    repository.save_sleep_preferences(SleepPreferences(target_bedtime="23:15", target_duration_minutes=450))

    preferences = repository.get_sleep_preferences()

    assert preferences.target_bedtime == "23:15"
    assert preferences.target_duration_minutes == 450


def test_goal_upsert_and_delete(repository):
    repository.save_goal("sleep_duration", 420)
    repository.save_goal("sleep_duration", 450)
    repository.save_goal("sleep_score", 80)

    goals = {goal.metric_key: goal.target_value for goal in repository.list_goals()}

    assert goals == {"sleep_duration": 450, "sleep_score": 80}
    assert repository.delete_goal("sleep_score") is True
    assert repository.delete_goal("sleep_score") is False
    assert [goal.metric_key for goal in repository.list_goals()] == ["sleep_duration"]
