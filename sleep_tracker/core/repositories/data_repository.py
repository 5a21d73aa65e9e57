# sleep_tracker/core/repositories/data_repository.py
import logging
import os
from datetime import datetime, timezone
from typing import List, Optional

import pandas as pd

from sleep_tracker.core.models.data_models import (
    Goal,
    InterruptionSummary,
    ScoreBreakdown,
    SleepEntry,
    SleepPreferences,
    StageBreakdown,
)

logger = logging.getLogger(__name__)

SCORE_COLUMNS = ['total_score', 'duration_score', 'bedtime_score', 'interruption_score']
STAGE_COLUMNS = ['awake_minutes', 'rem_minutes', 'core_minutes', 'deep_minutes',
                 'in_bed_minutes', 'total_sleep_minutes']
ENTRY_COLUMNS = (['sleep_date'] + SCORE_COLUMNS + STAGE_COLUMNS +
                 ['interruption_count', 'interruption_minutes', 'sleep_start', 'sleep_end',
                  'created_at', 'updated_at'])
GOAL_COLUMNS = ['metric_key', 'target_value']
PREFERENCE_COLUMNS = list(SleepPreferences.model_fields)


def _none_if_blank(value):
    return None if value is None or value == '' else value


class DataRepository:
    """
    Data access layer for sleep entries, preferences and goals.

    Backed by CSV files; sleep entries are keyed by sleep_date and goals by
    metric_key, and saving an existing key replaces the stored row.
    """

    def __init__(self, data_dir=None, config=None):
        self.config = config or {}
        self.cache = {}
        self.data_dir = data_dir or 'data/store'
        os.makedirs(self.data_dir, exist_ok=True)

        self.entries_file = os.path.join(self.data_dir, 'sleep_entries.csv')
        self.goals_file = os.path.join(self.data_dir, 'goals.csv')
        self.preferences_file = os.path.join(self.data_dir, 'preferences.csv')

    # ------------------------------------------------------------------
    # File helpers
    # ------------------------------------------------------------------

    def _read_frame(self, path, columns):
        """Read a CSV file as strings, cached until the next write"""
        if path not in self.cache:
            if os.path.exists(path):
                self.cache[path] = pd.read_csv(path, dtype=str, keep_default_na=False)
            else:
                self.cache[path] = pd.DataFrame(columns=columns)
        return self.cache[path].copy()

    def _write_frame(self, path, frame):
        """Write a frame atomically and drop it from the cache"""
        tmp_path = f"{path}.tmp"
        frame.to_csv(tmp_path, index=False)
        os.replace(tmp_path, path)
        self.cache.pop(path, None)

    # ------------------------------------------------------------------
    # Sleep entries
    # ------------------------------------------------------------------

    @staticmethod
    def _entry_to_row(entry: SleepEntry) -> dict:
        row = {'sleep_date': entry.sleep_date}
        row.update(entry.score.model_dump())
        row.update(entry.stages.model_dump())
        row['interruption_count'] = entry.interruptions.count
        row['interruption_minutes'] = entry.interruptions.total_minutes
        row['sleep_start'] = entry.sleep_start.isoformat()
        row['sleep_end'] = entry.sleep_end.isoformat()
        row['created_at'] = entry.created_at.isoformat() if entry.created_at else ''
        row['updated_at'] = entry.updated_at.isoformat() if entry.updated_at else ''
        return row

    @staticmethod
    def _row_to_entry(row: dict) -> SleepEntry:
        return SleepEntry(
            sleep_date=row['sleep_date'],
            score=ScoreBreakdown(**{col: int(float(row[col])) for col in SCORE_COLUMNS}),
            stages=StageBreakdown(**{col: float(row[col]) for col in STAGE_COLUMNS}),
            interruptions=InterruptionSummary(
                count=int(float(row['interruption_count'])),
                total_minutes=float(row['interruption_minutes'])
            ),
            sleep_start=row['sleep_start'],
            sleep_end=row['sleep_end'],
            created_at=_none_if_blank(row.get('created_at')),
            updated_at=_none_if_blank(row.get('updated_at')),
        )

    def save_sleep_entry(self, entry: SleepEntry) -> SleepEntry:
        """Insert or replace the entry for entry.sleep_date"""
        entries_df = self._read_frame(self.entries_file, ENTRY_COLUMNS)
        existing = entries_df[entries_df['sleep_date'] == entry.sleep_date]

        now = datetime.now(timezone.utc)
        created_at = now
        if len(existing) > 0 and existing.iloc[0].get('created_at'):
            created_at = existing.iloc[0]['created_at']
        saved = SleepEntry.model_validate({**entry.model_dump(), 'created_at': created_at, 'updated_at': now})

        entries_df = entries_df[entries_df['sleep_date'] != entry.sleep_date]
        row_df = pd.DataFrame([self._entry_to_row(saved)], columns=ENTRY_COLUMNS).astype(str)
        entries_df = pd.concat([entries_df, row_df], ignore_index=True) if len(entries_df) else row_df
        entries_df = entries_df.sort_values('sleep_date').reset_index(drop=True)

        self._write_frame(self.entries_file, entries_df)
        logger.info(f"{'Updated' if len(existing) else 'Saved'} sleep entry for {entry.sleep_date}")
        return saved

    def list_sleep_entries(self, limit=None, start_date=None, end_date=None) -> List[SleepEntry]:
        """
        Get sleep entries.

        With a date range, entries inside it in ascending date order;
        otherwise the newest entries first, up to limit.
        """
        entries_df = self._read_frame(self.entries_file, ENTRY_COLUMNS)

        if start_date or end_date:
            if start_date:
                entries_df = entries_df[entries_df['sleep_date'] >= str(start_date)]
            if end_date:
                entries_df = entries_df[entries_df['sleep_date'] <= str(end_date)]
            entries_df = entries_df.sort_values('sleep_date')
        else:
            entries_df = entries_df.sort_values('sleep_date', ascending=False)

        if limit is not None:
            entries_df = entries_df.head(limit)

        return [self._row_to_entry(row) for row in entries_df.to_dict('records')]

    def get_sleep_entry(self, sleep_date) -> Optional[SleepEntry]:
        entries_df = self._read_frame(self.entries_file, ENTRY_COLUMNS)
        match = entries_df[entries_df['sleep_date'] == str(sleep_date)]
        if len(match) == 0:
            return None
        return self._row_to_entry(match.iloc[0].to_dict())

    def delete_sleep_entry(self, sleep_date) -> bool:
        entries_df = self._read_frame(self.entries_file, ENTRY_COLUMNS)
        remaining = entries_df[entries_df['sleep_date'] != str(sleep_date)]
        if len(remaining) == len(entries_df):
            return False
        self._write_frame(self.entries_file, remaining)
        logger.info(f"Deleted sleep entry for {sleep_date}")
        return True

    # ------------------------------------------------------------------
    # Preferences
    # ------------------------------------------------------------------

    def get_sleep_preferences(self) -> SleepPreferences:
        """Get the saved preferences, or defaults when none are saved"""
        prefs_df = self._read_frame(self.preferences_file, PREFERENCE_COLUMNS)
        if len(prefs_df) == 0:
            return SleepPreferences()
        row = {k: v for k, v in prefs_df.iloc[0].to_dict().items() if v != ''}
        return SleepPreferences(**row)

    def save_sleep_preferences(self, preferences: SleepPreferences) -> SleepPreferences:
        prefs_df = pd.DataFrame([preferences.model_dump()], columns=PREFERENCE_COLUMNS)
        self._write_frame(self.preferences_file, prefs_df)
        logger.info("Saved sleep preferences")
        return preferences

    # ------------------------------------------------------------------
    # Goals
    # ------------------------------------------------------------------

    def list_goals(self) -> List[Goal]:
        goals_df = self._read_frame(self.goals_file, GOAL_COLUMNS)
        return [Goal(metric_key=row['metric_key'], target_value=float(row['target_value']))
                for row in goals_df.to_dict('records')]

    def save_goal(self, metric_key: str, target_value: float) -> Goal:
        """Insert or replace the goal for metric_key"""
        goal = Goal(metric_key=metric_key, target_value=target_value)
        goals_df = self._read_frame(self.goals_file, GOAL_COLUMNS)
        goals_df = goals_df[goals_df['metric_key'] != metric_key]
        row_df = pd.DataFrame([goal.model_dump()], columns=GOAL_COLUMNS).astype(str)
        goals_df = pd.concat([goals_df, row_df], ignore_index=True) if len(goals_df) else row_df

        self._write_frame(self.goals_file, goals_df)
        logger.info(f"Saved goal {metric_key}={target_value}")
        return goal

    def delete_goal(self, metric_key: str) -> bool:
        goals_df = self._read_frame(self.goals_file, GOAL_COLUMNS)
        remaining = goals_df[goals_df['metric_key'] != metric_key]
        if len(remaining) == len(goals_df):
            return False
        self._write_frame(self.goals_file, remaining)
        logger.info(f"Deleted goal {metric_key}")
        return True
