import logging
from datetime import datetime
from typing import Dict, Iterable, Optional, Union

from pydantic import BaseModel, Field

from sleep_tracker.core.models.data_models import Goal, NightRecord, ScoreBreakdown, SleepPreferences
from sleep_tracker.utils.constants import score_caps, score_levels
from sleep_tracker.utils.time_utils import fold_minutes, minutes_from_midnight, to_evening_domain

logger = logging.getLogger(__name__)


class SleepScoreInput(BaseModel):
    """Input model for sleep score calculation"""
    total_sleep_minutes: float = Field(..., ge=0.0)
    bedtime: Optional[Union[datetime, str]] = None
    wake_count: int = Field(0, ge=0)
    awake_minutes: float = Field(0.0, ge=0.0)


class ScoringPreferences(BaseModel):
    """Targets the score is measured against"""
    target_duration_minutes: float = Field(480, gt=0.0)
    target_bedtime_minutes: float = Field(1350, ge=0.0)  # 22:30
    bedtime_window_minutes: float = Field(30, ge=0.0)
    max_bedtime_deviation_minutes: float = Field(120, gt=0.0)

    @classmethod
    def from_preferences(
        cls,
        preferences: Optional[SleepPreferences] = None,
        goals: Optional[Iterable[Goal]] = None,
        max_bedtime_deviation_minutes: float = 120,
    ) -> 'ScoringPreferences':
        """
        Build scoring targets from stored preferences, overridden by goals.

        Goals use minutes: sleep_duration as a length, sleep_bedtime as
        minutes from midnight (early-morning values may be stored past 1440).
        """
        prefs = preferences or SleepPreferences()
        values = {
            'target_duration_minutes': prefs.target_duration_minutes,
            'target_bedtime_minutes': minutes_from_midnight(prefs.target_bedtime),
            'bedtime_window_minutes': prefs.bedtime_window_minutes,
            'max_bedtime_deviation_minutes': max_bedtime_deviation_minutes,
        }

        goal_targets = {goal.metric_key: goal.target_value for goal in goals or []}
        if goal_targets.get('sleep_duration', 0) > 0:
            values['target_duration_minutes'] = goal_targets['sleep_duration']
        if 'sleep_bedtime' in goal_targets and goal_targets['sleep_bedtime'] >= 0:
            values['target_bedtime_minutes'] = fold_minutes(goal_targets['sleep_bedtime'])

        return cls(**values)


def _clamp(value: float, upper: int) -> int:
    return int(max(0, min(upper, round(value))))


class SleepScoreCalculator:
    """
    Three-part sleep score: duration (50), bedtime (30) and interruptions (20).
    All sleep score calculations should use this class.
    """

    def __init__(self):
        """Initialize the calculator with component caps and interruption tiers"""
        self.caps = dict(score_caps)

        # (threshold, penalty): first tier the value exceeds applies
        self.wake_count_penalties = [(3, 5), (1, 2)]
        self.awake_minutes_penalties = [(60, 20), (45, 15), (30, 10), (15, 5)]

    def calculate_score(
        self,
        sleep_data: Union[Dict, SleepScoreInput],
        preferences: Optional[ScoringPreferences] = None,
    ) -> ScoreBreakdown:
        """
        Calculate the sleep score for one night.

        Args:
            sleep_data: Either a dictionary with sleep metrics or a SleepScoreInput model
            preferences: Scoring targets; defaults to 8h sleep and a 22:30 bedtime

        Returns:
            ScoreBreakdown with each component clamped to its cap
        """
        input_data = SleepScoreInput(**sleep_data) if isinstance(sleep_data, dict) else sleep_data
        preferences = preferences or ScoringPreferences()

        duration_score = self._score_duration(input_data, preferences)
        bedtime_score = self._score_bedtime(input_data, preferences)
        interruption_score = self._score_interruptions(input_data)

        logger.debug(
            f"  Duration score: {duration_score}, bedtime score: {bedtime_score}, "
            f"interruption score: {interruption_score}"
        )

        return ScoreBreakdown.from_components(duration_score, bedtime_score, interruption_score)

    def score_night(self, night: NightRecord, preferences: Optional[ScoringPreferences] = None) -> ScoreBreakdown:
        """Score an aggregated night"""
        return self.calculate_score(
            SleepScoreInput(
                total_sleep_minutes=night.stages.total_sleep_minutes,
                bedtime=night.sleep_start,
                wake_count=night.interruptions.count,
                awake_minutes=night.stages.awake_minutes,
            ),
            preferences,
        )

    def _score_duration(self, sleep_data: SleepScoreInput, preferences: ScoringPreferences) -> int:
        """Linear against the duration goal; no extra credit past it"""
        cap = self.caps['duration']
        ratio = min(1.0, sleep_data.total_sleep_minutes / preferences.target_duration_minutes)
        return _clamp(ratio * cap, cap)

    def _score_bedtime(self, sleep_data: SleepScoreInput, preferences: ScoringPreferences) -> int:
        """Full marks inside the window, then linear down to 0 at the maximum deviation"""
        cap = self.caps['bedtime']
        actual = minutes_from_midnight(sleep_data.bedtime)
        if actual is None:
            logger.warning(f"Could not read bedtime {sleep_data.bedtime!r}, bedtime score set to 0")
            return 0

        # Early-morning times are late nights: 01:00 -> 25:00
        diff = abs(to_evening_domain(actual) - to_evening_domain(fold_minutes(preferences.target_bedtime_minutes)))
        deviation = max(0.0, diff - preferences.bedtime_window_minutes)

        return _clamp(cap * (1 - deviation / preferences.max_bedtime_deviation_minutes), cap)

    def _score_interruptions(self, sleep_data: SleepScoreInput) -> int:
        """Tiered deductions for wake events and for total time awake"""
        cap = self.caps['interruptions']

        count_penalty = next(
            (penalty for threshold, penalty in self.wake_count_penalties if sleep_data.wake_count > threshold), 0)
        duration_penalty = next(
            (penalty for threshold, penalty in self.awake_minutes_penalties if sleep_data.awake_minutes > threshold), 0)

        return _clamp(cap - count_penalty - duration_penalty, cap)


def score_level(total_score: int) -> str:
    """Band label for a total score"""
    for threshold, label in score_levels:
        if total_score >= threshold:
            return label
    return score_levels[-1][1]
