from sleep_tracker.core.scoring.sleep_score import ScoringPreferences, SleepScoreCalculator

__all__ = ['ScoringPreferences', 'SleepScoreCalculator']
