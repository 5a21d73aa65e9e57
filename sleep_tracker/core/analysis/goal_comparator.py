"""
Compares sleep metrics against stored goals and classifies each one as
met, close or far, for metrics where higher is better as well as for
metrics where lower is better.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from sleep_tracker.core.analysis.trend_analysis import average_over_period, average_time_over_period
from sleep_tracker.core.models.data_models import (
    Goal,
    GoalComparison,
    GoalDirection,
    MetricUnit,
    SleepEntry,
    TrendPeriod,
)
from sleep_tracker.utils.constants import EARLY_MORNING_CUTOFF_MINUTES, MINUTES_PER_DAY
from sleep_tracker.utils.formatting import format_duration, format_time_of_day
from sleep_tracker.utils.time_utils import fold_minutes, to_evening_domain

logger = logging.getLogger(__name__)

FAR_THRESHOLD_HIGHER = 0.70
FAR_THRESHOLD_LOWER = 1.15


@dataclass(frozen=True)
class MetricDefinition:
    key: str
    label: str
    unit: MetricUnit
    direction: GoalDirection
    accessor: Callable[[SleepEntry], Any]


METRIC_DEFINITIONS: Dict[str, MetricDefinition] = {
    definition.key: definition
    for definition in [
        MetricDefinition('sleep_score', 'Sleep Score', MetricUnit.SCORE,
                         GoalDirection.HIGHER_IS_BETTER, lambda e: e.score.total_score),
        MetricDefinition('sleep_duration', 'Sleep Duration', MetricUnit.DURATION,
                         GoalDirection.HIGHER_IS_BETTER, lambda e: e.stages.total_sleep_minutes),
        MetricDefinition('sleep_bedtime', 'Bedtime', MetricUnit.TIME_OF_DAY,
                         GoalDirection.LOWER_IS_BETTER, lambda e: e.bedtime),
        MetricDefinition('sleep_wake', 'Wake Up', MetricUnit.TIME_OF_DAY,
                         GoalDirection.LOWER_IS_BETTER, lambda e: e.wake_time),
        MetricDefinition('sleep_deep', 'Deep Sleep', MetricUnit.DURATION,
                         GoalDirection.HIGHER_IS_BETTER, lambda e: e.stages.deep_minutes),
        MetricDefinition('sleep_rem', 'REM Sleep', MetricUnit.DURATION,
                         GoalDirection.HIGHER_IS_BETTER, lambda e: e.stages.rem_minutes),
        MetricDefinition('sleep_awake', 'Time Awake', MetricUnit.DURATION,
                         GoalDirection.LOWER_IS_BETTER, lambda e: e.stages.awake_minutes),
        MetricDefinition('sleep_interruptions', 'Interruptions', MetricUnit.COUNT,
                         GoalDirection.LOWER_IS_BETTER, lambda e: e.interruptions.count),
    ]
}


def normalize_time_of_day(minutes: float) -> float:
    """Move early-morning times (before 06:00) past midnight so they compare after evening times"""
    if minutes < EARLY_MORNING_CUTOFF_MINUTES:
        return minutes + MINUTES_PER_DAY
    return minutes


def to_goal_domain(metric_key: str, minutes: float) -> float:
    """
    Place a time-of-day value on the domain its goal is compared on.

    Bedtimes use the same noon cutoff as bedtime scoring, so a 07:00
    bedtime counts as very late rather than early. Wake-up times move past
    midnight only before 06:00.
    """
    if metric_key == 'sleep_bedtime':
        return to_evening_domain(fold_minutes(minutes))
    return normalize_time_of_day(fold_minutes(minutes))


def compare_to_goal(
    current: float,
    goal: float,
    direction: Union[GoalDirection, str],
    far_threshold_higher: float = FAR_THRESHOLD_HIGHER,
    far_threshold_lower: float = FAR_THRESHOLD_LOWER,
) -> GoalComparison:
    """
    Compare a current value with its goal.

    Args:
        current: Current metric value
        goal: Target value
        direction: Whether higher or lower values are better
        far_threshold_higher: Fraction of goal below which an unmet higher-is-better goal is far
        far_threshold_lower: Multiple of goal above which an unmet lower-is-better goal is far

    Returns:
        GoalComparison with is_met, is_far and a non-negative gap
    """
    direction = GoalDirection(direction)

    if direction == GoalDirection.HIGHER_IS_BETTER:
        is_met = current >= goal
        is_far = not is_met and current < goal * far_threshold_higher
    else:
        is_met = current <= goal
        is_far = not is_met and current > goal * far_threshold_lower

    return GoalComparison(is_met=is_met, is_far=is_far, gap=abs(goal - current))


def format_gap(gap: float, unit: Union[MetricUnit, str]) -> str:
    """Render a goal gap in the metric's unit"""
    unit = MetricUnit(unit)
    if unit in (MetricUnit.DURATION, MetricUnit.TIME_OF_DAY):
        return format_duration(gap)
    if unit == MetricUnit.SCORE:
        return f"{int(round(gap))} pts"
    return str(int(round(gap)))


def format_value(value: Optional[float], unit: Union[MetricUnit, str]) -> str:
    if value is None:
        return '-'
    unit = MetricUnit(unit)
    if unit == MetricUnit.DURATION:
        return format_duration(value)
    if unit == MetricUnit.TIME_OF_DAY:
        return format_time_of_day(value)
    return str(int(round(value)))


def current_value(
    entries: Iterable[SleepEntry],
    definition: MetricDefinition,
    period: Union[TrendPeriod, str],
    now: Optional[datetime] = None,
) -> Optional[float]:
    """Period average of a metric, on the same domain its goal is stored on"""
    if definition.unit == MetricUnit.TIME_OF_DAY:
        minutes = average_time_over_period(
            entries, period, definition.accessor, is_bedtime=definition.key == 'sleep_bedtime', now=now)
        return to_goal_domain(definition.key, minutes) if minutes is not None else None
    return average_over_period(entries, period, definition.accessor, now)


def evaluate_goals(
    entries: Iterable[SleepEntry],
    goals: Iterable[Goal],
    period: Union[TrendPeriod, str] = TrendPeriod.DAYS_7,
    now: Optional[datetime] = None,
    far_threshold_higher: float = FAR_THRESHOLD_HIGHER,
    far_threshold_lower: float = FAR_THRESHOLD_LOWER,
) -> List[Dict[str, Any]]:
    """Status row per known goal: current period average against the target"""
    entries = list(entries)
    rows = []

    for goal in goals:
        definition = METRIC_DEFINITIONS.get(goal.metric_key)
        if definition is None:
            logger.warning(f"No metric definition for goal {goal.metric_key}, skipping")
            continue

        target = goal.target_value
        if definition.unit == MetricUnit.TIME_OF_DAY:
            target = to_goal_domain(goal.metric_key, target)

        value = current_value(entries, definition, period, now)
        row = {
            'metric_key': goal.metric_key,
            'label': definition.label,
            'target_value': target,
            'current_value': value,
            'display_target': format_value(target, definition.unit),
            'display_current': format_value(value, definition.unit),
        }

        if value is None:
            row.update({'status': 'no_data', 'is_met': None, 'is_far': None, 'gap': None, 'display_gap': '-'})
        else:
            comparison = compare_to_goal(
                value, target, definition.direction, far_threshold_higher, far_threshold_lower)
            row.update(comparison.model_dump())
            row['display_gap'] = format_gap(comparison.gap, definition.unit)

        rows.append(row)

    return rows
