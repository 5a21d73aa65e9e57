"""
Analysis module for sleep data.

This module contains functions for reducing a night's segments into stage
totals, summarizing trend periods and comparing metrics against goals.
"""

from sleep_tracker.core.analysis.stage_aggregator import aggregate_night
from sleep_tracker.core.analysis.trend_analysis import (
    average_over_period,
    average_time_over_period,
    comparison_entry,
    summarize_period,
)
from sleep_tracker.core.analysis.goal_comparator import compare_to_goal, evaluate_goals

__all__ = ['aggregate_night', 'average_over_period', 'average_time_over_period',
           'comparison_entry', 'summarize_period', 'compare_to_goal', 'evaluate_goals']
