# sleep_tracker/core/services/goal_service.py
import logging

from sleep_tracker.config.config_manager import get_config
from sleep_tracker.core.analysis.goal_comparator import (
    FAR_THRESHOLD_HIGHER,
    FAR_THRESHOLD_LOWER,
    METRIC_DEFINITIONS,
    evaluate_goals,
    to_goal_domain,
)
from sleep_tracker.core.models.data_models import TrendPeriod
from sleep_tracker.utils.constants import time_of_day_metrics

logger = logging.getLogger(__name__)


class GoalService:
    """Service layer for goal-related operations"""

    def __init__(self, repository, config=None):
        self.repository = repository
        self.config = config or get_config()

    async def get_goals(self):
        """Get all goals"""
        return self.repository.list_goals()

    async def save_goal(self, metric_key, target_value):
        """Create or update a goal"""
        if metric_key not in METRIC_DEFINITIONS:
            raise ValueError(f"Unknown goal metric: {metric_key}")

        # Stored past midnight so 00:30 compares after 23:00
        if metric_key in time_of_day_metrics:
            target_value = to_goal_domain(metric_key, target_value)

        return self.repository.save_goal(metric_key, target_value)

    async def delete_goal(self, metric_key):
        """Delete a goal"""
        return self.repository.delete_goal(metric_key)

    async def get_goal_status(self, period=TrendPeriod.DAYS_7, now=None):
        """Compare each goal with its metric's average over the period"""
        entries = self.repository.list_sleep_entries()
        goals = self.repository.list_goals()

        return evaluate_goals(
            entries,
            goals,
            period,
            now,
            far_threshold_higher=self.config.get('goals.far_threshold_higher', FAR_THRESHOLD_HIGHER),
            far_threshold_lower=self.config.get('goals.far_threshold_lower', FAR_THRESHOLD_LOWER),
        )
