# sleep_tracker/core/services/sleep_service.py
import logging
from typing import Dict, List, Optional

from sleep_tracker.config.config_manager import get_config
from sleep_tracker.core.analysis.stage_aggregator import aggregate_night
from sleep_tracker.core.analysis.trend_analysis import summarize_period
from sleep_tracker.core.models.data_models import (
    IngestionResult,
    NightRecord,
    NormalizedBatch,
    PayloadFormat,
    SleepEntry,
    SleepPreferences,
    TrendPeriod,
)
from sleep_tracker.core.scoring.sleep_score import ScoringPreferences, SleepScoreCalculator
from sleep_tracker.core.wearables.ingestion_normalizer import IngestionNormalizer
from sleep_tracker.utils.constants import SLEEP_METRIC_NAME

logger = logging.getLogger(__name__)


class SleepService:
    """Service layer for sleep ingestion and sleep history"""

    def __init__(self, repository, normalizer=None, score_calculator=None, config=None):
        self.repository = repository
        self.config = config or get_config()
        self.normalizer = normalizer or IngestionNormalizer.from_config(self.config)
        self.score_calculator = score_calculator or SleepScoreCalculator()
        self.metric_name = self.config.get('ingestion.metric_name', SLEEP_METRIC_NAME)

    def extract_sleep_samples(self, payload) -> Optional[List]:
        """
        Find the sleep channel in a Health Auto Export payload.

        Returns:
            The channel's data array, or None when the payload has no
            data.metrics, no sleep channel, or an empty one
        """
        data = payload.get('data') if isinstance(payload, dict) else None
        metrics = data.get('metrics') if isinstance(data, dict) else None
        if not isinstance(metrics, list):
            return None

        for metric in metrics:
            if isinstance(metric, dict) and metric.get('name') == self.metric_name:
                samples = metric.get('data')
                return samples if samples else None
        return None

    async def ingest_payload(self, payload) -> Optional[IngestionResult]:
        """Ingest a full webhook payload; None when it carries no sleep data"""
        samples = self.extract_sleep_samples(payload)
        if not samples:
            logger.info("No sleep data found in payload")
            return None
        return await self.ingest_samples(samples)

    async def ingest_samples(self, samples) -> IngestionResult:
        """
        Normalize, score and persist one batch of sleep samples.

        A night that fails to aggregate, score or save is logged and
        recorded in the result's failures; the other nights still go
        through.
        """
        batch = self.normalizer.normalize(samples)
        preferences = self._scoring_preferences()

        result = IngestionResult(diagnostics=list(batch.diagnostics))
        for sleep_date, source in self._night_sources(batch):
            try:
                night = source if isinstance(source, NightRecord) else aggregate_night(sleep_date, source)
                if night is None:
                    continue
                result.nights_found += 1
                entry = self._build_entry(night, preferences)
                result.entries.append(self.repository.save_sleep_entry(entry))
            except Exception as e:
                logger.error(f"Error processing sleep night {sleep_date}: {str(e)}")
                result.failures.append({'sleep_date': sleep_date, 'error': str(e)})

        logger.info(
            f"Processed {result.processed} of {result.nights_found} sleep nights "
            f"({len(result.diagnostics)} invalid samples, {len(result.failures)} failures)"
        )
        return result

    @staticmethod
    def _night_sources(batch: NormalizedBatch):
        if batch.format == PayloadFormat.AGGREGATED:
            return [(night.sleep_date, night) for night in batch.nights]
        return list(batch.segment_groups.items())

    def _scoring_preferences(self) -> ScoringPreferences:
        return ScoringPreferences.from_preferences(
            self.repository.get_sleep_preferences(),
            self.repository.list_goals(),
            max_bedtime_deviation_minutes=self.config.get('scoring.max_bedtime_deviation_minutes', 120),
        )

    def _build_entry(self, night: NightRecord, preferences: ScoringPreferences) -> SleepEntry:
        score = self.score_calculator.score_night(night, preferences)
        logger.debug(f"Night {night.sleep_date} scored {score.total_score}")
        return SleepEntry(
            sleep_date=night.sleep_date,
            score=score,
            stages=night.stages,
            interruptions=night.interruptions,
            sleep_start=night.sleep_start,
            sleep_end=night.sleep_end,
        )

    async def get_entries(self, limit=30, start_date=None, end_date=None) -> List[SleepEntry]:
        """Get stored entries; a date range returns them oldest first"""
        if start_date or end_date:
            return self.repository.list_sleep_entries(start_date=start_date, end_date=end_date)
        return self.repository.list_sleep_entries(limit=limit)

    async def delete_entry(self, sleep_date) -> bool:
        return self.repository.delete_sleep_entry(sleep_date)

    async def get_trend_summary(self, period=TrendPeriod.DAYS_7, now=None) -> Dict:
        """Summarize the stored history over a trend period"""
        entries = self.repository.list_sleep_entries()
        return summarize_period(entries, period, now)

    async def get_preferences(self) -> SleepPreferences:
        return self.repository.get_sleep_preferences()

    async def save_preferences(self, preferences: SleepPreferences) -> SleepPreferences:
        return self.repository.save_sleep_preferences(preferences)
