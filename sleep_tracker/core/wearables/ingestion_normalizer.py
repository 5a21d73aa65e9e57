"""
Ingestion normalizer that decides the payload format once per batch and
hands the samples to the matching transformer.
"""

import logging
from typing import Dict, List, Optional, Union

import pandas as pd

from sleep_tracker.core.models.data_models import NormalizedBatch, PayloadFormat
from sleep_tracker.core.wearables.health_export_transformer import (
    AggregatedNightTransformer,
    RawSegmentTransformer,
)
from sleep_tracker.core.wearables.session_grouper import DEFAULT_DAY_BOUNDARY_HOUR
from sleep_tracker.core.wearables.wearable_base_transformer import to_records

logger = logging.getLogger(__name__)

# Fields whose presence on the first sample marks a pre-aggregated batch
AGGREGATED_MARKER_FIELDS = ('sleepStart', 'totalSleep')


class IngestionNormalizer:
    """Selects the transformer for a batch of sleep samples"""

    def __init__(self, day_boundary_hour: int = DEFAULT_DAY_BOUNDARY_HOUR, timezone: Optional[str] = None):
        """Initialize the normalizer with one transformer per payload format"""
        self.transformers = {
            PayloadFormat.RAW: RawSegmentTransformer(day_boundary_hour, timezone),
            PayloadFormat.AGGREGATED: AggregatedNightTransformer(timezone),
        }

    @classmethod
    def from_config(cls, config):
        return cls(
            day_boundary_hour=int(config.get('ingestion.day_boundary_hour', DEFAULT_DAY_BOUNDARY_HOUR)),
            timezone=config.get('ingestion.timezone'),
        )

    @staticmethod
    def detect_format(records: List) -> PayloadFormat:
        """Decide the batch format from its first sample; mixed batches are not supported"""
        if records and isinstance(records[0], dict):
            if any(records[0].get(name) is not None for name in AGGREGATED_MARKER_FIELDS):
                return PayloadFormat.AGGREGATED
        return PayloadFormat.RAW

    def normalize(self, samples: Union[pd.DataFrame, List[Dict], Dict, None]) -> NormalizedBatch:
        """
        Normalize one batch of samples from the sleep metric channel

        Args:
            samples: The channel's data array

        Returns:
            NormalizedBatch holding night groups (raw) or night records (aggregated)
        """
        records = to_records(samples)
        payload_format = self.detect_format(records)
        logger.info(f"Normalizing {len(records)} samples as {payload_format.value} format")

        return self.transformers[payload_format].transform(records)
