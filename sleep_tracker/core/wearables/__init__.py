"""
Wearable ingestion module.

This module contains the transformers that turn Health Auto Export sleep
samples into raw segments or aggregated nights.
"""

from sleep_tracker.core.wearables.ingestion_normalizer import IngestionNormalizer
from sleep_tracker.core.wearables.session_grouper import group_segments_by_night

__all__ = ['IngestionNormalizer', 'group_segments_by_night']
