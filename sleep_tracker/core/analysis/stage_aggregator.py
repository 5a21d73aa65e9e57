"""
Reduces the stage segments of one sleep night into stage totals,
interruptions and the overall sleep span.
"""

import logging
from typing import Dict, Optional, Sequence

from sleep_tracker.core.models.data_models import (
    InterruptionSummary,
    NightRecord,
    RawSegment,
    SleepStage,
    StageBreakdown,
)

logger = logging.getLogger(__name__)

# Stage labels that count as sleep, and the bucket they accumulate into.
# Generic "Asleep" comes from devices without stage detail and folds into core.
SLEEP_STAGE_BUCKETS = {
    SleepStage.REM: 'rem_minutes',
    SleepStage.DEEP: 'deep_minutes',
    SleepStage.CORE: 'core_minutes',
    SleepStage.ASLEEP: 'core_minutes',
}


def apply_in_bed_correction(totals: Dict[str, float]) -> Dict[str, float]:
    """
    Raise in-bed time to sleep + awake when the export under-reports it.

    InBed samples are often sparse or missing entirely.
    """
    if totals['in_bed_minutes'] < totals['total_sleep_minutes']:
        totals['in_bed_minutes'] = totals['total_sleep_minutes'] + totals['awake_minutes']
    return totals


def aggregate_night(sleep_date: str, segments: Sequence[RawSegment]) -> Optional[NightRecord]:
    """
    Aggregate one night's segments.

    Args:
        sleep_date: Sleep-night key the segments were grouped under
        segments: Segments of that night, in any order

    Returns:
        NightRecord, or None when there are no segments to score
    """
    if not segments:
        logger.debug(f"No segments for {sleep_date}, dropping night")
        return None

    totals = {
        'awake_minutes': 0.0,
        'rem_minutes': 0.0,
        'core_minutes': 0.0,
        'deep_minutes': 0.0,
        'in_bed_minutes': 0.0,
        'total_sleep_minutes': 0.0,
    }
    wake_count = 0
    sleep_start = None
    sleep_end = None

    for segment in segments:
        minutes = segment.duration_minutes

        if sleep_start is None or segment.start_time.timestamp() < sleep_start.timestamp():
            sleep_start = segment.start_time
        if sleep_end is None or segment.end_time.timestamp() > sleep_end.timestamp():
            sleep_end = segment.end_time

        if segment.stage == SleepStage.AWAKE:
            totals['awake_minutes'] += minutes
            wake_count += 1
        elif segment.stage in SLEEP_STAGE_BUCKETS:
            totals[SLEEP_STAGE_BUCKETS[segment.stage]] += minutes
            totals['total_sleep_minutes'] += minutes
        elif segment.stage == SleepStage.IN_BED:
            totals['in_bed_minutes'] += minutes

    apply_in_bed_correction(totals)

    return NightRecord(
        sleep_date=sleep_date,
        stages=StageBreakdown(**totals),
        interruptions=InterruptionSummary(count=wake_count, total_minutes=totals['awake_minutes']),
        sleep_start=sleep_start,
        sleep_end=sleep_end,
    )
