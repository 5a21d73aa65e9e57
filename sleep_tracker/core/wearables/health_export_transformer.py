"""
Health Auto Export transformers for the two sleep payload shapes:
raw per-segment stage samples and pre-aggregated per-night summaries.
"""

import logging
import math
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import ValidationError

from sleep_tracker.core.analysis.stage_aggregator import apply_in_bed_correction
from sleep_tracker.core.models.data_models import (
    AggregatedNightInput,
    IngestionDiagnostic,
    InterruptionSummary,
    NightRecord,
    NormalizedBatch,
    PayloadFormat,
    RawSegment,
    SleepStage,
    StageBreakdown,
)
from sleep_tracker.core.wearables.session_grouper import DEFAULT_DAY_BOUNDARY_HOUR, group_segments_by_night
from sleep_tracker.core.wearables.wearable_base_transformer import BaseSleepTransformer
from sleep_tracker.utils.time_utils import parse_date, parse_timestamp

logger = logging.getLogger(__name__)


class RawSegmentTransformer(BaseSleepTransformer):
    """Transform raw stage samples ({value, startDate, endDate, duration}) into night groups"""

    payload_format = PayloadFormat.RAW

    def __init__(self, day_boundary_hour: int = DEFAULT_DAY_BOUNDARY_HOUR, timezone: Optional[str] = None):
        self.day_boundary_hour = day_boundary_hour
        self.timezone = timezone

    def _transform_records(self, records: List, diagnostics: List[IngestionDiagnostic]) -> NormalizedBatch:
        segments = []
        for sample in records:
            segment = self._parse_segment(sample, diagnostics)
            if segment is not None:
                segments.append(segment)

        groups = group_segments_by_night(segments, self.day_boundary_hour)
        logger.info(f"Grouped {len(segments)} segments into {len(groups)} sleep nights")

        return NormalizedBatch(format=self.payload_format, segment_groups=groups, diagnostics=diagnostics)

    def _parse_segment(self, sample, diagnostics: List[IngestionDiagnostic]) -> Optional[RawSegment]:
        if not isinstance(sample, dict):
            self._reject(diagnostics, 'sample is not an object', sample)
            return None

        start = parse_timestamp(sample.get('startDate'), self.timezone)
        end = parse_timestamp(sample.get('endDate'), self.timezone)
        if start is None or end is None or (start.tzinfo is None) != (end.tzinfo is None):
            self._reject(diagnostics, 'unparseable startDate or endDate', sample)
            return None
        if end < start:
            self._reject(diagnostics, 'endDate is before startDate', sample)
            return None

        try:
            stage = SleepStage(sample.get('value'))
        except ValueError:
            self._reject(diagnostics, f"unknown sleep stage: {sample.get('value')!r}", sample)
            return None

        return RawSegment(
            stage=stage,
            start_time=start,
            end_time=end,
            duration_seconds=self._duration_seconds(sample, start, end),
        )

    @staticmethod
    def _duration_seconds(sample: Dict, start: datetime, end: datetime) -> float:
        """Use the reported duration, or the span between start and end when it is unusable"""
        try:
            duration = float(sample.get('duration'))
        except (TypeError, ValueError):
            duration = None

        if duration is None or math.isnan(duration) or duration < 0:
            return (end - start).total_seconds()
        return duration


class AggregatedNightTransformer(BaseSleepTransformer):
    """Transform per-night summaries ({date, sleepStart, sleepEnd, totalSleep, ...}) into night records"""

    payload_format = PayloadFormat.AGGREGATED

    def __init__(self, timezone: Optional[str] = None):
        self.timezone = timezone

    def _transform_records(self, records: List, diagnostics: List[IngestionDiagnostic]) -> NormalizedBatch:
        nights = []
        for sample in records:
            night = self._parse_night(sample, diagnostics)
            if night is not None:
                nights.append(night)

        return NormalizedBatch(format=self.payload_format, nights=nights, diagnostics=diagnostics)

    def _parse_night(self, sample, diagnostics: List[IngestionDiagnostic]) -> Optional[NightRecord]:
        if not isinstance(sample, dict):
            self._reject(diagnostics, 'sample is not an object', sample)
            return None

        try:
            night_input = AggregatedNightInput.model_validate(sample)
        except ValidationError as e:
            missing = ', '.join(str(err['loc'][0]) for err in e.errors() if err.get('loc'))
            self._reject(diagnostics, f"missing required field: {missing}", sample)
            return None

        sleep_date = parse_date(night_input.date)
        sleep_start = parse_timestamp(night_input.sleep_start, self.timezone)
        sleep_end = parse_timestamp(night_input.sleep_end, self.timezone)
        if sleep_date is None or sleep_start is None or sleep_end is None:
            self._reject(diagnostics, 'unparseable date, sleepStart or sleepEnd', sample)
            return None

        return NightRecord(
            sleep_date=sleep_date.isoformat(),
            stages=self._build_stages(night_input),
            interruptions=InterruptionSummary(count=0, total_minutes=night_input.awake_hours * 60),
            sleep_start=sleep_start,
            sleep_end=sleep_end,
        )

    @staticmethod
    def _build_stages(night_input: AggregatedNightInput) -> StageBreakdown:
        totals = {
            'awake_minutes': night_input.awake_hours * 60,
            'rem_minutes': night_input.rem_hours * 60,
            'core_minutes': (night_input.core_hours + night_input.asleep_hours) * 60,
            'deep_minutes': night_input.deep_hours * 60,
            'in_bed_minutes': night_input.in_bed_hours * 60,
        }

        # Without any stage detail the reported total is generic sleep
        if totals['rem_minutes'] + totals['core_minutes'] + totals['deep_minutes'] == 0:
            totals['core_minutes'] = night_input.total_sleep_hours * 60

        totals['total_sleep_minutes'] = totals['rem_minutes'] + totals['core_minutes'] + totals['deep_minutes']

        reported_total = night_input.total_sleep_hours * 60
        if reported_total and not math.isclose(reported_total, totals['total_sleep_minutes'], abs_tol=1.0):
            logger.debug(
                f"Reported total sleep {reported_total:.1f}m differs from stage sum "
                f"{totals['total_sleep_minutes']:.1f}m for {night_input.date}, using stage sum"
            )

        return StageBreakdown(**apply_in_bed_correction(totals))
