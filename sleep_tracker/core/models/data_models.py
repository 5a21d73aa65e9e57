# sleep_tracker/core/models/data_models.py

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)

from sleep_tracker.utils.constants import default_preferences
from sleep_tracker.utils.time_utils import minutes_from_midnight


# Enum types for better validation
class SleepStage(str, Enum):
    IN_BED = "InBed"
    ASLEEP = "Asleep"
    AWAKE = "Awake"
    CORE = "Core"
    DEEP = "Deep"
    REM = "REM"


class PayloadFormat(str, Enum):
    RAW = "raw"
    AGGREGATED = "aggregated"


class TrendPeriod(str, Enum):
    DAYS_7 = "7"
    DAYS_30 = "30"
    DAYS_90 = "90"
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YTD = "YTD"
    PREVIOUS_YEAR = "PY"


class GoalDirection(str, Enum):
    HIGHER_IS_BETTER = "higher_is_better"
    LOWER_IS_BETTER = "lower_is_better"


class MetricUnit(str, Enum):
    DURATION = "duration"
    COUNT = "count"
    TIME_OF_DAY = "time_of_day"
    SCORE = "score"


def _hours_or_zero(value):
    """Coerce an hours field to a non-negative float, garbage becomes 0"""
    try:
        hours = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(hours) or math.isinf(hours) or hours < 0:
        return 0.0
    return hours


# Ingestion Models
class RawSegment(BaseModel):
    """One stage interval reported by the wearable"""
    model_config = ConfigDict(frozen=True)

    stage: SleepStage
    start_time: datetime
    end_time: datetime
    duration_seconds: float = Field(..., ge=0.0)

    @property
    def duration_minutes(self) -> float:
        return self.duration_seconds / 60


class AggregatedNightInput(BaseModel):
    """Pre-aggregated per-night summary from the export (hours as numbers or strings)"""
    model_config = ConfigDict(populate_by_name=True, extra='ignore')

    date: str
    sleep_start: str = Field(..., validation_alias=AliasChoices('sleepStart', 'sleep_start'))
    sleep_end: str = Field(..., validation_alias=AliasChoices('sleepEnd', 'sleep_end'))
    total_sleep_hours: float = Field(
        0.0, validation_alias=AliasChoices('totalSleep', 'totalSleepHours', 'total_sleep_hours'))
    asleep_hours: float = Field(
        0.0, validation_alias=AliasChoices('asleep', 'asleepHours', 'asleep_hours'))
    awake_hours: float = Field(
        0.0, validation_alias=AliasChoices('awake', 'awakeHours', 'awake_hours'))
    rem_hours: float = Field(
        0.0, validation_alias=AliasChoices('rem', 'remHours', 'rem_hours'))
    core_hours: float = Field(
        0.0, validation_alias=AliasChoices('core', 'coreHours', 'core_hours'))
    deep_hours: float = Field(
        0.0, validation_alias=AliasChoices('deep', 'deepHours', 'deep_hours'))
    in_bed_hours: float = Field(
        0.0, validation_alias=AliasChoices('inBed', 'inBedHours', 'in_bed_hours'))

    @field_validator('date', 'sleep_start', 'sleep_end', mode='before')
    @classmethod
    def validate_required_text(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            raise ValueError('field is required')
        return str(v)

    @field_validator('total_sleep_hours', 'asleep_hours', 'awake_hours', 'rem_hours',
                     'core_hours', 'deep_hours', 'in_bed_hours', mode='before')
    @classmethod
    def coerce_hours(cls, v):
        return _hours_or_zero(v)


# Sleep Night Models
class StageBreakdown(BaseModel):
    awake_minutes: float = Field(0.0, ge=0.0)
    rem_minutes: float = Field(0.0, ge=0.0)
    core_minutes: float = Field(0.0, ge=0.0)
    deep_minutes: float = Field(0.0, ge=0.0)
    in_bed_minutes: float = Field(0.0, ge=0.0)
    total_sleep_minutes: float = Field(0.0, ge=0.0)

    @model_validator(mode='after')
    def check_totals(self):
        stage_sum = self.rem_minutes + self.core_minutes + self.deep_minutes
        if not math.isclose(self.total_sleep_minutes, stage_sum, abs_tol=1e-6):
            raise ValueError('total_sleep_minutes must equal rem + core + deep minutes')
        if self.in_bed_minutes + 1e-6 < self.total_sleep_minutes:
            raise ValueError('in_bed_minutes must not be less than total_sleep_minutes')
        return self


class InterruptionSummary(BaseModel):
    count: int = Field(0, ge=0)
    total_minutes: float = Field(0.0, ge=0.0)


class ScoreBreakdown(BaseModel):
    duration_score: int = Field(..., ge=0, le=50)
    bedtime_score: int = Field(..., ge=0, le=30)
    interruption_score: int = Field(..., ge=0, le=20)
    total_score: int = Field(..., ge=0, le=100)

    @model_validator(mode='after')
    def check_total(self):
        if self.total_score != self.duration_score + self.bedtime_score + self.interruption_score:
            raise ValueError('total_score must be the sum of the component scores')
        return self

    @classmethod
    def from_components(cls, duration_score, bedtime_score, interruption_score):
        return cls(
            duration_score=duration_score,
            bedtime_score=bedtime_score,
            interruption_score=interruption_score,
            total_score=duration_score + bedtime_score + interruption_score
        )


class NightRecord(BaseModel):
    """One resolved sleep night, before scoring"""
    sleep_date: str
    stages: StageBreakdown
    interruptions: InterruptionSummary
    sleep_start: datetime
    sleep_end: datetime


class SleepEntry(BaseModel):
    """Persisted sleep night, one per sleep date"""
    sleep_date: str
    score: ScoreBreakdown
    stages: StageBreakdown
    interruptions: InterruptionSummary
    sleep_start: datetime
    sleep_end: datetime
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator('sleep_date', mode='before')
    @classmethod
    def validate_sleep_date(cls, v):
        try:
            return datetime.strptime(str(v)[:10], '%Y-%m-%d').strftime('%Y-%m-%d')
        except ValueError:
            raise ValueError(f'Invalid sleep date: {v}')

    @property
    def sleep_score(self) -> int:
        return self.score.total_score

    @property
    def bedtime(self) -> datetime:
        return self.sleep_start

    @property
    def wake_time(self) -> datetime:
        return self.sleep_end


# User Models
class SleepPreferences(BaseModel):
    target_bedtime: str = default_preferences['target_bedtime']
    target_wake_time: str = default_preferences['target_wake_time']
    target_duration_minutes: int = Field(default_preferences['target_duration_minutes'], gt=0)
    bedtime_window_minutes: int = Field(default_preferences['bedtime_window_minutes'], ge=0)

    @field_validator('target_bedtime', 'target_wake_time')
    @classmethod
    def validate_time_of_day(cls, v):
        if minutes_from_midnight(v) is None or ':' not in v:
            raise ValueError('Time must be formatted as HH:MM or HH:MM:SS')
        return v


class Goal(BaseModel):
    metric_key: str
    target_value: float


class GoalUpdate(BaseModel):
    target_value: float


class GoalComparison(BaseModel):
    is_met: bool
    is_far: bool
    gap: float = Field(..., ge=0.0)

    @computed_field
    @property
    def status(self) -> str:
        if self.is_met:
            return 'met'
        return 'far' if self.is_far else 'close'


# Pipeline intermediates
@dataclass(frozen=True)
class IngestionDiagnostic:
    reason: str
    sample: Any = None


@dataclass
class NormalizedBatch:
    """Output of the normalizer: one variant per batch, never mixed"""
    format: PayloadFormat
    segment_groups: Mapping[str, Tuple[RawSegment, ...]] = field(default_factory=dict)
    nights: List[NightRecord] = field(default_factory=list)
    diagnostics: List[IngestionDiagnostic] = field(default_factory=list)


@dataclass
class IngestionResult:
    entries: List[SleepEntry] = field(default_factory=list)
    diagnostics: List[IngestionDiagnostic] = field(default_factory=list)
    failures: List[Dict[str, str]] = field(default_factory=list)
    nights_found: int = 0

    @property
    def processed(self) -> int:
        return len(self.entries)
