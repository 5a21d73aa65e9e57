#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Period averages and period-over-period comparisons over the sleep entry
history.

Periods are either a fixed number of days back from today or anchored to
the calendar (start of week, month, quarter, year, or the whole previous
year). Bedtime and wake-up averages are taken on an extended minute
domain so that times either side of midnight average to midnight rather
than to midday.
"""

import logging
import math
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

import numpy as np
import pandas as pd

from sleep_tracker.core.models.data_models import SleepEntry, TrendPeriod
from sleep_tracker.utils.formatting import format_duration, format_time_of_day
from sleep_tracker.utils.time_utils import fold_minutes, minutes_from_midnight, parse_date, to_evening_domain

logger = logging.getLogger(__name__)

PERIOD_DAYS = {
    TrendPeriod.DAYS_7: 7,
    TrendPeriod.DAYS_30: 30,
    TrendPeriod.DAYS_90: 90,
}

# How far back the "previous period" baseline sits
PERIOD_LENGTHS = {
    TrendPeriod.DAYS_7: pd.DateOffset(days=7),
    TrendPeriod.DAYS_30: pd.DateOffset(days=30),
    TrendPeriod.DAYS_90: pd.DateOffset(days=90),
    TrendPeriod.WEEK: pd.DateOffset(days=7),
    TrendPeriod.MONTH: pd.DateOffset(months=1),
    TrendPeriod.QUARTER: pd.DateOffset(months=3),
    TrendPeriod.YTD: pd.DateOffset(years=1),
    TrendPeriod.PREVIOUS_YEAR: pd.DateOffset(years=1),
}

Accessor = Callable[[Any], Any]


def _today(now: Optional[datetime]) -> date:
    return (now or datetime.now()).date()


def _entry_date(entry: Union[SleepEntry, Dict]) -> Optional[date]:
    if isinstance(entry, dict):
        return parse_date(entry.get('sleep_date', entry.get('sleepDate')))
    return parse_date(entry.sleep_date)


def get_cutoff_date(period: Union[TrendPeriod, str], now: Optional[datetime] = None) -> date:
    """First sleep date included in the period"""
    period = TrendPeriod(period)
    today = _today(now)

    if period in PERIOD_DAYS:
        return today - timedelta(days=PERIOD_DAYS[period])
    if period == TrendPeriod.WEEK:
        # Monday-based: Sunday is day 7 of the week that began the Monday before
        return today - timedelta(days=today.isoweekday() - 1)
    if period == TrendPeriod.MONTH:
        return today.replace(day=1)
    if period == TrendPeriod.QUARTER:
        return today.replace(month=3 * ((today.month - 1) // 3) + 1, day=1)
    if period == TrendPeriod.YTD:
        return date(today.year, 1, 1)
    return date(today.year - 1, 1, 1)


def get_period_end(period: Union[TrendPeriod, str], now: Optional[datetime] = None) -> date:
    """Last sleep date included in the period"""
    today = _today(now)
    if TrendPeriod(period) == TrendPeriod.PREVIOUS_YEAR:
        return date(today.year - 1, 12, 31)
    return today


def get_comparison_date(period: Union[TrendPeriod, str], now: Optional[datetime] = None) -> date:
    """Latest sleep date a comparison entry may have: now minus one period length"""
    return (pd.Timestamp(_today(now)) - PERIOD_LENGTHS[TrendPeriod(period)]).date()


def entries_in_period(entries: Iterable, period: Union[TrendPeriod, str], now: Optional[datetime] = None) -> List:
    cutoff = get_cutoff_date(period, now)
    end = get_period_end(period, now)

    selected = []
    for entry in entries:
        entry_date = _entry_date(entry)
        if entry_date is not None and cutoff <= entry_date <= end:
            selected.append(entry)
    return selected


def _numeric_values(entries: Iterable, accessor: Accessor) -> List[float]:
    values = []
    for entry in entries:
        value = accessor(entry)
        if value is None:
            continue
        try:
            value = float(value)
        except (TypeError, ValueError):
            continue
        if not math.isnan(value):
            values.append(value)
    return values


def average_over_period(
    entries: Iterable,
    period: Union[TrendPeriod, str],
    accessor: Accessor,
    now: Optional[datetime] = None,
) -> Optional[float]:
    """
    Mean of accessor(entry) over entries in the period.

    Entries where the accessor yields None are ignored. Returns None when
    nothing is left to average.
    """
    values = _numeric_values(entries_in_period(entries, period, now), accessor)
    if not values:
        return None
    return float(np.mean(values))


def average_time_over_period(
    entries: Iterable,
    period: Union[TrendPeriod, str],
    accessor: Accessor,
    is_bedtime: bool = False,
    now: Optional[datetime] = None,
) -> Optional[float]:
    """
    Mean time of day, in minutes after midnight within [0, 1440).

    For bedtimes, times before noon are shifted a day forward first so
    23:30 and 00:30 average to 00:00.
    """
    minutes = []
    for entry in entries_in_period(entries, period, now):
        value = minutes_from_midnight(accessor(entry))
        if value is None:
            continue
        minutes.append(to_evening_domain(value) if is_bedtime else value)

    if not minutes:
        return None
    return fold_minutes(float(np.mean(minutes)))


def _most_recent(entries: Iterable, on_or_before: Optional[date] = None):
    best, best_date = None, None
    for entry in entries:
        entry_date = _entry_date(entry)
        if entry_date is None or (on_or_before is not None and entry_date > on_or_before):
            continue
        if best_date is None or entry_date > best_date:
            best, best_date = entry, entry_date
    return best


def comparison_entry(entries: Iterable, period: Union[TrendPeriod, str], now: Optional[datetime] = None):
    """Most recent entry at or before one period length ago, or None"""
    return _most_recent(entries, get_comparison_date(period, now))


def latest_entry(entries: Iterable):
    return _most_recent(entries)


def period_delta(
    entries: Iterable,
    period: Union[TrendPeriod, str],
    accessor: Accessor,
    now: Optional[datetime] = None,
) -> Optional[float]:
    """Latest entry's value minus the comparison entry's value; None when either is missing"""
    entries = list(entries)
    current = latest_entry(entries)
    baseline = comparison_entry(entries, period, now)
    if current is None or baseline is None:
        return None

    current_value, baseline_value = accessor(current), accessor(baseline)
    if current_value is None or baseline_value is None:
        return None
    return float(current_value) - float(baseline_value)


def entries_to_frame(entries: Iterable[SleepEntry]) -> pd.DataFrame:
    """Flatten entries into one row per night"""
    rows = [
        {
            'sleep_date': pd.to_datetime(entry.sleep_date),
            'sleep_score': entry.score.total_score,
            'total_sleep_minutes': entry.stages.total_sleep_minutes,
            'awake_minutes': entry.stages.awake_minutes,
            'deep_minutes': entry.stages.deep_minutes,
            'rem_minutes': entry.stages.rem_minutes,
            'interruptions': entry.interruptions.count,
        }
        for entry in entries
    ]
    columns = ['sleep_date', 'sleep_score', 'total_sleep_minutes', 'awake_minutes',
               'deep_minutes', 'rem_minutes', 'interruptions']
    return pd.DataFrame(rows, columns=columns)


def _mean_or_none(series: pd.Series) -> Optional[float]:
    value = series.mean()
    return None if pd.isna(value) else float(value)


def summarize_period(
    entries: Iterable[SleepEntry],
    period: Union[TrendPeriod, str] = TrendPeriod.DAYS_7,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Dashboard summary for one period: averages, typical bedtime/wake-up,
    and deltas of the latest night against the comparison entry.
    """
    period = TrendPeriod(period)
    entries = list(entries)
    in_period = entries_in_period(entries, period, now)
    frame = entries_to_frame(in_period)

    bedtime = average_time_over_period(in_period, period, lambda e: e.bedtime, is_bedtime=True, now=now)
    wake_time = average_time_over_period(in_period, period, lambda e: e.wake_time, now=now)
    baseline = comparison_entry(entries, period, now)

    summary = {
        'period': period.value,
        'start_date': get_cutoff_date(period, now).isoformat(),
        'end_date': get_period_end(period, now).isoformat(),
        'entry_count': int(len(frame)),
        'average_score': _mean_or_none(frame['sleep_score']),
        'average_duration_minutes': _mean_or_none(frame['total_sleep_minutes']),
        'average_awake_minutes': _mean_or_none(frame['awake_minutes']),
        'average_interruptions': _mean_or_none(frame['interruptions']),
        'average_bedtime_minutes': bedtime,
        'average_wake_minutes': wake_time,
        'comparison_date': baseline.sleep_date if baseline is not None else None,
        'deltas': {
            'sleep_score': period_delta(entries, period, lambda e: e.score.total_score, now),
            'total_sleep_minutes': period_delta(entries, period, lambda e: e.stages.total_sleep_minutes, now),
            'awake_minutes': period_delta(entries, period, lambda e: e.stages.awake_minutes, now),
        },
    }

    summary['display'] = {
        'average_duration': format_duration(summary['average_duration_minutes']),
        'average_bedtime': format_time_of_day(bedtime),
        'average_wake_time': format_time_of_day(wake_time),
    }

    if not frame.empty:
        best = frame.loc[frame['sleep_score'].idxmax()]
        worst = frame.loc[frame['sleep_score'].idxmin()]
        summary['best_night'] = best['sleep_date'].strftime('%Y-%m-%d')
        summary['worst_night'] = worst['sleep_date'].strftime('%Y-%m-%d')

    logger.debug(f"Summarized {len(frame)} entries for period {period.value}")
    return summary
