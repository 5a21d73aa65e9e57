"""
time_utils.py

Single place for turning export timestamps into datetimes and
time-of-day minutes, so the grouper, scorer and trend code agree on what
"local hour" and "minutes from midnight" mean.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime
from typing import Any, Optional

import pandas as pd

from sleep_tracker.utils.constants import MINUTES_PER_DAY, NOON_MINUTES

_TIME_OF_DAY_RE = re.compile(r'^\s*(\d{1,2}):(\d{2})(?::(\d{2}))?\s*$')


def parse_timestamp(value: Any, tz: Optional[str] = None) -> Optional[datetime]:
    """
    Parse an export timestamp into a datetime.

    Accepts datetimes, pandas Timestamps, epoch seconds and strings such as
    "2026-01-07 22:30:00 -0500" or ISO 8601. Returns None for anything that
    does not resolve to a valid instant. When tz is given, aware values are
    converted to it and naive values are assumed to already be in it; naive
    times skipped or repeated by a DST change resolve to daylight time.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        if isinstance(value, float) and math.isnan(value):
            return None
        ts = pd.to_datetime(value, unit='s', errors='coerce', utc=True)
    elif isinstance(value, (str, datetime, pd.Timestamp)):
        if isinstance(value, str) and not value.strip():
            return None
        ts = pd.to_datetime(value, errors='coerce')
    else:
        return None

    if ts is None or pd.isna(ts):
        return None

    if tz:
        if ts.tzinfo is not None:
            ts = ts.tz_convert(tz)
        else:
            ts = ts.tz_localize(tz, ambiguous=True, nonexistent='shift_forward')

    return ts.to_pydatetime()


def parse_date(value: Any) -> Optional[date]:
    """Parse a calendar day ("2026-01-07", a timestamp, or a date) into a date"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    ts = parse_timestamp(value)
    return ts.date() if ts is not None else None


def minutes_from_midnight(value: Any) -> Optional[float]:
    """
    Convert a time-of-day value to minutes after local midnight.

    Numbers are taken as minutes already; "HH:MM[:SS]" strings and
    timestamps are read on their own wall clock.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        return None if math.isnan(value) else float(value)

    if isinstance(value, str):
        match = _TIME_OF_DAY_RE.match(value)
        if match:
            hours, minutes = int(match.group(1)), int(match.group(2))
            if hours > 23 or minutes > 59:
                return None
            return float(hours * 60 + minutes)

    ts = parse_timestamp(value)
    if ts is None:
        return None
    return float(ts.hour * 60 + ts.minute)


def to_evening_domain(minutes: float) -> float:
    """Shift early-morning minutes past midnight so 01:00 sorts after 23:00"""
    return minutes + MINUTES_PER_DAY if minutes < NOON_MINUTES else minutes


def fold_minutes(minutes: float) -> float:
    """Fold an extended-domain minute value back into [0, 1440)"""
    return minutes % MINUTES_PER_DAY
