"""
session_grouper.py

Assigns raw stage segments to the sleep night they belong to.

A segment starting before the day-boundary hour (15:00 by default) belongs
to the previous calendar day: sleep usually starts in the evening and runs
into the next morning, and segments starting in the early afternoon are
naps or trailing awake markers of the preceding night. A segment starting
exactly on the boundary hour stays on its own day.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from itertools import groupby
from operator import itemgetter
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Tuple

from sleep_tracker.core.models.data_models import RawSegment
from sleep_tracker.utils.time_utils import parse_timestamp

DEFAULT_DAY_BOUNDARY_HOUR = 15


def sleep_night_for(start: datetime, day_boundary_hour: int = DEFAULT_DAY_BOUNDARY_HOUR) -> str:
    """Return the sleep-night date key ("YYYY-MM-DD") for a local start time"""
    day = start.date()
    if start.hour < day_boundary_hour:
        day -= timedelta(days=1)
    return day.isoformat()


def _local(start: datetime, tz: Optional[str]) -> datetime:
    if not tz:
        return start
    return parse_timestamp(start, tz)


def group_segments_by_night(
    segments: Iterable[RawSegment],
    day_boundary_hour: int = DEFAULT_DAY_BOUNDARY_HOUR,
    tz: Optional[str] = None,
) -> Mapping[str, Tuple[RawSegment, ...]]:
    """
    Group segments into a read-only {sleep_date: segments} mapping.

    Keys are ascending; each group keeps chronological order.
    """
    if not 0 <= day_boundary_hour <= 23:
        raise ValueError(f"day_boundary_hour must be between 0 and 23, got {day_boundary_hour}")

    ordered = sorted(segments, key=lambda s: s.start_time.timestamp())
    keyed = sorted(
        ((sleep_night_for(_local(s.start_time, tz), day_boundary_hour), s) for s in ordered),
        key=itemgetter(0),
    )

    groups = {
        night: tuple(segment for _, segment in members)
        for night, members in groupby(keyed, key=itemgetter(0))
    }
    return MappingProxyType(groups)
