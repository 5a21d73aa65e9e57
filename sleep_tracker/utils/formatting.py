"""
Display formatting for sleep metrics.
"""

from typing import Optional

from sleep_tracker.utils.constants import MINUTES_PER_DAY


def format_duration(minutes: Optional[float]) -> str:
    """Format minutes as "7h 30m" ("-" when missing)"""
    if minutes is None:
        return '-'
    total = int(round(abs(minutes)))
    sign = '-' if minutes < 0 and total else ''
    return f"{sign}{total // 60}h {total % 60}m"


def format_time_of_day(minutes: Optional[float]) -> str:
    """Format minutes after midnight as "11:30 PM" ("-" when missing)"""
    if minutes is None:
        return '-'
    total = int(round(minutes)) % MINUTES_PER_DAY
    hours, mins = divmod(total, 60)
    suffix = 'AM' if hours < 12 else 'PM'
    display_hour = hours % 12 or 12
    return f"{display_hour}:{mins:02d} {suffix}"
