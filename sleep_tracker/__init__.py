
"""
Sleep Tracker.

This package contains the functionality for:
- Ingesting Health Auto Export sleep samples
- Grouping segments into sleep nights
- Scoring each night
- Trend and goal analytics over the stored history
"""

__version__ = "0.1.0"
