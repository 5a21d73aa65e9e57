"""
Constants used throughout the Sleep Tracker.
This includes scoring caps, default preferences and the
built-in configuration used when no config file is present.
"""

# Name of the Health Auto Export metric channel carrying sleep samples
SLEEP_METRIC_NAME = 'sleep_analysis'

# Score component caps (must sum to 100)
score_caps = {
    'duration': 50,
    'bedtime': 30,
    'interruptions': 20
}

# Score bands shown next to a night's total score
score_levels = [
    (85, 'Very High'),
    (70, 'High'),
    (50, 'OK'),
    (30, 'Low'),
    (0, 'Very Low')
]

# Preferences used when none have been saved
default_preferences = {
    'target_bedtime': '22:30:00',
    'target_wake_time': '06:30:00',
    'target_duration_minutes': 480,
    'bedtime_window_minutes': 30
}

MINUTES_PER_DAY = 1440

# Time-of-day goals below this many minutes after midnight are early morning
EARLY_MORNING_CUTOFF_MINUTES = 360

# Bedtimes before noon are treated as "late night" of the previous evening
NOON_MINUTES = 720

# Goal metric keys holding minutes-from-midnight
time_of_day_metrics = ['sleep_bedtime', 'sleep_wake']

# Built-in configuration, overridden by config/config.yaml
DEFAULT_CONFIG = {
    'ingestion': {
        'metric_name': SLEEP_METRIC_NAME,
        'day_boundary_hour': 15,
        'timezone': None
    },
    'scoring': {
        'max_bedtime_deviation_minutes': 120
    },
    'goals': {
        'far_threshold_higher': 0.70,
        'far_threshold_lower': 1.15
    },
    'storage': {
        'data_dir': 'data/store'
    },
    'logging': {
        'level': 'INFO',
        'log_dir': 'data/logs'
    },
    'api': {
        'cors_origins': ['*']
    }
}
