# sleep_tracker/config/config_manager.py
import copy
import logging
import os

import yaml

from sleep_tracker.utils.constants import DEFAULT_CONFIG

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = 'SLEEP_TRACKER_CONFIG'


def _deep_merge(base, override):
    """Merge override into a copy of base, recursing into nested dicts"""
    merged = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class ConfigManager:
    """Central configuration manager"""

    def __init__(self, config_path=None, overrides=None):
        self.config_path = config_path or os.environ.get(CONFIG_ENV_VAR, 'config/config.yaml')
        self.config = _deep_merge(self._load_config(), overrides)

    def _load_config(self):
        """Load configuration from file, falling back to built-in defaults"""
        if not os.path.exists(self.config_path):
            logger.info(f"No config file at {self.config_path}, using defaults")
            return copy.deepcopy(DEFAULT_CONFIG)

        with open(self.config_path, 'r') as file:
            loaded = yaml.safe_load(file) or {}

        if not isinstance(loaded, dict):
            raise ValueError(f"Config file {self.config_path} must contain a mapping")

        return _deep_merge(DEFAULT_CONFIG, loaded)

    def get(self, key, default=None):
        """Get configuration value"""
        # Support nested keys with dot notation
        keys = key.split('.')
        value = self.config
        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value


_config = None


def get_config():
    """Return the process-wide ConfigManager, loading it on first use"""
    global _config
    if _config is None:
        _config = ConfigManager()
    return _config
