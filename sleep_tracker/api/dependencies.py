# sleep_tracker/api/dependencies.py
from sleep_tracker.config.config_manager import get_config
from sleep_tracker.core.repositories.data_repository import DataRepository


def get_repository():
    config = get_config()
    return DataRepository(data_dir=config.get('storage.data_dir'), config=config)
