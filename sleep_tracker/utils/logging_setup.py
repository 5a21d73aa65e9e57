import logging
import os


def setup_logging(config, log_name='sleep_tracker'):
    """Configure root logging with console and file output"""
    log_dir = config.get('logging.log_dir', 'data/logs')
    level = config.get('logging.level', 'INFO')

    os.makedirs(log_dir, exist_ok=True)

    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(os.path.join(log_dir, f'{log_name}.log'))
        ]
    )
