# scripts/ingest_health_export.py
#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Ingest a saved Health Auto Export JSON file into the sleep store.
"""

import argparse
import asyncio
import json
import logging
import os
import sys

# Add the project root to the path
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from sleep_tracker.config.config_manager import ConfigManager
from sleep_tracker.core.repositories.data_repository import DataRepository
from sleep_tracker.core.services.sleep_service import SleepService
from sleep_tracker.utils.logging_setup import setup_logging


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description='Ingest a Health Auto Export sleep file')

    parser.add_argument(
        'export_file',
        type=str,
        help='Path to a Health Auto Export JSON file (webhook payload or sleep data array)'
    )

    parser.add_argument(
        '--data-dir',
        type=str,
        default=None,
        help='Directory holding the sleep store (defaults to storage.data_dir)'
    )

    parser.add_argument(
        '--config',
        type=str,
        default=None,
        help='Path to the YAML config file'
    )

    return parser.parse_args(argv)


async def ingest_file(service, export_file):
    with open(export_file, 'r') as file:
        payload = json.load(file)

    # A bare array is the sleep channel's data on its own
    if isinstance(payload, list):
        return await service.ingest_samples(payload)
    return await service.ingest_payload(payload)


def main(argv=None):
    """Run one ingestion and return the process exit status."""
    args = parse_args(argv)
    config = ConfigManager(args.config)

    setup_logging(config, log_name='ingest_health_export')
    logger = logging.getLogger('IngestHealthExport')

    repository = DataRepository(data_dir=args.data_dir or config.get('storage.data_dir'), config=config)
    service = SleepService(repository, config=config)

    logger.info(f"Ingesting {args.export_file}")
    try:
        result = asyncio.run(ingest_file(service, args.export_file))
    except Exception as e:
        logger.error(f"Error ingesting {args.export_file}: {str(e)}")
        return 1

    if result is None:
        logger.info("No sleep data found in export")
        return 0

    for entry in result.entries:
        logger.info(f"  {entry.sleep_date}: score {entry.sleep_score}")
    for failure in result.failures:
        logger.error(f"  {failure['sleep_date']}: {failure['error']}")

    logger.info(
        f"Stored {result.processed} nights, {len(result.diagnostics)} invalid samples, "
        f"{len(result.failures)} failures"
    )
    return 1 if result.failures else 0


if __name__ == "__main__":
    sys.exit(main())
