import importlib.util
import json
import os

import pytest

from sleep_tracker.core.repositories.data_repository import DataRepository
from tests.payloads import webhook_payload

SCRIPT_PATH = os.path.join(os.path.dirname(__file__), '..', 'scripts', 'ingest_health_export.py')


@pytest.fixture
def ingest_script():
    spec = importlib.util.spec_from_file_location('ingest_health_export', SCRIPT_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / 'config.yaml'
    path.write_text(f"logging:\n  log_dir: {tmp_path / 'logs'}\n")
    return str(path)


def test_ingests_webhook_payload_file(ingest_script, tmp_path, config_file, raw_night_samples):
    export = tmp_path / 'export.json'
    export.write_text(json.dumps(webhook_payload(raw_night_samples)))
    data_dir = str(tmp_path / 'store')

    status = ingest_script.main([str(export), '--data-dir', data_dir, '--config', config_file])

    assert status == 0
    assert [e.sleep_date for e in DataRepository(data_dir=data_dir).list_sleep_entries()] == ["2026-01-07"]


def test_ingests_bare_sample_array(ingest_script, tmp_path, config_file, aggregated_night_sample):
    export = tmp_path / 'export.json'
    export.write_text(json.dumps([aggregated_night_sample]))
    data_dir = str(tmp_path / 'store')

    assert ingest_script.main([str(export), '--data-dir', data_dir, '--config', config_file]) == 0
    assert len(DataRepository(data_dir=data_dir).list_sleep_entries()) == 1


def test_missing_file_fails(ingest_script, tmp_path, config_file):
    status = ingest_script.main([str(tmp_path / 'missing.json'), '--data-dir', str(tmp_path), '--config', config_file])

    assert status == 1
