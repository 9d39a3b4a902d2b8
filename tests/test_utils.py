import json
import logging

import pytest

from utils import load_config, setup_logging


def write_config(tmp_path, data):
    path = tmp_path / "config.json"
    path.write_text(json.dumps(data))
    return str(path)


def test_load_config_returns_document(tmp_path):
    data = {'simulation_parameters': {'seed': 3}, 'countdown': {'seconds': 5}}
    assert load_config(write_config(tmp_path, data)) == data


@pytest.mark.parametrize("data", [
    {'countdown': {}},
    {'simulation_parameters': {}, 'countdown': 60},
    [1, 2, 3],
])
def test_load_config_rejects_missing_sections(tmp_path, data):
    with pytest.raises(ValueError):
        load_config(write_config(tmp_path, data))


def test_load_config_required_sections_are_configurable(tmp_path):
    path = write_config(tmp_path, {'logging': {}})
    assert load_config(path, required=('logging',)) == {'logging': {}}


def test_load_config_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "nope.json"))


def test_load_config_broken_json_raises(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json")
    with pytest.raises(json.JSONDecodeError):
        load_config(str(path))


def test_setup_logging_without_log_file(tmp_path):
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        setup_logging({'logging': {'level': 'debug', 'log_file': None}})
        assert root.level == logging.DEBUG
        assert not any(isinstance(h, logging.FileHandler) for h in root.handlers)
        assert logging.getLogger('numba').level == logging.WARNING
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)


def test_setup_logging_writes_to_log_file(tmp_path):
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    log_file = tmp_path / "logs" / "run.log"
    try:
        setup_logging({'logging': {'level': 'INFO', 'log_file': str(log_file)}})
        logging.info("hello from the test")
        for handler in root.handlers:
            handler.flush()
        assert "hello from the test" in log_file.read_text()
    finally:
        for handler in root.handlers:
            if handler not in saved_handlers:
                handler.close()
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
