"""
Tests for configuration loading and validation.
"""

import json
import logging

import pytest
import yaml
from pydantic import ValidationError as PydanticValidationError

from practice_core.common import config as config_module
from practice_core.common.config import (
    AppConfig,
    ConfigLoader,
    CurveSettings,
    DifficultyConfig,
    LoggingConfig,
    PracticeConfig,
    apply_logging_config,
    get_config,
    reload_config,
)
from practice_core.common.exceptions import ConfigurationError
from practice_core.common.logger import APP_LOGGER_NAME


@pytest.fixture
def restore_config():
    yield
    reload_config(config_path=None)


def test_defaults():
    settings = AppConfig()
    assert settings.curve.version == 2
    assert settings.curve.max_level == 100
    assert settings.migration.key_prefix == "progression"
    assert settings.migration.max_log_entries == 100
    assert settings.analysis.trend_window == 5
    assert settings.analysis.stability_threshold == 0.05
    assert settings.difficulty.min_sessions == 5
    assert settings.practice.window_days == 28
    assert settings.data_quality.stale_after_days == 30


def test_yaml_file(tmp_path):
    path = tmp_path / "practice.yaml"
    path.write_text(yaml.safe_dump({
        "difficulty": {"min_sessions": 8},
        "migration": {"key_prefix": "learner"},
    }))

    loaded = ConfigLoader(str(path)).load()
    assert loaded.difficulty.min_sessions == 8
    assert loaded.migration.key_prefix == "learner"
    assert loaded.analysis.trend_window == 5


def test_json_file(tmp_path):
    path = tmp_path / "practice.json"
    path.write_text(json.dumps({"practice": {"window_days": 14}}))

    assert ConfigLoader(str(path)).load().practice.window_days == 14


def test_missing_file_uses_defaults(tmp_path):
    loaded = ConfigLoader(str(tmp_path / "absent.yaml")).load()
    assert loaded == AppConfig()


def test_unsupported_format(tmp_path):
    path = tmp_path / "practice.ini"
    path.write_text("[curve]\nversion = 3\n")
    assert ConfigLoader(str(path)).load().curve.version == 2


def test_invalid_values_raise(tmp_path):
    path = tmp_path / "practice.yaml"
    path.write_text(yaml.safe_dump({"curve": {"max_level": 500}}))

    with pytest.raises(ConfigurationError) as exc_info:
        ConfigLoader(str(path)).load()
    assert exc_info.value.config_key == str(path)


def test_env_var(tmp_path, monkeypatch):
    path = tmp_path / "practice.yaml"
    path.write_text(yaml.safe_dump({"curve": {"version": 3}}))
    monkeypatch.setenv("PRACTICE_CORE_CONFIG", str(path))

    assert ConfigLoader().load().curve.version == 3


@pytest.mark.parametrize("model, values", [
    (CurveSettings, {"max_level": 1}),
    (DifficultyConfig, {"expert_accuracy": 1.5}),
    (PracticeConfig, {"window_days": 3}),
    (LoggingConfig, {"level": "verbose"}),
])
def test_validators(model, values):
    with pytest.raises(PydanticValidationError):
        model(**values)


def test_log_level_normalized():
    assert LoggingConfig(level="debug").level == "DEBUG"


def test_reload_config(tmp_path, restore_config):
    path = tmp_path / "practice.yaml"
    path.write_text(yaml.safe_dump({"logging": {"level": "ERROR"}, "migration": {"max_log_entries": 10}}))

    reloaded = reload_config(str(path))
    assert reloaded.migration.max_log_entries == 10
    assert get_config() is config_module.config
    assert get_config().migration.max_log_entries == 10
    assert logging.getLogger(APP_LOGGER_NAME).level == logging.ERROR


def test_apply_logging_config(restore_config):
    logger = apply_logging_config(LoggingConfig(level="INFO", use_json=True))
    assert logger.level == logging.INFO
    assert len(logger.handlers) == 1
