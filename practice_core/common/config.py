"""
Centralized Configuration

This module provides the configuration system for the progression and
recommendation engines. Every heuristic threshold used by the analysis
pipeline (trend band, tier cutoffs, data-quality grades) lives here so it
can be tuned without touching the algorithms.

Configuration is assembled from defaults and an optional YAML or JSON file
whose path is given by the ``PRACTICE_CORE_CONFIG`` environment variable.
"""

import os
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator

from practice_core.common.exceptions import ConfigurationError
from practice_core.common.logger import APP_LOGGER_NAME, configure_logger

# Configure logging
logger = logging.getLogger(__name__)

CONFIG_PATH_ENV = "PRACTICE_CORE_CONFIG"


def _check_fraction(name: str, value: float) -> float:
    if not 0 <= value <= 1:
        raise ValueError(f"{name} must be between 0 and 1, got {value}")
    return value


class CurveSettings(BaseModel):
    """Experience curve configuration"""
    version: int = Field(default=2)
    max_level: int = Field(default=100)

    @field_validator('max_level')
    @classmethod
    def validate_max_level(cls, v):
        """Validate max level"""
        if not 2 <= v <= 100:
            raise ValueError(f"max_level must be between 2 and 100, got {v}")
        return v


class MigrationConfig(BaseModel):
    """Backup and migration configuration"""
    key_prefix: str = Field(default="progression")
    max_log_entries: int = Field(default=100)
    default_log_limit: int = Field(default=50)

    @field_validator('max_log_entries', 'default_log_limit')
    @classmethod
    def validate_positive(cls, v):
        """Validate log sizes"""
        if v < 1:
            raise ValueError(f"Log sizes must be positive, got {v}")
        return v


class AnalysisConfig(BaseModel):
    """Per-mode performance analysis configuration"""
    trend_window: int = Field(default=5)
    min_trend_sessions: int = Field(default=4)
    stability_threshold: float = Field(default=0.05)
    confidence_scale: float = Field(default=8.0)
    low_sample_sessions: int = Field(default=3)
    low_sample_confidence_cap: float = Field(default=25.0)
    experience_per_correct: int = Field(default=10)

    @field_validator('stability_threshold')
    @classmethod
    def validate_threshold(cls, v):
        """Validate stability band"""
        return _check_fraction("stability_threshold", v)

    @field_validator('confidence_scale')
    @classmethod
    def validate_scale(cls, v):
        """Validate confidence scale"""
        if v <= 0:
            raise ValueError(f"confidence_scale must be positive, got {v}")
        return v


class CrossModeConfig(BaseModel):
    """Cross-mode comparison configuration"""
    excellent_accuracy: float = Field(default=0.9)
    good_accuracy: float = Field(default=0.75)
    average_accuracy: float = Field(default=0.6)
    focus_balance_threshold: float = Field(default=40.0)
    focus_accuracy_gap: float = Field(default=0.2)
    balanced_diversity: float = Field(default=75.0)
    beginner_total_sessions: int = Field(default=5)

    @field_validator('excellent_accuracy', 'good_accuracy', 'average_accuracy', 'focus_accuracy_gap')
    @classmethod
    def validate_fraction(cls, v, info):
        """Validate accuracy thresholds"""
        return _check_fraction(info.field_name, v)


class DifficultyConfig(BaseModel):
    """Difficulty recommendation configuration"""
    min_sessions: int = Field(default=5)
    expert_min_sessions: int = Field(default=10)
    intermediate_accuracy: float = Field(default=0.6)
    advanced_accuracy: float = Field(default=0.8)
    expert_accuracy: float = Field(default=0.95)
    target_band_low: float = Field(default=0.7)
    target_band_high: float = Field(default=0.85)
    struggle_accuracy: float = Field(default=0.6)
    beginner_preset_sessions: int = Field(default=3)
    max_mastery_days: int = Field(default=365)

    @field_validator(
        'intermediate_accuracy', 'advanced_accuracy', 'expert_accuracy',
        'target_band_low', 'target_band_high', 'struggle_accuracy'
    )
    @classmethod
    def validate_fraction(cls, v, info):
        """Validate accuracy thresholds"""
        return _check_fraction(info.field_name, v)


class PracticeConfig(BaseModel):
    """Practice-habit analysis configuration"""
    window_days: int = Field(default=28)
    min_bucket_sessions: int = Field(default=2)
    min_effectiveness_sessions: int = Field(default=5)

    @field_validator('window_days')
    @classmethod
    def validate_window(cls, v):
        """Validate trailing window"""
        if v < 7:
            raise ValueError(f"window_days must be at least 7, got {v}")
        return v


class DataQualityConfig(BaseModel):
    """Report data-quality grading configuration"""
    excellent_sessions: int = Field(default=20)
    excellent_questions: int = Field(default=100)
    excellent_active_modes: int = Field(default=2)
    good_sessions: int = Field(default=10)
    good_questions: int = Field(default=50)
    limited_sessions: int = Field(default=3)
    limited_questions: int = Field(default=10)
    stale_after_days: int = Field(default=30)


class LoggingConfig(BaseModel):
    """Logging configuration"""
    level: str = Field(default="WARNING")
    use_json: bool = Field(default=False)
    file_path: Optional[str] = Field(default=None)

    @field_validator('level')
    @classmethod
    def validate_level(cls, v):
        """Validate log level"""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()


class AppConfig(BaseModel):
    """Top-level configuration"""
    curve: CurveSettings = Field(default_factory=CurveSettings)
    migration: MigrationConfig = Field(default_factory=MigrationConfig)
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)
    cross_mode: CrossModeConfig = Field(default_factory=CrossModeConfig)
    difficulty: DifficultyConfig = Field(default_factory=DifficultyConfig)
    practice: PracticeConfig = Field(default_factory=PracticeConfig)
    data_quality: DataQualityConfig = Field(default_factory=DataQualityConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


class ConfigLoader:
    """
    Configuration loader.

    Loads configuration from:
    1. Default values
    2. Config file (YAML or JSON)
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize the config loader.

        Args:
            config_path: Path to config file (YAML or JSON)
        """
        self.config_path = config_path or os.environ.get(CONFIG_PATH_ENV)
        self._config = None

    def load(self) -> AppConfig:
        """
        Load configuration from all sources.

        Returns:
            Loaded configuration

        Raises:
            ConfigurationError: If the file holds values that fail validation
        """
        if self._config is not None:
            return self._config

        file_config = {}
        if self.config_path:
            file_config = self._load_from_file(self.config_path)

        try:
            self._config = AppConfig(**file_config)
        except PydanticValidationError as e:
            raise ConfigurationError(str(e), config_key=self.config_path) from e
        return self._config

    def _load_from_file(self, path: str) -> Dict[str, Any]:
        """
        Load configuration from a file.

        Args:
            path: Path to config file

        Returns:
            Loaded configuration dictionary
        """
        path = Path(path)
        if not path.exists():
            logger.warning(f"Config file not found: {path}")
            return {}

        try:
            if path.suffix.lower() in ['.yaml', '.yml']:
                with open(path, 'r', encoding='utf-8') as f:
                    return yaml.safe_load(f) or {}
            elif path.suffix.lower() == '.json':
                with open(path, 'r', encoding='utf-8') as f:
                    return json.load(f)
            else:
                logger.warning(f"Unsupported config file format: {path.suffix}")
                return {}
        except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
            logger.error(f"Error loading config file: {e}")
            return {}


# Global configuration instance
config_loader = ConfigLoader()
config = config_loader.load()


def get_config() -> AppConfig:
    """
    Get the loaded configuration.

    Returns:
        Loaded configuration
    """
    return config


def apply_logging_config(settings: LoggingConfig) -> logging.Logger:
    """
    Reconfigure the package logger from logging settings.

    Args:
        settings: Logging section of the configuration

    Returns:
        The reconfigured package logger
    """
    return configure_logger(
        name=APP_LOGGER_NAME,
        level=settings.level,
        use_json=settings.use_json,
        log_file=settings.file_path
    )


def reload_config(config_path: Optional[str] = None, apply_logging: bool = True) -> AppConfig:
    """
    Reload the configuration.

    Args:
        config_path: Path to config file
        apply_logging: Whether to reconfigure the package logger from the result

    Returns:
        Reloaded configuration
    """
    global config_loader, config
    config_loader = ConfigLoader(config_path)
    config = config_loader.load()
    if apply_logging:
        apply_logging_config(config.logging)
    return config
