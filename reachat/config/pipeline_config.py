"""
Pipeline Configuration - Centralized settings for injection and diagnostics

Provides configuration management for the content pipeline with environment
variable integration (including .env files) and validation.
"""

import os
import json
import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, get_args

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


def _matches_type(value: Any, expected: Any) -> bool:
    """isinstance check for the plain and Optional field annotations used below"""
    if expected is bool:
        return isinstance(value, bool)
    if expected is int:
        return isinstance(value, int) and not isinstance(value, bool)
    allowed = get_args(expected) or (expected,)
    return isinstance(value, allowed)


@dataclass
class PipelineConfig:
    """Centralized pipeline configuration with validation"""

    # Keyword-driven injection
    ENABLE_INJECTION: bool = True
    MAX_INJECTIONS: int = 5
    DEBUG_INJECTION: bool = False
    RULES_FILE: Optional[str] = None  # None uses the bundled catalogue

    # Diagnostic event bus
    EVENT_LOG_CAPACITY: int = 1000

    def __post_init__(self):
        """Validate configuration values"""
        if self.MAX_INJECTIONS < 0:
            raise ValueError("MAX_INJECTIONS must be non-negative")

        if self.EVENT_LOG_CAPACITY < 1:
            raise ValueError("EVENT_LOG_CAPACITY must be at least 1")


class PipelineConfigManager:
    """Configuration manager with environment variable support"""

    _instance: Optional['PipelineConfigManager'] = None
    _config: Optional[PipelineConfig] = None

    def __new__(cls) -> 'PipelineConfigManager':
        """Singleton pattern for configuration management"""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def get_config(self) -> PipelineConfig:
        """Get configuration with environment variable overrides"""
        if self._config is None:
            self._config = self._load_config()
        return self._config

    def reload_config(self) -> PipelineConfig:
        """Force reload configuration from environment"""
        self._config = None
        return self.get_config()

    def _load_config(self) -> PipelineConfig:
        """Load configuration from the optional JSON file and environment variables"""
        load_dotenv()

        config_dict = {}

        config_file_path = os.getenv("REACHAT_CONFIG_FILE")
        if config_file_path and Path(config_file_path).exists():
            try:
                with open(config_file_path, 'r', encoding='utf-8') as f:
                    file_values = json.load(f)
            except (json.JSONDecodeError, IOError) as e:
                logger.warning(f"⚠️ Ignoring unreadable config file {config_file_path}: {e}")
            else:
                if isinstance(file_values, dict):
                    config_dict.update(file_values)
                else:
                    logger.warning(f"⚠️ Ignoring config file {config_file_path}: expected a JSON object")

        env_overrides = {
            'ENABLE_INJECTION': self._get_env_bool('REACHAT_ENABLE_INJECTION'),
            'MAX_INJECTIONS': self._get_env_int('REACHAT_MAX_INJECTIONS'),
            'DEBUG_INJECTION': self._get_env_bool('REACHAT_DEBUG_INJECTION'),
            'RULES_FILE': os.getenv('REACHAT_RULES_FILE') or None,
            'EVENT_LOG_CAPACITY': self._get_env_int('REACHAT_EVENT_LOG_CAPACITY'),
        }

        for key, value in env_overrides.items():
            if value is not None:
                config_dict[key] = value

        config = PipelineConfig(**self._valid_values(config_dict))
        logger.debug(f"Pipeline config loaded: {config}")
        return config

    def _valid_values(self, config_dict: Dict[str, Any]) -> Dict[str, Any]:
        """Drop unknown keys and values of the wrong type or range, defaults apply instead"""
        known_fields = {f.name: f.type for f in fields(PipelineConfig)}
        valid = {}

        for key, value in config_dict.items():
            if key not in known_fields:
                logger.warning(f"⚠️ Ignoring unknown config key '{key}'")
                continue

            if not _matches_type(value, known_fields[key]):
                logger.warning(f"⚠️ Ignoring {key}={value!r}: expected {known_fields[key]}")
                continue

            try:
                PipelineConfig(**{key: value})
            except ValueError as e:
                logger.warning(f"⚠️ Ignoring {key}={value!r}: {e}")
                continue

            valid[key] = value

        return valid

    def _get_env_int(self, key: str) -> Optional[int]:
        """Get integer environment variable with error handling"""
        value = os.getenv(key)
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            logger.warning(f"⚠️ Invalid integer for {key}: '{value}', using default")
            return None

    def _get_env_bool(self, key: str) -> Optional[bool]:
        """Get boolean environment variable with error handling"""
        value = os.getenv(key)
        if value is None:
            return None
        return value.lower() in ('true', '1', 'yes', 'on', 'enabled')


# Global configuration instance
config_manager = PipelineConfigManager()


def get_pipeline_config() -> PipelineConfig:
    """Shortcut for the process-wide pipeline configuration"""
    return config_manager.get_config()
