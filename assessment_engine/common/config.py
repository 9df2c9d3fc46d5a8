"""
Engine Configuration

Typed configuration for the delivery engine. Values come from, in order of
precedence: environment variables (``ENGINE_`` prefix, ``__`` for nesting,
e.g. ``ENGINE_TIMER__TICK_INTERVAL_SECONDS``), an optional YAML or JSON file
(``CONFIG_PATH``), and the defaults below.
"""

import os
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Type

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

logger = logging.getLogger(__name__)


class TimerConfig(BaseModel):
    """Session timer configuration"""
    tick_interval_seconds: float = 1.0
    warning_threshold_seconds: int = 300

    @field_validator('tick_interval_seconds')
    @classmethod
    def validate_interval(cls, v):
        if v <= 0:
            raise ValueError(f"Tick interval must be positive, got {v}")
        return v


class EditorConfig(BaseModel):
    """Defaults applied when a question's format omits a constraint"""
    short_answer_max_length: int = 250
    long_answer_max_length: int = 2000
    file_upload_max_size_mb: float = 10.0
    numeric_step: float = 1.0
    numeric_precision: int = 0


class CollaboratorConfig(BaseModel):
    """Assessment and submission store client configuration"""
    base_url: str = "http://localhost:3000"
    timeout: float = 30.0
    max_retries: int = 3
    retry_delay: float = 1.0
    backoff_factor: float = 2.0


class LoggingConfig(BaseModel):
    """Logging configuration"""
    level: str = "INFO"
    use_json: bool = False
    file_path: Optional[str] = None

    @field_validator('level')
    @classmethod
    def validate_level(cls, v):
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()


class APIConfig(BaseModel):
    """HTTP API configuration"""
    prefix: str = "/api"
    allow_origins: List[str] = Field(default_factory=lambda: ["http://localhost:3000"])
    max_sessions: int = 1000


class EnvironmentConfig(BaseModel):
    """Environment configuration"""
    env: str = "development"

    @field_validator('env')
    @classmethod
    def validate_env(cls, v):
        valid_envs = ['development', 'testing', 'staging', 'production']
        if v.lower() not in valid_envs:
            raise ValueError(f"Invalid environment: {v}. Must be one of {valid_envs}")
        return v.lower()


class EngineConfig(BaseSettings):
    """Main engine configuration"""
    model_config = SettingsConfigDict(env_prefix="ENGINE_", env_nested_delimiter="__")

    app_name: str = "Assessment Delivery Engine"
    version: str = "0.1.0"
    timer: TimerConfig = Field(default_factory=TimerConfig)
    editors: EditorConfig = Field(default_factory=EditorConfig)
    collaborator: CollaboratorConfig = Field(default_factory=CollaboratorConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    api: APIConfig = Field(default_factory=APIConfig)
    environment: EnvironmentConfig = Field(default_factory=EnvironmentConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        # Environment beats file values passed as init kwargs.
        return env_settings, init_settings, dotenv_settings, file_secret_settings

    @property
    def is_production(self) -> bool:
        return self.environment.env == "production"


class ConfigLoader:
    """
    Loads ``EngineConfig`` from an optional YAML/JSON file plus the environment.
    """

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path or os.environ.get("CONFIG_PATH")
        self._config: Optional[EngineConfig] = None

    def load(self) -> EngineConfig:
        if self._config is not None:
            return self._config

        file_config: Dict[str, Any] = {}
        if self.config_path:
            file_config = self._load_from_file(self.config_path)

        self._config = EngineConfig(**file_config)
        return self._config

    def _load_from_file(self, path: str) -> Dict[str, Any]:
        path = Path(path)
        if not path.exists():
            logger.warning(f"Config file not found: {path}")
            return {}

        suffix = path.suffix.lower()
        if suffix not in ('.yaml', '.yml', '.json'):
            logger.warning(f"Unsupported config file format: {suffix}")
            return {}

        try:
            with open(path, 'r') as f:
                data = yaml.safe_load(f) if suffix != '.json' else json.load(f)
        except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
            logger.error(f"Error loading config file {path}: {e}")
            return {}

        return data or {}


_config_loader = ConfigLoader()
_config: Optional[EngineConfig] = None


def get_config() -> EngineConfig:
    """Return the process-wide configuration, loading it on first use."""
    global _config
    if _config is None:
        _config = _config_loader.load()
    return _config


def set_config(config: EngineConfig) -> None:
    """Replace the process-wide configuration (tests, embedding applications)."""
    global _config
    _config = config


def reload_config(config_path: Optional[str] = None) -> EngineConfig:
    """Reload the configuration from ``config_path`` and the environment."""
    global _config_loader, _config
    _config_loader = ConfigLoader(config_path)
    _config = _config_loader.load()
    return _config
