"""
Application configuration management using Pydantic Settings

Values come from (lowest to highest precedence): defaults, an optional JSON
settings file, ``INDEXPROF_*`` environment variables and finally the
command line flags applied by ``indexprof.main``.

Example:
    INDEXPROF_DATABASE__HOST=tidb.internal INDEXPROF_LOGGING__LEVEL=debug indexprof
"""

import json
from pathlib import Path
from typing import Optional, Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from indexprof.core.constants import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_USER,
    DEFAULT_SCHEMA,
    DEFAULT_QUERY_TIMEOUT,
    DEFAULT_CONNECTION_TIMEOUT,
    SampleSourceType,
    CatalogFlavor,
)
from indexprof.core.exceptions import ConfigurationError


class DatabaseSettings(BaseModel):
    """Database connection settings"""

    host: str = Field(default=DEFAULT_HOST, min_length=1)
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    user: str = Field(default=DEFAULT_USER)
    password: str = Field(default="", repr=False)
    name: str = Field(default=DEFAULT_SCHEMA, min_length=1)
    query_timeout: int = Field(default=DEFAULT_QUERY_TIMEOUT, ge=1, le=600)
    connection_timeout: int = Field(default=DEFAULT_CONNECTION_TIMEOUT, ge=1, le=120)
    max_pool_size: int = Field(default=5, ge=1, le=20)
    pool_recycle: int = Field(default=3600, ge=60)
    echo_sql: bool = Field(default=False)

    @field_validator('host', 'name')
    @classmethod
    def strip_value(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("value must not be blank")
        return v


class LoggingSettings(BaseModel):
    """Logging settings"""

    level: str = Field(default="INFO")
    file_enabled: bool = Field(default=False)
    log_dir: Optional[Path] = Field(default=None)
    retention_days: int = Field(default=7, ge=1, le=30)

    @field_validator('level')
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        v = v.upper()
        if v not in valid_levels:
            v = 'INFO'
        return v


class ProfilerSettings(BaseModel):
    """Sample collection and aggregation settings"""

    sample_source: SampleSourceType = Field(default=SampleSourceType.SUMMARY_TABLE)
    # Read CLUSTER_STATEMENTS_SUMMARY instead of the node-local table
    cluster_scope: bool = Field(default=True)
    catalog_flavor: CatalogFlavor = Field(default=CatalogFlavor.TIDB)
    workers: int = Field(default=1, ge=1, le=32)


class Settings(BaseSettings):
    """Main application settings"""

    model_config = SettingsConfigDict(
        env_prefix='INDEXPROF_',
        env_nested_delimiter='__',
        extra='ignore',
    )

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    profiler: ProfilerSettings = Field(default_factory=ProfilerSettings)

    def with_overrides(self, **sections: dict[str, Any]) -> 'Settings':
        """
        Return a copy with nested values replaced

        Keys are section names, values dicts of field updates. ``None`` values
        are ignored so that unset CLI flags keep the configured value.
        """
        updates: dict[str, Any] = {}
        for key, values in sections.items():
            if not hasattr(self, key):
                raise ConfigurationError(f"Unknown settings section '{key}'")
            values = {k: v for k, v in (values or {}).items() if v is not None}
            if not values:
                continue
            nested = getattr(self, key)
            merged = nested.model_dump()
            merged.update(values)
            # Re-validate so overrides get the same checks as env values
            try:
                updates[key] = type(nested).model_validate(merged)
            except ValueError as e:
                raise ConfigurationError(f"Invalid {key} settings: {e}") from e
        return self.model_copy(update=updates)

    @classmethod
    def _from_environment(cls) -> 'Settings':
        try:
            return cls()
        except ValueError as e:
            raise ConfigurationError(f"Invalid INDEXPROF_* environment value: {e}") from e

    @classmethod
    def load(cls, settings_file: Optional[Path] = None) -> 'Settings':
        """
        Load settings, optionally seeded from a JSON file

        Environment variables still take precedence over file values.

        Raises:
            ConfigurationError: If the file cannot be read, or a file or
                environment value is invalid
        """
        env_settings = cls._from_environment()
        if settings_file is None:
            return env_settings

        settings_file = Path(settings_file)
        try:
            with open(settings_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(
                f"Cannot read settings file: {e}", {"path": str(settings_file)}
            ) from e

        if not isinstance(data, dict):
            raise ConfigurationError(
                "Settings file must contain a JSON object", {"path": str(settings_file)}
            )

        env_fields = env_settings.model_dump(exclude_defaults=True)
        for section, values in env_fields.items():
            if isinstance(values, dict) and isinstance(data.get(section), dict):
                data[section] = {**data[section], **values}
            else:
                data[section] = values
        try:
            return cls.model_validate(data)
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid settings file: {e}", {"path": str(settings_file)}
            ) from e


# Global settings instance (cached)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get global settings instance (singleton)"""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call reloads them"""
    global _settings
    _settings = None
