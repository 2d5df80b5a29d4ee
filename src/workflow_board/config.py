"""
Configuration management for the workflow board engine.

Loads configuration from YAML. Store and workflow sections are required;
only transport tuning and logging carry defaults.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from workflow_board.workflow import Stage, WorkflowDefinition

CONFIG_PATH_ENV_VAR = "WORKFLOW_BOARD_CONFIG_PATH"
DEFAULT_CONFIG_FILENAME = "config.yaml"
REDACTION_MARKER = "***REDACTED***"
_SENSITIVE_KEYS = frozenset({"api_key"})


class StoreConfig(BaseModel):
    """Remote store connection configuration."""

    model_config = ConfigDict(extra="forbid")
    base_url: str
    api_key: str
    rest_path: str = "/rest/v1"
    timeout_seconds: float = Field(default=10.0, gt=0)


class StageConfig(BaseModel):
    """A single workflow column."""

    model_config = ConfigDict(extra="forbid")
    id: str = Field(min_length=1)
    label: str | None = None


class WorkflowConfig(BaseModel):
    """Ordered workflow stages."""

    model_config = ConfigDict(extra="forbid")
    stages: list[StageConfig]

    @field_validator("stages")
    @classmethod
    def _at_least_two_distinct(cls, stages: list[StageConfig]) -> list[StageConfig]:
        ids = [stage.id for stage in stages]
        if len(ids) < 2:
            msg = "workflow.stages needs at least two entries"
            raise ValueError(msg)
        if len(set(ids)) != len(ids):
            msg = f"workflow.stages ids must be distinct: {ids}"
            raise ValueError(msg)
        return stages

    def to_definition(self) -> WorkflowDefinition:
        return WorkflowDefinition(Stage(s.id, s.label or s.id) for s in self.stages)


class LoggingConfig(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(extra="forbid")
    level: str = "INFO"
    directory: str | None = None
    retention_days: int = Field(default=14, ge=0)


class Settings(BaseModel):
    """Root configuration container."""

    model_config = ConfigDict(extra="forbid")
    store: StoreConfig
    workflow: WorkflowConfig
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def get_config_path() -> Path:
    """Config path from WORKFLOW_BOARD_CONFIG_PATH, else config.yaml in the working directory."""
    override = os.environ.get(CONFIG_PATH_ENV_VAR)
    if override:
        return Path(override)
    return Path.cwd() / DEFAULT_CONFIG_FILENAME


def load_settings(config_path: Path | None = None) -> Settings:
    """
    Read and validate a settings file.

    Raises:
        FileNotFoundError: If the config file does not exist.
        ValueError: If the file is not a YAML mapping.
        pydantic.ValidationError: If the content does not match Settings.
    """
    if config_path is None:
        config_path = get_config_path()
    if not config_path.exists():
        msg = f"Config file not found: {config_path}"
        raise FileNotFoundError(msg)

    raw = yaml.safe_load(config_path.read_text())
    if not isinstance(raw, dict):
        msg = f"Invalid config file: {config_path}"
        raise ValueError(msg)
    return Settings(**raw)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Settings from the default config path, loaded once."""
    return load_settings()


def clear_settings_cache() -> None:
    get_settings.cache_clear()


def _redact(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            key: REDACTION_MARKER if key in _SENSITIVE_KEYS else _redact(item)
            for key, item in value.items()
        }
    if isinstance(value, list):
        return [_redact(item) for item in value]
    return value


def get_safe_config(settings: Settings | None = None) -> dict[str, Any]:
    """Configuration with sensitive values redacted."""
    if settings is None:
        settings = get_settings()
    redacted: dict[str, Any] = _redact(settings.model_dump())
    return redacted
