"""Typed configuration loader for the arbiter CLI."""
from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .env import load_env
from .policy import ConsistencyMode, Purpose

load_env()

DEFAULT_CONFIG_PATH = "config/arbiter.yaml"


class ArbiterSettings(BaseModel):
    default_mode: ConsistencyMode = ConsistencyMode.CHECKED
    purpose: Purpose = Purpose.QUERY_REWRITE
    use_cache: bool = Field(True, description="Reuse base table deltas within one evaluation")

    @field_validator("default_mode", "purpose", mode="before")
    @classmethod
    def _normalize(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value


class StorageConfig(BaseModel):
    context_db_path: str = "data/refresh_context.db"


class OutputConfig(BaseModel):
    format: str = "table"

    @field_validator("format")
    @classmethod
    def _check_format(cls, value: str) -> str:
        if value not in ("table", "json"):
            raise ValueError("format must be 'table' or 'json'")
        return value


class ArbiterConfig(BaseModel):
    arbiter: ArbiterSettings = Field(default_factory=ArbiterSettings)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)


class ConfigLoader:
    """Loads YAML driven configuration and validates it with Pydantic."""

    def __init__(self, path: str | Path | None = None) -> None:
        self.config_path = Path(path or os.getenv("MVT_CONFIG_PATH", DEFAULT_CONFIG_PATH))
        if not self.config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")
        self.model = self._parse_yaml()

    def _parse_yaml(self) -> ArbiterConfig:
        raw: dict
        with self.config_path.open("r", encoding="utf-8") as fp:
            raw = yaml.safe_load(fp) or {}
        try:
            return ArbiterConfig(**raw)
        except ValidationError as exc:
            raise ValueError(f"Invalid configuration: {exc}") from exc


def load_config(path: str | Path | None = None) -> ArbiterConfig:
    """Load configuration, falling back to defaults when no file is configured."""
    if path is None and not os.getenv("MVT_CONFIG_PATH") and not Path(DEFAULT_CONFIG_PATH).exists():
        return ArbiterConfig()
    return ConfigLoader(path).model


__all__ = [
    "ArbiterConfig",
    "ConfigLoader",
    "load_config",
]
