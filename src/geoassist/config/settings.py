# src/geoassist/config/settings.py
"""
Application settings (Pydantic).

Settings are loaded from `src/geoassist/config/defaults.yaml`, then optionally overridden by:
- an external YAML file via `GEOASSIST_CONFIG_PATH` (replaces the packaged defaults)
- environment variables (`GEOASSIST_LOG_LEVEL`, `GEOASSIST_STORE_URL`, `GEOASSIST_PLACES_URL`)
"""

from __future__ import annotations

import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from geoassist.core.env import load_dotenv_if_present


def _read_package_yaml(filename: str) -> dict[str, Any]:
    """Read a YAML file packaged inside `geoassist.config`."""
    text = resources.files("geoassist.config").joinpath(filename).read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {filename}; expected a mapping.")
    return data


def _read_yaml_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML file from disk and return its mapping root."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {path}; expected a mapping.")
    return data


class AppSettings(BaseModel):
    name: str = "GeoAssist"
    http_timeout_seconds: float = 15
    log_level: str = "INFO"


class StoreSettings(BaseModel):
    url: str = "sqlite:///.cache/geoassist/places.db"


class SourceSettings(BaseModel):
    # Network-first when set; the bundled dataset is used otherwise (or as fallback).
    remote_url: str | None = None
    # None means the dataset packaged with `geoassist.catalog`.
    fallback_path: str | None = None
    fallback_to_bundled: bool = True


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)
    source: SourceSettings = Field(default_factory=SourceSettings)


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay selected environment variables onto raw settings payload."""
    load_dotenv_if_present()
    data = dict(data)

    log_level = os.getenv("GEOASSIST_LOG_LEVEL")
    if log_level:
        data.setdefault("app", {})["log_level"] = log_level

    store_url = os.getenv("GEOASSIST_STORE_URL")
    if store_url:
        data.setdefault("store", {})["url"] = store_url

    places_url = os.getenv("GEOASSIST_PLACES_URL")
    if places_url:
        data.setdefault("source", {})["remote_url"] = places_url

    return data


@lru_cache
def get_settings() -> Settings:
    """Load and validate settings (cached)."""
    load_dotenv_if_present()
    config_path = os.getenv("GEOASSIST_CONFIG_PATH")
    raw = _read_yaml_file(config_path) if config_path else _read_package_yaml("defaults.yaml")
    raw = _apply_env_overrides(raw)
    return Settings.model_validate(raw)


@lru_cache
def get_logging_config() -> dict[str, Any]:
    """Load logging configuration (cached)."""
    return _read_package_yaml("logging.yaml")
