"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Environment variables  (SITESYNC__FETCHER__TIMEOUT_SECONDS=10)
  2. sitesync.yaml          (searched in cwd, then ~/.config/sitesync/)
  3. Hardcoded defaults

The config file is optional; every field has a default.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel, ConfigDict
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

_DEFAULT_DATA_DIR = platformdirs.user_data_dir("sitesync")
_DEFAULT_DB_PATH = os.path.join(_DEFAULT_DATA_DIR, "cache.db")
_DEFAULT_LOCAL_CACHE_PATH = os.path.join(_DEFAULT_DATA_DIR, "db.xml.gz")


def _find_config_file() -> str | None:
    """Return the path of the first sitesync.yaml found, or None."""
    candidates = [
        Path("sitesync.yaml"),
        Path.home() / ".config" / "sitesync" / "sitesync.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class _Section(BaseModel):
    # A typo in a nested key fails loudly instead of falling back to a default
    model_config = ConfigDict(extra="forbid")


class DefaultSourceSettings(_Section):
    name: str = "default"
    url: str = "https://update.sitesync.dev/"


class SyncSettings(_Section):
    index_filename: str = "db.xml.gz"
    local_cache_path: str = _DEFAULT_LOCAL_CACHE_PATH
    platform: str | None = None  # None: detect from the running interpreter


class CacheSettings(_Section):
    enabled: bool = True
    ttl_hours: int = 1
    db_path: str = _DEFAULT_DB_PATH


class FetcherSettings(_Section):
    timeout_seconds: float = 30.0
    max_redirects: int = 3


class LoggingSettings(_Section):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: SITESYNC__CACHE__TTL_HOURS=6
        env_prefix="SITESYNC__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    data_dir: str = _DEFAULT_DATA_DIR
    default_source: DefaultSourceSettings = DefaultSourceSettings()
    sync: SyncSettings = SyncSettings()
    cache: CacheSettings = CacheSettings()
    fetcher: FetcherSettings = FetcherSettings()
    logging: LoggingSettings = LoggingSettings()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
        **kwargs: Any,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,  # Constructor args (highest priority)
            env_settings,  # Environment variables
            YamlConfigSettingsSource(settings_cls),  # YAML file
            # dotenv and file secrets intentionally excluded
        )
