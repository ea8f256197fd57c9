"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Environment variables  (COMPOSER_REPO__SERVER__MODE=proxy)
  2. composer-repo.yaml     (searched in cwd, then the platform config dir)
  3. Hardcoded defaults

The config file is optional; all fields have sensible defaults.
"""

from __future__ import annotations

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

_APP_NAME = "composer-repo"
_DEFAULT_DATA_DIR = platformdirs.user_data_dir(_APP_NAME)
_DEFAULT_DB_PATH = str(Path(_DEFAULT_DATA_DIR) / "storage.db")


def _find_config_file() -> str | None:
    """Return the path of the first composer-repo.yaml found, or None."""
    candidates = [
        Path("composer-repo.yaml"),
        Path(platformdirs.user_config_dir(_APP_NAME)) / "composer-repo.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class ServerSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    # "local" hosts packages; "proxy" serves upstream packages merged with local ones
    mode: Literal["local", "proxy"] = "local"
    host: str = "0.0.0.0"
    port: int = 8080


class RepositorySettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    # Base URL written into the `dist` of uploaded archives. Archive upload
    # fails while this is unset.
    url_prefix: str | None = None


class StorageSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    backend: Literal["memory", "sqlite"] = "sqlite"
    db_path: str = _DEFAULT_DB_PATH


class ProxySettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    remote_url: str = "https://repo.packagist.org"
    ttl_minutes: int = 10
    timeout_seconds: float = 30.0


class LoggingSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: COMPOSER_REPO__SERVER__PORT=9090
        env_prefix="COMPOSER_REPO__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    server: ServerSettings = ServerSettings()
    repository: RepositorySettings = RepositorySettings()
    storage: StorageSettings = StorageSettings()
    proxy: ProxySettings = ProxySettings()
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
