"""Configuration management using pydantic-settings.

**Not a singleton**: each call to ``get_app_config()`` re-reads config
from disk.  The server reads it once in ``create_app`` and injects the
result everywhere else through ``app.state``.

Priority order (highest first):

1. Init kwargs (``AppConfig(server=...)``)
2. ConfigMap YAML (path from ``REALADDR_CONFIGMAP_FILE`` env var)
3. Environment variables (``REALADDR_`` prefix, ``__`` nesting)
4. ``.env`` dotenv file
5. Static YAML (``configs/config.yaml``)
6. File secrets
7. Field defaults

Example: ``REALADDR_SERVER__REAL_IP__MODE=left``.
"""

import os
from pathlib import Path
from typing import Optional

from fastapi.requests import HTTPConnection
from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from .system import LoggingConfig, MetricsConfig, ServerConfig

# ---------------------------------------------------------------------------
# Path constants
# ---------------------------------------------------------------------------

CONFIG_PY_PATH = Path(__file__).resolve()
PROJECT_ROOT = CONFIG_PY_PATH.parent.parent.parent.parent
CONFIG_DIR = PROJECT_ROOT / "configs"

STATIC_CONFIG_FILE = CONFIG_DIR / "config.yaml"

_configmap_env = os.environ.get("REALADDR_CONFIGMAP_FILE")
CONFIGMAP_CONFIG_FILE: Optional[Path] = Path(_configmap_env) if _configmap_env else None

DOTENV_FILE_PATH = PROJECT_ROOT / ".env"
ENV_DELIMITER = "__"
ENV_PREFIX = "REALADDR_"

DEFAULT_ENCODING = "utf-8"


class AppConfig(BaseSettings):
    """Application configuration."""

    model_config = SettingsConfigDict(
        env_file=DOTENV_FILE_PATH,
        env_file_encoding=DEFAULT_ENCODING,
        env_nested_delimiter=ENV_DELIMITER,
        env_prefix=ENV_PREFIX,
        case_sensitive=False,
        extra="ignore",
        yaml_file=STATIC_CONFIG_FILE,
        yaml_file_encoding=DEFAULT_ENCODING,
    )

    server: ServerConfig = Field(
        default_factory=ServerConfig,
        description="WebSocket server settings",
    )

    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Log output settings",
    )

    metrics: MetricsConfig = Field(
        default_factory=MetricsConfig,
        description="Prometheus instrumentation settings",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        sources: list[PydanticBaseSettingsSource] = [init_settings]

        if CONFIGMAP_CONFIG_FILE is not None and CONFIGMAP_CONFIG_FILE.is_file():
            sources.append(
                YamlConfigSettingsSource(
                    settings_cls,
                    yaml_file=CONFIGMAP_CONFIG_FILE,
                )
            )

        sources.append(env_settings)
        sources.append(dotenv_settings)
        sources.append(YamlConfigSettingsSource(settings_cls))
        sources.append(file_secret_settings)

        return tuple(sources)


def get_app_config() -> AppConfig:
    """Load the application configuration from all sources."""
    return AppConfig()


# ---------------------------------------------------------------------------
# Per-connection dependencies: read the config injected at startup
# ---------------------------------------------------------------------------


def get_injected_config(conn: HTTPConnection) -> AppConfig:
    """Return the ``AppConfig`` that ``create_app`` stored on ``app.state``."""
    return conn.app.state.config


def get_server_config(conn: HTTPConnection) -> ServerConfig:
    """Return the server section of the injected config."""
    return get_injected_config(conn).server
