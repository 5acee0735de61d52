"""Runtime configuration for the MODX bridge."""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


def normalize_path(path: str) -> str:
    """Ensure a connector path starts and ends with a slash."""
    if not path.startswith("/"):
        path = "/" + path
    if not path.endswith("/"):
        path = path + "/"
    return path


class Settings(BaseSettings):
    """Application settings with environment variable support.

    Every field can be set from a ``MODX_``-prefixed environment variable or
    a ``.env`` file in the working directory.
    """

    base_url: str = "http://localhost"
    connector_path: str = "/connectors/"
    admin_path: str = "/manager/"

    # Custom connector shipped by the modx-mcp component, used for discovery
    processors_connector_path: str = "/assets/components/modx-mcp/connector.php"
    discovery_namespace: str = "modx-mcp"

    # Optional auto-login credentials
    username: Optional[str] = None
    password: Optional[str] = Field(default=None, repr=False)

    timeout: float = 30.0
    user_agent: str = "MODX-Proxy-MCP/2.0"
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="MODX_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("connector_path", "admin_path")
    @classmethod
    def normalize_paths(cls, value: str) -> str:
        return normalize_path(value)

    @property
    def has_credentials(self) -> bool:
        """Whether both auto-login credentials are configured."""
        return bool(self.username and self.password)


def load_settings(**overrides: object) -> Settings:
    """Build settings from the environment, applying non-empty overrides."""
    values = {key: value for key, value in overrides.items() if value is not None}
    settings = Settings(**values)
    logger.debug(
        f"Loaded settings: base_url='{settings.base_url}', "
        f"connector_path='{settings.connector_path}', "
        f"admin_path='{settings.admin_path}', "
        f"credentials={'configured' if settings.has_credentials else 'missing'}"
    )
    return settings
