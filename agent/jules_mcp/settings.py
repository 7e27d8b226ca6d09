"""Process configuration, loaded once at startup and passed by reference."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from jules_mcp.errors import ConfigurationError

DEFAULT_API_BASE = "https://jules.googleapis.com/v1alpha"
API_KEY_HELP_URL = "https://jules.google.com/settings#api"

TransportName = Literal["stdio", "http", "durable"]


class Settings(BaseSettings):
    """Environment-backed settings for the server and the API gateway."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
        frozen=True,
    )

    jules_api_key: str | None = Field(default=None, alias="JULES_API_KEY")
    jules_api_base: str = Field(default=DEFAULT_API_BASE, alias="JULES_API_BASE")
    transport: TransportName = Field(default="stdio", alias="MCP_TRANSPORT")
    host: str = Field(default="127.0.0.1", alias="MCP_HOST")
    port: int = Field(default=3000, alias="MCP_PORT")
    request_timeout: float = Field(default=60.0, alias="JULES_HTTP_TIMEOUT")
    sse_keepalive_seconds: float = Field(default=15.0, alias="SSE_KEEPALIVE_SECONDS")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    @field_validator("jules_api_key")
    @classmethod
    def _strip_api_key(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None

    @field_validator("jules_api_base")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.upper()

    def require_api_key(self) -> str:
        """Return the API key or fail before any request is attempted.

        Raises:
            ConfigurationError: If JULES_API_KEY is not configured.
        """
        if not self.jules_api_key:
            raise ConfigurationError(
                "The JULES_API_KEY environment variable is required. "
                f"Get your API key from {API_KEY_HELP_URL}"
            )
        return self.jules_api_key


def load_settings(validate: bool = True, **overrides: Any) -> Settings:
    """Build the settings object, applying non-None overrides.

    Args:
        validate: Check the API key eagerly so startup fails fast.
        **overrides: Field values that take precedence over the environment.

    Returns:
        The frozen settings instance.

    Raises:
        ConfigurationError: If ``validate`` is set and the key is missing.
    """
    settings = Settings(**{key: value for key, value in overrides.items() if value is not None})
    if validate:
        settings.require_api_key()
    return settings
