"""
Configuration Management

Pydantic-settings based configuration for the email relay.
All settings can be overridden via environment variables.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from relay.exceptions import ConfigError

ENV_PREFIX = "RELAY_"

# Discord rejects embeds whose description exceeds this many characters
EMBED_DESCRIPTION_MAX_LENGTH = 4096

# Room for the diagnostic code fence plus a few characters of text
EMBED_DESCRIPTION_MIN_LENGTH = 16


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment variables are prefixed with RELAY_ and are case-insensitive.
    Example: RELAY_DISCORD_WEBHOOK_URL=https://discord.com/api/webhooks/...
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=[".env.local", ".env"],  # Try .env.local first
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Discord Configuration
    discord_webhook_url: str | None = Field(
        default=None,
        description="Destination webhook URL for forwarded emails",
    )
    embed_description_max_length: int = Field(
        default=EMBED_DESCRIPTION_MAX_LENGTH,
        ge=EMBED_DESCRIPTION_MIN_LENGTH,
        le=EMBED_DESCRIPTION_MAX_LENGTH,
        description="Maximum characters of body text per embed",
    )
    footer_text: str = Field(
        default="Email Worker",
        description="Footer shown on the primary embed",
    )
    http_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout applied to each webhook request",
    )

    # S3 Configuration
    s3_endpoint_url: str | None = Field(
        default=None,
        description="S3 endpoint URL (for local development)",
    )

    # AWS Configuration
    aws_region: str = Field(
        default="us-west-2",
        description="AWS region",
    )

    # Application Configuration
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Root logging level for the Lambda",
    )

    @property
    def s3_config(self) -> dict:
        """S3 client configuration."""
        config = {"region_name": self.aws_region}
        if self.s3_endpoint_url and self.s3_endpoint_url != "mock":
            config["endpoint_url"] = self.s3_endpoint_url
        return config

    def require_webhook_url(self) -> str:
        """
        Return the configured webhook URL.

        Raises:
            ConfigError: If the URL is unset or blank
        """
        url = (self.discord_webhook_url or "").strip()
        if not url:
            raise ConfigError(
                setting="discord_webhook_url",
                env_var=f"{ENV_PREFIX}DISCORD_WEBHOOK_URL",
            )
        return url


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses lru_cache to ensure settings are loaded only once.
    Call Settings.model_validate({}) in tests to override.
    """
    return Settings()
