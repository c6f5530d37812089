"""Configuration management using Pydantic BaseSettings.

Loads configuration from environment variables (prefix ``SCHOLAR_``) with
defaults that are polite towards Google Scholar. Override via environment
variables or a .env file.

Usage:
    from scholar_common.config import get_settings

    settings = get_settings()
    print(settings.request_delay_seconds)
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment.

    All settings have defaults. Override via:
    - Environment variables (e.g., SCHOLAR_REQUEST_DELAY_SECONDS=5)
    - .env file in working directory

    Attributes:
        base_url: Scholar site root used for listing pages and link resolution
        user_agent: Fixed client identity header sent with every request
        request_delay_seconds: Minimum gap between two outbound requests
        max_retries: Retry ceiling for rate-limited (HTTP 429) responses
        backoff_base_seconds: First backoff wait; doubles on every retry
        timeout_seconds: Per-request timeout
        profile_ttl_seconds: Age after which a cached profile is re-crawled
        article_ttl_seconds: Age after which a cached article is re-fetched
        profile_cache_path: Default profile snapshot file
        article_cache_path: Default article snapshot file
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: Log format (json or console)
        otel_console_export: Print finished spans to stdout
    """

    model_config = SettingsConfigDict(
        env_prefix="SCHOLAR_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Source
    base_url: str = Field(
        default="https://scholar.google.com",
        description="Scholar site root",
    )
    user_agent: str = Field(
        default="Mozilla/5.0 (X11; Linux x86_64; rv:60.0) Gecko/20100101 Firefox/81.0",
        description="User-Agent header sent with every request",
    )

    # Throttling
    request_delay_seconds: float = Field(
        default=2.0,
        ge=0.0,
        description="Minimum delay between requests",
    )
    max_retries: int = Field(
        default=3,
        ge=0,
        description="Retries after HTTP 429 before giving up",
    )
    backoff_base_seconds: float = Field(
        default=5.0,
        ge=0.0,
        description="Base backoff delay, doubled per retry",
    )
    timeout_seconds: float = Field(
        default=30.0,
        gt=0.0,
        description="HTTP request timeout",
    )

    # Cache
    profile_ttl_seconds: int = Field(
        default=24 * 60 * 60,
        ge=0,
        description="Profile cache TTL (1 day)",
    )
    article_ttl_seconds: int = Field(
        default=7 * 24 * 60 * 60,
        ge=0,
        description="Article cache TTL (1 week)",
    )
    profile_cache_path: str = Field(
        default="profiles.json",
        description="Profile cache snapshot file",
    )
    article_cache_path: str = Field(
        default="articles.json",
        description="Article cache snapshot file",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_format: str = Field(
        default="console",
        description="Log format: json or console",
    )

    # Telemetry
    otel_console_export: bool = Field(
        default=False,
        description="Export spans to the console",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return upper

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format."""
        valid_formats = {"json", "console"}
        lower = v.lower()
        if lower not in valid_formats:
            raise ValueError(f"log_format must be one of {valid_formats}")
        return lower

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize base URL so paths can be appended."""
        return v.rstrip("/")


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance.

    Settings are loaded once and cached for the lifetime of the process.
    Call get_settings.cache_clear() to reload.
    """
    return Settings()
