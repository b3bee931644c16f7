from typing import Final

from pydantic import Field, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    DEFAULT_ADMIN_API_TIMEOUT_SECONDS,
    DEFAULT_ADMIN_API_VERSION,
    DEFAULT_METRICS_PORT,
    DEFAULT_PORT,
    DEFAULT_REFRESH_DEBOUNCE_SECONDS,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env files."""

    # Server configuration
    debug: bool = Field(default=True, description="Enable debug mode")
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535, description="Server port")

    # Database configuration
    database_url: str = Field(
        default="sqlite:///./restorelog.db", description="Database connection URL"
    )

    # Application configuration
    app_name: str = Field(default="Restore Log", description="Application name")
    version: str = Field(default="0.1.0", description="Application version")

    # Admin API configuration
    shop_domain: str = Field(
        default="example.myshopify.com",
        description="Shop domain the Admin API requests are sent to",
    )
    admin_access_token: str = Field(
        default="", description="Admin API access token for the shop"
    )
    admin_api_version: str = Field(
        default=DEFAULT_ADMIN_API_VERSION, description="Admin API version"
    )
    admin_api_timeout_seconds: float = Field(
        default=DEFAULT_ADMIN_API_TIMEOUT_SECONDS,
        gt=0,
        description="Timeout for a single Admin API request",
    )

    # Log view configuration
    refresh_debounce_seconds: float = Field(
        default=DEFAULT_REFRESH_DEBOUNCE_SECONDS,
        ge=0,
        description="Delay before the log list is reloaded after a restore",
    )

    @field_validator("shop_domain")
    @classmethod
    def validate_shop_domain(cls, v: str) -> str:
        """Strip scheme and trailing slashes from the shop domain."""
        v = v.strip()
        for scheme in ("https://", "http://"):
            if v.startswith(scheme):
                v = v[len(scheme) :]
        v = v.rstrip("/")
        if not v:
            raise ValueError("Shop domain cannot be empty")
        return v

    # Logging configuration
    log_to_file: bool = Field(
        default=False, description="Force logging to file even in debug mode"
    )

    # Telemetry configuration
    enable_telemetry: bool = Field(
        default=False, description="Enable OpenTelemetry tracing and metrics"
    )
    metrics_port: int = Field(
        default=DEFAULT_METRICS_PORT,
        ge=1,
        le=65535,
        description="Port of the Prometheus metrics server",
    )

    # Pydantic Settings configuration
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.debug

    @computed_field  # type: ignore[prop-decorator]
    @property
    def admin_graphql_url(self) -> str:
        """Get the Admin GraphQL endpoint for the configured shop."""
        return (
            f"https://{self.shop_domain}/admin/api/"
            f"{self.admin_api_version}/graphql.json"
        )


# Global settings instance
settings: Final = Settings()
