"""Application settings using Pydantic Settings for environment-based configuration."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Central configuration for the calendar-intake service.

    All settings can be overridden via environment variables.
    Component-specific settings live in AdmissionConfig (ADMISSION_*)
    and ExtractionConfig (EXTRACTION_*).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    debug: bool = False

    # HTTP server
    api_host: str = "0.0.0.0"
    api_port: int = Field(default=8000, ge=1, le=65535)
    cors_origins: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins",
    )
    cors_allow_credentials: bool = False

    # Whole-request wall clock budget; 0 disables the timeout middleware
    request_timeout_seconds: float = Field(default=30.0, ge=0.0, le=300.0)

    # Operator endpoints (Bearer token)
    admin_token: SecretStr | None = Field(
        default=None,
        description="Shared secret for /api/admin endpoints. Unset disables them.",
    )

    # Background sweep of the activity store
    sweep_interval_seconds: float = Field(default=300.0, ge=1.0)

    # Upload limits for the document route
    max_upload_bytes: int = Field(default=25 * 1024 * 1024, ge=1024)

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def admin_configured(self) -> bool:
        """Check if operator endpoints have a shared secret."""
        return self.admin_token is not None and bool(self.admin_token.get_secret_value())


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are loaded only once.
    Clear cache with get_settings.cache_clear() if needed.
    """
    return Settings()
