"""Configuration for request admission.

Uses Pydantic settings for environment-based configuration,
following the same pattern as other service configs in the project.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AdmissionConfig(BaseSettings):
    """
    Per-client rate limits, abuse thresholds and content limits.

    All settings can be overridden via environment variables with ADMISSION_ prefix.
    Example: ADMISSION_REQUESTS_PER_HOUR=100
    """

    model_config = SettingsConfigDict(
        env_prefix="ADMISSION_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Per-client general limits
    requests_per_minute: int = Field(default=10, ge=1)
    requests_per_hour: int = Field(default=50, ge=1)
    requests_per_day: int = Field(default=200, ge=1)

    # Per-client AI limits
    ai_requests_per_hour: int = Field(default=20, ge=1)
    ai_requests_per_day: int = Field(default=100, ge=1)

    # Abuse detection
    burst_threshold: int = Field(
        default=5,
        ge=1,
        description="Requests within burst_window_seconds that trigger a denial",
    )
    burst_window_seconds: float = Field(default=10.0, gt=0.0)
    failure_threshold: int = Field(
        default=10,
        ge=1,
        description="Failed requests per hour that block further AI requests",
    )

    # Content limits
    max_content_length: int = Field(default=50_000, ge=1)
    max_lines: int = Field(default=1000, ge=1)
    max_line_length: int = Field(default=1000, ge=1)

    # Origin screening
    origin_screen_enabled: bool = True
    extra_allowed_referers: str = Field(
        default="",
        description="Comma-separated referer substrings allowed in addition to the built-in list",
    )

    @property
    def allowed_referers(self) -> list[str]:
        """Referer substrings accepted from hosts other than our own."""
        extra = [r.strip() for r in self.extra_allowed_referers.split(",") if r.strip()]
        return [
            "localhost",
            "127.0.0.1",
            "vercel.app",
            "netlify.app",
            "github.dev",
            "stackblitz.com",
            "codesandbox.io",
            *extra,
        ]

    def limits_snapshot(self) -> dict[str, int]:
        """Configured limits as reported by the operator stats endpoint."""
        return {
            "perMinute": self.requests_per_minute,
            "perHour": self.requests_per_hour,
            "perDay": self.requests_per_day,
            "aiPerHour": self.ai_requests_per_hour,
            "aiPerDay": self.ai_requests_per_day,
        }
