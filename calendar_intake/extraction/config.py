"""Configuration for the event extraction pipeline.

Provides Pydantic settings for the AI provider connection, retry policy,
the per-request AI budget and the defaults applied to missing fields.
All settings can be overridden via EXTRACTION_* environment variables.
"""

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class ExtractionConfig(BaseSettings):
    """Configuration for AI and pattern-based event extraction.

    Settings can be overridden via environment variables prefixed with EXTRACTION_.

    Example:
        EXTRACTION_API_KEY=csk-...
        EXTRACTION_MODEL=llama3.1-8b
        EXTRACTION_MAX_RETRIES=2
    """

    model_config = SettingsConfigDict(
        env_prefix="EXTRACTION_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # AI provider (any OpenAI-compatible chat completions endpoint)
    api_key: SecretStr | None = Field(
        default=None,
        description="API key for the chat completions provider. Unset disables the AI path.",
    )
    api_base_url: str = Field(
        default="https://api.cerebras.ai/v1",
        description="Base URL of the OpenAI-compatible provider",
    )
    model: str = Field(
        default="llama3.1-8b",
        description="Model used for structured event extraction",
    )
    temperature: float = Field(default=0.1, ge=0.0, le=2.0)
    max_tokens: int = Field(default=500, ge=50, le=4096)

    # Retry policy
    max_retries: int = Field(
        default=2,
        ge=0,
        le=5,
        description="Retries after the first attempt for transient provider errors",
    )
    retry_base_delay: float = Field(
        default=1.0,
        ge=0.0,
        le=30.0,
        description="Delay before the first retry; doubles on each further retry",
    )

    # Timeouts
    request_timeout: float = Field(
        default=15.0,
        ge=1.0,
        le=120.0,
        description="Timeout in seconds for a single provider call",
    )
    ai_budget_seconds: float = Field(
        default=25.0,
        ge=1.0,
        le=120.0,
        description="Wall clock budget for the whole AI path, retries included",
    )

    # Defaults for missing fields
    default_timezone: str = "America/New_York"
    default_title: str = "Untitled Event"
    default_start_time: str = "09:00"
    default_end_time: str = "10:00"

    @property
    def ai_configured(self) -> bool:
        """Check if the AI provider has credentials."""
        return self.api_key is not None and bool(self.api_key.get_secret_value())
