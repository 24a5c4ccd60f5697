"""Tests for environment-driven configuration."""

from calendar_intake.admission import AdmissionConfig
from calendar_intake.config.settings import Settings, get_settings
from calendar_intake.extraction import ExtractionConfig


class TestSettings:

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("ADMIN_TOKEN", raising=False)
        settings = Settings(_env_file=None)

        assert settings.environment == "development"
        assert not settings.is_production
        assert not settings.admin_configured
        assert settings.request_timeout_seconds == 30.0

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.setenv("ADMIN_TOKEN", "s3cret")

        settings = Settings(_env_file=None)

        assert settings.is_production
        assert settings.admin_configured
        assert settings.admin_token.get_secret_value() == "s3cret"

    def test_blank_admin_token_not_configured(self):
        assert not Settings(_env_file=None, admin_token="").admin_configured

    def test_get_settings_cached(self):
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()


class TestAdmissionConfig:

    def test_prefixed_env(self, monkeypatch):
        monkeypatch.setenv("ADMISSION_REQUESTS_PER_MINUTE", "3")
        monkeypatch.setenv("ADMISSION_EXTRA_ALLOWED_REFERERS", "example.org, , intranet.local")

        config = AdmissionConfig(_env_file=None)

        assert config.requests_per_minute == 3
        assert config.allowed_referers[-2:] == ["example.org", "intranet.local"]
        assert config.limits_snapshot()["perMinute"] == 3


class TestExtractionConfig:

    def test_ai_configured(self, monkeypatch):
        monkeypatch.delenv("EXTRACTION_API_KEY", raising=False)

        assert not ExtractionConfig(_env_file=None).ai_configured
        assert not ExtractionConfig(_env_file=None, api_key="").ai_configured
        assert ExtractionConfig(_env_file=None, api_key="k").ai_configured

    def test_prefixed_env(self, monkeypatch):
        monkeypatch.setenv("EXTRACTION_MAX_RETRIES", "4")
        monkeypatch.setenv("EXTRACTION_DEFAULT_TIMEZONE", "Europe/London")

        config = ExtractionConfig(_env_file=None)

        assert config.max_retries == 4
        assert config.default_timezone == "Europe/London"
