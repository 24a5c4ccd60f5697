"""Pytest fixtures for calendar-intake tests."""

from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest
from prometheus_client import CollectorRegistry

from calendar_intake.admission import ActivityStore, AdmissionConfig, AdmissionController
from calendar_intake.config.settings import Settings
from calendar_intake.extraction import (
    AIExtractionClient,
    ExtractionConfig,
    ExtractionService,
)
from calendar_intake.observability.metrics import MetricsCollector

REFERENCE_DAY = date(2024, 3, 1)


class FakeClock:
    """Manually advanced clock for the activity store."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def metrics() -> MetricsCollector:
    """Metrics on a private registry so tests never collide."""
    return MetricsCollector(registry=CollectorRegistry())


@pytest.fixture
def admission_config() -> AdmissionConfig:
    return AdmissionConfig(_env_file=None)


@pytest.fixture
def store(clock) -> ActivityStore:
    return ActivityStore(clock=clock)


@pytest.fixture
def controller(store, admission_config, metrics) -> AdmissionController:
    return AdmissionController(store, admission_config, metrics=metrics)


@pytest.fixture
def extraction_config() -> ExtractionConfig:
    """Extraction settings with no AI provider configured."""
    return ExtractionConfig(_env_file=None, api_key=None)


@pytest.fixture
def ai_config() -> ExtractionConfig:
    """Extraction settings pointing at a fake provider."""
    return ExtractionConfig(
        _env_file=None,
        api_key="test-key",
        api_base_url="https://llm.test/v1",
        model="test-model",
    )


@pytest.fixture
def test_settings() -> Settings:
    """Settings configured for testing."""
    return Settings(
        _env_file=None,
        environment="development",
        log_level="DEBUG",
        admin_token="test-admin-token",
    )


def make_ai_client(**extract_kwargs) -> MagicMock:
    """Mock AIExtractionClient whose extract() behaves per extract_kwargs."""
    client = MagicMock(spec=AIExtractionClient)
    client.is_configured = True
    client.extract = AsyncMock(**extract_kwargs)
    client.close = AsyncMock()
    return client


@pytest.fixture
def pattern_service(extraction_config, metrics) -> ExtractionService:
    """Extraction service that only uses pattern extraction."""
    return ExtractionService(
        extraction_config,
        metrics=metrics,
        today=lambda: REFERENCE_DAY,
    )
