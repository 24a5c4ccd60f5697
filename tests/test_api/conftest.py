"""Fixtures for API tests."""

import pytest
from fastapi.testclient import TestClient

from calendar_intake.api.app import create_app

ONE_LINER = "Team Sync - 2024-03-15, 14:00 to 15:00 EST at 123 Main St"
NO_EVENT = "Meeting tomorrow at 2pm in the conference room"

# TestClient reports this as the peer address
CLIENT_ID = "testclient"


@pytest.fixture
def app(test_settings, admission_config, store, pattern_service, metrics):
    """App wired to a fake clock, a private registry and pattern-only extraction."""
    return create_app(
        settings=test_settings,
        admission_config=admission_config,
        store=store,
        extraction_service=pattern_service,
        metrics=metrics,
    )


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"Authorization": "Bearer test-admin-token"}
