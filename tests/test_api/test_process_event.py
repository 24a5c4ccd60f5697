"""Tests for POST /api/process-event."""

from fastapi.testclient import TestClient

from calendar_intake.admission import AdmissionConfig
from calendar_intake.admission.store import HOUR
from calendar_intake.api.app import create_app
from calendar_intake.extraction import (
    FATAL_EXTRACTION_MESSAGE,
    AITransientError,
    ExtractedEvent,
    ExtractionService,
)

from tests.conftest import REFERENCE_DAY, make_ai_client
from tests.test_api.conftest import CLIENT_ID, NO_EVENT, ONE_LINER


class TestProcessEvent:
    """Extraction through the public endpoint."""

    def test_pattern_extraction(self, client):
        response = client.post("/api/process-event", json={"content": ONE_LINER})

        assert response.status_code == 200
        assert response.headers["X-Extraction-Source"] == "pattern"
        assert response.json() == {
            "title": "Untitled Event",
            "date": "2024-03-15",
            "startTime": "14:00",
            "endTime": "15:00",
            "location": "123 Main St",
            "description": ONE_LINER,
            "timezone": "America/New_York",
        }

    def test_no_event_found(self, client, store):
        response = client.post("/api/process-event", json={"content": NO_EVENT})

        assert response.status_code == 400
        assert response.json() == {"error": FATAL_EXTRACTION_MESSAGE, "code": "no_event_found"}
        assert store.count_since(CLIENT_ID, HOUR, only_failed=True) == 1

    def test_ai_extraction(self, test_settings, store, extraction_config, metrics):
        ai = make_ai_client(
            return_value=ExtractedEvent(title="Board Review", date="2024-04-02")
        )
        service = ExtractionService(
            extraction_config, ai_client=ai, metrics=metrics, today=lambda: REFERENCE_DAY
        )
        app = create_app(
            settings=test_settings, store=store, extraction_service=service, metrics=metrics
        )

        with TestClient(app) as client:
            response = client.post("/api/process-event", json={"content": "Board review April 2"})

        assert response.status_code == 200
        assert response.headers["X-Extraction-Source"] == "ai"
        assert response.json()["title"] == "Board Review"

    def test_ai_outage_falls_back(self, test_settings, store, extraction_config, metrics):
        ai = make_ai_client(side_effect=AITransientError("down", attempts=3))
        service = ExtractionService(
            extraction_config, ai_client=ai, metrics=metrics, today=lambda: REFERENCE_DAY
        )
        app = create_app(
            settings=test_settings, store=store, extraction_service=service, metrics=metrics
        )

        with TestClient(app) as client:
            response = client.post("/api/process-event", json={"content": ONE_LINER})

        assert response.status_code == 200
        assert response.headers["X-Extraction-Source"] == "pattern"
        assert response.json()["date"] == "2024-03-15"


class TestContentScreening:
    """Content is rejected before extraction."""

    def test_missing_content(self, client):
        response = client.post("/api/process-event", json={})

        assert response.status_code == 400
        assert response.json()["code"] == "empty_content"

    def test_non_string_content(self, client):
        response = client.post("/api/process-event", json={"content": 42})

        assert response.status_code == 400
        assert response.json()["code"] == "empty_content"

    def test_content_too_long(self, client):
        response = client.post("/api/process-event", json={"content": "x" * 50_001})

        assert response.status_code == 400
        assert response.json() == {
            "error": "Content too long. Maximum 50000 characters allowed",
            "code": "content_too_long",
        }

    def test_injection_marker(self, client):
        response = client.post(
            "/api/process-event",
            json={"content": "Party on 2024-03-15 <script>alert(1)</script>"},
        )

        assert response.status_code == 400
        assert response.json()["code"] == "suspicious_content"

    def test_malformed_json(self, client):
        response = client.post(
            "/api/process-event",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid request body", "code": "validation_error"}


class TestRateLimiting:
    """Per-client limits surface as 429 with Retry-After."""

    def test_burst_limit(self, client):
        for _ in range(5):
            assert client.post("/api/process-event", json={"content": ONE_LINER}).status_code == 200

        response = client.post("/api/process-event", json={"content": ONE_LINER})

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "60"
        assert response.json() == {
            "error": "Too many rapid requests detected",
            "code": "burst_limit",
            "retryAfter": 60,
        }

    def test_clients_limited_separately(self, client):
        for _ in range(5):
            client.post(
                "/api/process-event",
                json={"content": ONE_LINER},
                headers={"X-Forwarded-For": "203.0.113.7, 10.0.0.1"},
            )

        blocked = client.post(
            "/api/process-event",
            json={"content": ONE_LINER},
            headers={"X-Forwarded-For": "203.0.113.7"},
        )
        other = client.post(
            "/api/process-event",
            json={"content": ONE_LINER},
            headers={"X-Forwarded-For": "198.51.100.4"},
        )

        assert blocked.status_code == 429
        assert other.status_code == 200

    def test_ai_hour_limit(self, test_settings, store, clock, pattern_service, metrics):
        config = AdmissionConfig(_env_file=None, ai_requests_per_hour=2)
        app = create_app(
            settings=test_settings,
            admission_config=config,
            store=store,
            extraction_service=pattern_service,
            metrics=metrics,
        )

        with TestClient(app) as client:
            for _ in range(2):
                assert client.post(
                    "/api/process-event", json={"content": ONE_LINER}
                ).status_code == 200
                clock.advance(61)

            response = client.post("/api/process-event", json={"content": ONE_LINER})
            timezone = client.post(
                "/api/resolve-timezone", json={"text": "Standup 9:30 AM PST"}
            )

        assert response.status_code == 429
        assert response.json()["code"] == "ai_hour_limit"
        assert response.headers["Retry-After"] == "3600"
        assert timezone.status_code == 200


class TestOriginScreening:
    """Automated clients and foreign referers are refused."""

    def test_curl_rejected(self, client):
        response = client.post(
            "/api/process-event",
            json={"content": ONE_LINER},
            headers={"User-Agent": "curl/8.4.0"},
        )

        assert response.status_code == 403
        assert response.json()["code"] == "automated_client"

    def test_foreign_referer_rejected(self, client):
        response = client.post(
            "/api/process-event",
            json={"content": ONE_LINER},
            headers={"Referer": "https://evil.example/page"},
        )

        assert response.status_code == 403
        assert response.json()["code"] == "suspicious_referer"

    def test_own_host_referer_allowed(self, client):
        response = client.post(
            "/api/process-event",
            json={"content": ONE_LINER},
            headers={"Referer": "http://testserver/app"},
        )

        assert response.status_code == 200
