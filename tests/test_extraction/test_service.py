"""Tests for ExtractionService."""

import asyncio

import httpx
import pytest
import respx

from calendar_intake.extraction import (
    FATAL_EXTRACTION_MESSAGE,
    AIExtractionClient,
    AIResponseError,
    AITransientError,
    ExtractedEvent,
    ExtractionConfig,
    ExtractionFatalError,
    ExtractionService,
)
from tests.conftest import REFERENCE_DAY, make_ai_client

CHAT_URL = "https://llm.test/v1/chat/completions"
ONE_LINER = "Team Sync - 2024-03-15, 14:00 to 15:00 EST at 123 Main St"


def _service(config, metrics, ai_client) -> ExtractionService:
    return ExtractionService(
        config, ai_client=ai_client, metrics=metrics, today=lambda: REFERENCE_DAY
    )


def _sample(metrics, name: str, labels: dict | None = None) -> float:
    return metrics.registry.get_sample_value(name, labels or {}) or 0.0


class TestAIPath:
    """AI extraction succeeds."""

    async def test_ai_result_defaulted(self, extraction_config, metrics):
        ai = make_ai_client(
            return_value=ExtractedEvent(title="Board Review", date="2024-04-02")
        )
        service = _service(extraction_config, metrics, ai)

        result = await service.extract("Board review on April 2nd")

        assert result.source == "ai"
        assert result.event.title == "Board Review"
        assert result.event.start_time == "09:00"
        assert result.event.end_time == "10:00"
        assert result.event.timezone == "America/New_York"
        ai.extract.assert_awaited_once_with("Board review on April 2nd", REFERENCE_DAY)
        assert _sample(
            metrics, "calendar_intake_extractions_total", {"source": "ai"}
        ) == 1

    async def test_populated_fields_untouched(self, extraction_config, metrics):
        ai = make_ai_client(
            return_value=ExtractedEvent(
                title="Late Show", date="2024-04-02", start_time="23:30", timezone="Asia/Tokyo"
            )
        )
        service = _service(extraction_config, metrics, ai)

        event = (await service.extract("Late show")).event

        assert event.start_time == "23:30"
        assert event.end_time == "10:00"
        assert event.timezone == "Asia/Tokyo"


class TestFallback:
    """AI failures fall back to pattern extraction."""

    @pytest.mark.parametrize(
        "error,reason",
        [
            (AITransientError("provider down", attempts=3), "AITransientError"),
            (AIResponseError("not json"), "AIResponseError"),
        ],
    )
    async def test_ai_errors_fall_back(self, extraction_config, metrics, error, reason):
        service = _service(extraction_config, metrics, make_ai_client(side_effect=error))

        result = await service.extract(ONE_LINER)

        assert result.source == "pattern"
        assert result.event.date == "2024-03-15"
        assert result.event.start_time == "14:00"
        assert result.event.title == "Untitled Event"
        assert _sample(
            metrics, "calendar_intake_ai_fallbacks_total", {"reason": reason}
        ) == 1

    async def test_empty_ai_result_falls_back(self, extraction_config, metrics):
        ai = make_ai_client(return_value=ExtractedEvent(location="Somewhere"))
        service = _service(extraction_config, metrics, ai)

        result = await service.extract(ONE_LINER)

        assert result.source == "pattern"
        assert _sample(
            metrics, "calendar_intake_ai_fallbacks_total", {"reason": "empty_result"}
        ) == 1

    async def test_budget_exceeded_falls_back(self, metrics):
        config = ExtractionConfig(_env_file=None, api_key=None, ai_budget_seconds=1.0)

        async def hang(*args):
            await asyncio.Event().wait()

        service = _service(config, metrics, make_ai_client(side_effect=hang))

        result = await service.extract(ONE_LINER)

        assert result.source == "pattern"
        assert _sample(
            metrics, "calendar_intake_ai_fallbacks_total", {"reason": "budget_exceeded"}
        ) == 1

    @respx.mock
    async def test_provider_outage_falls_back_after_retries(self, ai_config, metrics):
        route = respx.post(CHAT_URL).mock(
            return_value=httpx.Response(503, json={"error": {"message": "overloaded"}})
        )
        delays: list[float] = []

        async def record_sleep(delay: float) -> None:
            delays.append(delay)

        ai = AIExtractionClient(ai_config, metrics=metrics, sleep=record_sleep)
        service = _service(ai_config, metrics, ai)

        result = await service.extract(ONE_LINER)

        assert route.call_count == 3
        assert delays == [1.0, 2.0]
        assert result.source == "pattern"
        assert result.event.title == "Untitled Event"
        assert result.event.date == "2024-03-15"
        assert result.event.start_time == "14:00"
        assert result.event.end_time == "15:00"
        assert _sample(
            metrics, "calendar_intake_ai_fallbacks_total", {"reason": "AITransientError"}
        ) == 1

    async def test_unconfigured_ai_skipped(self, extraction_config, metrics):
        ai = make_ai_client()
        ai.is_configured = False
        service = _service(extraction_config, metrics, ai)

        result = await service.extract(ONE_LINER)

        assert result.source == "pattern"
        ai.extract.assert_not_awaited()

    async def test_use_ai_false(self, extraction_config, metrics):
        ai = make_ai_client()
        service = _service(extraction_config, metrics, ai)

        result = await service.extract(ONE_LINER, use_ai=False)

        assert result.source == "pattern"
        ai.extract.assert_not_awaited()


class TestFatal:
    """Neither path finds a title or a date."""

    async def test_fatal_error(self, pattern_service, metrics):
        with pytest.raises(ExtractionFatalError) as exc_info:
            await pattern_service.extract("Meeting tomorrow at 2pm in the conference room")

        assert str(exc_info.value) == FATAL_EXTRACTION_MESSAGE
        assert _sample(metrics, "calendar_intake_extraction_failures_total") == 1

    async def test_pattern_service_success(self, pattern_service):
        result = await pattern_service.extract(ONE_LINER)

        assert result.source == "pattern"
        assert result.event.to_dict() == {
            "title": "Untitled Event",
            "date": "2024-03-15",
            "startTime": "14:00",
            "endTime": "15:00",
            "location": "123 Main St",
            "description": ONE_LINER,
            "timezone": "America/New_York",
        }

    async def test_close_closes_ai_client(self, extraction_config, metrics):
        ai = make_ai_client()
        await _service(extraction_config, metrics, ai).close()
        ai.close.assert_awaited_once()
