"""Extraction orchestrator.

Runs one extraction request through its states:

    START -> AI_ATTEMPT -> (SUCCESS | FALLBACK) -> DEFAULTED -> DONE

AI failures of any kind, including running past the wall clock budget,
are logged and answered with the pattern extractor. Only when neither
path finds a title or a date does the request fail.
"""

import asyncio
import time
from datetime import date
from typing import Callable

import structlog

from calendar_intake.extraction.config import ExtractionConfig
from calendar_intake.extraction.llm_client import AIExtractionClient, AIExtractionError
from calendar_intake.extraction.patterns import PatternExtractor
from calendar_intake.extraction.schemas import (
    ExtractedEvent,
    ExtractionResult,
    ExtractionSource,
)
from calendar_intake.extraction.timezones import TimezoneResolver
from calendar_intake.observability.metrics import MetricsCollector

logger = structlog.get_logger(__name__)

FATAL_EXTRACTION_MESSAGE = "Could not find an event title or date in the provided content"


class ExtractionFatalError(Exception):
    """Neither extraction path produced a title or a date."""

    def __init__(self, message: str = FATAL_EXTRACTION_MESSAGE):
        super().__init__(message)


class ExtractionService:
    """
    Turns free-form text into a fully defaulted ExtractedEvent.

    Usage:
        service = ExtractionService(ExtractionConfig())
        result = await service.extract("Team Sync 2024-03-15 14:00 EST")
        result.event.to_dict()

    Args:
        config: Extraction settings, including the AI budget and defaults.
        ai_client: Model client. Built from config when omitted.
        pattern_extractor: Fallback extractor. Built from config when omitted.
        metrics: Optional metrics collector.
        today: Callable supplying the date used for defaults and relative dates.
    """

    def __init__(
        self,
        config: ExtractionConfig | None = None,
        ai_client: AIExtractionClient | None = None,
        pattern_extractor: PatternExtractor | None = None,
        metrics: MetricsCollector | None = None,
        today: Callable[[], date] = date.today,
    ):
        self._config = config or ExtractionConfig()
        self._metrics = metrics
        self._ai = ai_client or AIExtractionClient(self._config, metrics=metrics)
        self._patterns = pattern_extractor or PatternExtractor(
            resolver=TimezoneResolver(self._config.default_timezone)
        )
        self._today = today

    @property
    def ai_configured(self) -> bool:
        return self._ai.is_configured

    @property
    def resolver(self) -> TimezoneResolver:
        return self._patterns.resolver

    async def extract(self, text: str, use_ai: bool = True) -> ExtractionResult:
        """
        Extract and default an event.

        Args:
            text: Sanitized event text.
            use_ai: Set False to go straight to pattern extraction.

        Returns:
            ExtractionResult with the defaulted event and its source.

        Raises:
            ExtractionFatalError: No title and no date from either path.
        """
        started = time.perf_counter()
        today = self._today()

        event: ExtractedEvent | None = None
        source: ExtractionSource = "pattern"

        if use_ai and self._ai.is_configured:
            event = await self._attempt_ai(text, today)
            if event is not None:
                source = "ai"

        if event is None:
            event = self._patterns.extract(text, reference_date=today)

        if not event.has_meaningful_content():
            if self._metrics is not None:
                self._metrics.extraction_failures.inc()
            logger.info("Extraction found no title or date", source=source)
            raise ExtractionFatalError()

        defaulted = event.with_defaults(
            today=today,
            default_timezone=self._patterns.resolver.default_timezone,
            default_title=self._config.default_title,
            default_start_time=self._config.default_start_time,
            default_end_time=self._config.default_end_time,
        )

        latency = time.perf_counter() - started
        if self._metrics is not None:
            self._metrics.record_extraction(source, latency)
        logger.info(
            "Event extracted",
            source=source,
            has_title=bool(event.title),
            has_date=bool(event.date),
            latency_ms=round(latency * 1000, 1),
        )
        return ExtractionResult(event=defaulted, source=source)

    async def _attempt_ai(self, text: str, today: date) -> ExtractedEvent | None:
        """Run the AI path under the budget; None means fall back."""
        reason: str
        try:
            async with asyncio.timeout(self._config.ai_budget_seconds):
                event = await self._ai.extract(text, today)
        except TimeoutError:
            reason = "budget_exceeded"
            logger.warning(
                "AI extraction exceeded budget, falling back",
                budget_seconds=self._config.ai_budget_seconds,
            )
        except AIExtractionError as e:
            reason = type(e).__name__
            logger.warning("AI extraction failed, falling back", error=str(e))
        else:
            if event.has_meaningful_content():
                return event
            reason = "empty_result"
            logger.info("AI extraction found no title or date, falling back")

        if self._metrics is not None:
            self._metrics.ai_fallbacks.labels(reason=reason).inc()
        return None

    async def close(self) -> None:
        await self._ai.close()
