"""Event extraction: AI client, pattern fallback and the orchestrator."""

from calendar_intake.extraction.backoff import RetryPolicy, RetryState
from calendar_intake.extraction.config import ExtractionConfig
from calendar_intake.extraction.llm_client import (
    AIExtractionClient,
    AIExtractionError,
    AIResponseError,
    AITransientError,
    find_json_object,
    is_transient_error,
    parse_event_response,
)
from calendar_intake.extraction.normalizer import DateTimeNormalizer
from calendar_intake.extraction.patterns import FieldRule, PatternExtractor
from calendar_intake.extraction.schemas import (
    AIEventPayload,
    ExtractedEvent,
    ExtractionResult,
    is_valid_timezone,
)
from calendar_intake.extraction.service import (
    FATAL_EXTRACTION_MESSAGE,
    ExtractionFatalError,
    ExtractionService,
)
from calendar_intake.extraction.timezones import TimezoneResolver

__all__ = [
    "AIEventPayload",
    "AIExtractionClient",
    "AIExtractionError",
    "AIResponseError",
    "AITransientError",
    "DateTimeNormalizer",
    "ExtractedEvent",
    "ExtractionConfig",
    "ExtractionFatalError",
    "ExtractionResult",
    "ExtractionService",
    "FATAL_EXTRACTION_MESSAGE",
    "FieldRule",
    "PatternExtractor",
    "RetryPolicy",
    "RetryState",
    "TimezoneResolver",
    "find_json_object",
    "is_transient_error",
    "is_valid_timezone",
    "parse_event_response",
]
