"""AI extraction client for OpenAI-compatible chat completion endpoints.

Asks a hosted model to turn free-form text into the ExtractedEvent JSON
shape. The SDK's own retries are disabled; transient failures are retried
here with an explicit bounded loop and exponential backoff, and the sleep
between attempts only suspends the current request.

The SDK client is created on first use so that importing this module
never requires credentials.
"""

import asyncio
import json
import logging
from datetime import date
from typing import Any, Awaitable, Callable

import httpx
import openai
from pydantic import ValidationError

from calendar_intake.extraction.backoff import RetryPolicy
from calendar_intake.extraction.config import ExtractionConfig
from calendar_intake.extraction.prompts import SYSTEM_PROMPT, USER_PROMPT
from calendar_intake.extraction.schemas import AIEventPayload, ExtractedEvent
from calendar_intake.observability.metrics import MetricsCollector

logger = logging.getLogger(__name__)

_TRANSIENT_EXCEPTIONS: tuple[type[BaseException], ...] = (
    openai.APIConnectionError,  # includes APITimeoutError
    openai.RateLimitError,
    openai.InternalServerError,
    httpx.TimeoutException,
    httpx.ConnectError,
    TimeoutError,
)
_TRANSIENT_MESSAGE_MARKERS = ("fetch failed", "timeout", "network")


class AIExtractionError(Exception):
    """Base exception for AI extraction failures."""


class AITransientError(AIExtractionError):
    """Transient provider failures persisted through every retry."""

    def __init__(self, message: str, attempts: int):
        super().__init__(message)
        self.attempts = attempts


class AIResponseError(AIExtractionError):
    """The provider answered but the answer was unusable."""


def is_transient_error(exc: BaseException) -> bool:
    """
    Check if an exception should trigger a retry.

    Transient: connection failures and timeouts, provider rate limiting,
    provider 5xx responses, and anything whose message mentions a
    network failure or timeout. Unusable responses never are.
    """
    if isinstance(exc, AIResponseError):
        return False
    if isinstance(exc, _TRANSIENT_EXCEPTIONS):
        return True
    message = str(exc).lower()
    return any(marker in message for marker in _TRANSIENT_MESSAGE_MARKERS)


def find_json_object(text: str) -> str | None:
    """
    Return the first balanced {...} substring of text, or None.

    Braces inside JSON string literals are ignored, so values such as
    "Party {2024}" do not end the object early.
    """
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for i in range(start, len(text)):
            ch = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
            elif ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return text[start : i + 1]
        start = text.find("{", start + 1)
    return None


def parse_event_response(raw: str | None) -> ExtractedEvent:
    """
    Parse a model response into an ExtractedEvent.

    Tries the whole text as JSON first, then the first balanced object
    inside it (model output wrapped in prose or code fences).

    Raises:
        AIResponseError: Empty, unparsable or wrongly shaped response.
    """
    if not raw or not raw.strip():
        raise AIResponseError("Empty response from AI provider")

    try:
        data: Any = json.loads(raw)
    except json.JSONDecodeError:
        candidate = find_json_object(raw)
        if candidate is None:
            raise AIResponseError("No JSON object found in AI response") from None
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError as e:
            raise AIResponseError(f"Malformed JSON in AI response: {e}") from e

    if not isinstance(data, dict):
        raise AIResponseError(f"Expected a JSON object, got {type(data).__name__}")

    try:
        payload = AIEventPayload.model_validate(data)
    except ValidationError as e:
        raise AIResponseError(f"AI response failed validation: {e.error_count()} errors") from e
    return payload.to_event()


class AIExtractionClient:
    """
    Event extraction through a hosted language model.

    Usage:
        client = AIExtractionClient(ExtractionConfig())
        event = await client.extract("Lunch with Sam Friday at noon", today=date.today())
        await client.close()

    Args:
        config: Provider connection, retry and default settings.
        metrics: Optional metrics collector for attempt counters.
        sleep: Coroutine used to wait between attempts.
    """

    def __init__(
        self,
        config: ExtractionConfig | None = None,
        metrics: MetricsCollector | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._config = config or ExtractionConfig()
        self._metrics = metrics
        self._sleep = sleep
        self._retry_policy = RetryPolicy(
            max_retries=self._config.max_retries,
            base_delay=self._config.retry_base_delay,
        )
        self._client: openai.AsyncOpenAI | None = None

    @property
    def is_configured(self) -> bool:
        return self._config.ai_configured

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._retry_policy

    def _get_client(self) -> openai.AsyncOpenAI:
        """Lazy-initialize the async SDK client."""
        if self._client is None:
            api_key = self._config.api_key
            self._client = openai.AsyncOpenAI(
                api_key=api_key.get_secret_value() if api_key else None,
                base_url=self._config.api_base_url,
                timeout=self._config.request_timeout,
                max_retries=0,
            )
        return self._client

    async def extract(self, content: str, today: date) -> ExtractedEvent:
        """
        Extract an event, retrying transient provider failures.

        Args:
            content: Sanitized event text.
            today: Date the model resolves relative dates against.

        Returns:
            The parsed, undefaulted event.

        Raises:
            AIExtractionError: Not configured, or a non-transient failure.
            AIResponseError: The response could not be used.
            AITransientError: Transient failures outlasted every retry.
        """
        if not self.is_configured:
            raise AIExtractionError("AI provider API key is not configured")

        state = self._retry_policy.start()
        last_exception: BaseException | None = None

        while not state.exhausted:
            attempt = state.begin_attempt()
            try:
                raw = await self._complete(content, today)
                event = parse_event_response(raw)
            except AIResponseError:
                self._record_attempt("fatal")
                raise
            except Exception as e:
                if not is_transient_error(e):
                    self._record_attempt("fatal")
                    raise AIExtractionError(
                        f"AI provider request failed: {type(e).__name__}"
                    ) from e

                self._record_attempt("transient")
                last_exception = e
                delay = state.next_delay()
                if delay is None:
                    break
                logger.warning(
                    "Transient AI error %s, attempt %d/%d, backing off %.2fs",
                    type(e).__name__,
                    attempt,
                    self._retry_policy.max_attempts,
                    delay,
                )
                await self._sleep(delay)
                continue

            self._record_attempt("success")
            return event

        raise AITransientError(
            f"AI provider unavailable after {state.attempts} attempts",
            attempts=state.attempts,
        ) from last_exception

    async def _complete(self, content: str, today: date) -> str | None:
        """One chat completion call; returns the message text."""
        client = self._get_client()
        system_prompt = SYSTEM_PROMPT.format(
            today=today.isoformat(),
            default_timezone=self._config.default_timezone,
        )
        response = await client.chat.completions.create(
            model=self._config.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": USER_PROMPT.format(content=content)},
            ],
            temperature=self._config.temperature,
            max_tokens=self._config.max_tokens,
            response_format={"type": "json_object"},
        )
        if not response.choices:
            return None
        return response.choices[0].message.content

    def _record_attempt(self, result: str) -> None:
        if self._metrics is not None:
            self._metrics.ai_attempts.labels(result=result).inc()

    async def close(self) -> None:
        """Clean up the SDK client."""
        if self._client is not None:
            await self._client.close()
            self._client = None
