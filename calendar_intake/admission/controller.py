"""
AdmissionController: one allow/deny decision per request.

Composes the origin screen, the sliding-window rate checks and the
content screen. Checks run in a fixed order and stop at the first
denial. Every outcome, allowed or denied, is recorded in the activity
store before the decision is returned, so rejected attempts still count
toward abuse thresholds.
"""

from dataclasses import dataclass

import structlog

from calendar_intake.admission.config import AdmissionConfig
from calendar_intake.admission.schemas import AdmissionDecision
from calendar_intake.admission.screening import screen_content, screen_origin
from calendar_intake.admission.store import DAY, HOUR, MINUTE, ActivityStore
from calendar_intake.observability.metrics import MetricsCollector

logger = structlog.get_logger(__name__)


class AdmissionDenied(Exception):
    """Raised by request handlers when admission refuses a request."""

    def __init__(self, decision: AdmissionDecision):
        super().__init__(decision.reason or "Request denied")
        self.decision = decision


@dataclass
class AdmissionRequest:
    """Everything the controller needs to know about an incoming request."""

    client_id: str
    endpoint: str
    is_ai_request: bool = False
    content: object = None
    check_content: bool = False
    user_agent: str | None = None
    referer: str | None = None
    host: str | None = None


class AdmissionController:
    """
    Rate limiting, abuse detection and content screening for one process.

    Usage:
        controller = AdmissionController(store, config)
        decision = controller.admit(AdmissionRequest(client_id="10.0.0.1", ...))
        if not decision.allowed:
            raise AdmissionDenied(decision)

    Args:
        store: Activity store shared by all requests.
        config: Limits and thresholds.
        metrics: Optional metrics collector for decision counters.
    """

    def __init__(
        self,
        store: ActivityStore,
        config: AdmissionConfig | None = None,
        metrics: MetricsCollector | None = None,
    ):
        self._store = store
        self._config = config or AdmissionConfig()
        self._metrics = metrics

    @property
    def store(self) -> ActivityStore:
        return self._store

    @property
    def config(self) -> AdmissionConfig:
        return self._config

    def admit(self, request: AdmissionRequest) -> AdmissionDecision:
        """
        Decide whether a request may proceed and record the outcome.

        Order: origin screen, rate checks, content screen. The check and
        the record happen under the client's lock so concurrent requests
        from one client cannot both slip under a limit.
        """
        with self._store.locked(request.client_id):
            decision = self._evaluate(request)
            self._store.record(
                request.client_id,
                request.endpoint,
                success=decision.allowed,
                is_ai_request=request.is_ai_request,
            )

        if self._metrics is not None:
            self._metrics.record_admission(decision.allowed, decision.code)

        if not decision.allowed:
            logger.warning(
                "Request denied",
                client_id=request.client_id,
                endpoint=request.endpoint,
                code=decision.code,
                retry_after=decision.retry_after,
            )
        return decision

    def report_failure(self, client_id: str) -> None:
        """Mark the client's latest admitted request as failed downstream."""
        self._store.mark_last_failed(client_id)

    def check_rate_limit(self, client_id: str, is_ai_request: bool = False) -> AdmissionDecision:
        """Run the sliding-window checks without recording anything."""
        cfg = self._config
        count = self._store.count_since

        if count(client_id, cfg.burst_window_seconds) >= cfg.burst_threshold:
            return AdmissionDecision.deny(
                "abusive", "burst_limit", "Too many rapid requests detected", retry_after=60
            )
        if count(client_id, MINUTE) >= cfg.requests_per_minute:
            return AdmissionDecision.deny(
                "rate_limited",
                "minute_limit",
                "Rate limit exceeded: too many requests per minute",
                retry_after=60,
            )
        if count(client_id, HOUR) >= cfg.requests_per_hour:
            return AdmissionDecision.deny(
                "rate_limited",
                "hour_limit",
                "Rate limit exceeded: too many requests per hour",
                retry_after=3600,
            )
        if count(client_id, DAY) >= cfg.requests_per_day:
            return AdmissionDecision.deny(
                "rate_limited",
                "day_limit",
                "Rate limit exceeded: daily limit reached",
                retry_after=86400,
            )

        if is_ai_request:
            if count(client_id, HOUR, only_ai=True) >= cfg.ai_requests_per_hour:
                return AdmissionDecision.deny(
                    "rate_limited",
                    "ai_hour_limit",
                    "AI rate limit exceeded: too many AI requests per hour",
                    retry_after=3600,
                )
            if count(client_id, DAY, only_ai=True) >= cfg.ai_requests_per_day:
                return AdmissionDecision.deny(
                    "rate_limited",
                    "ai_day_limit",
                    "AI rate limit exceeded: daily AI limit reached",
                    retry_after=86400,
                )
            # Failed general requests gate AI admission
            if count(client_id, HOUR, only_failed=True) >= cfg.failure_threshold:
                return AdmissionDecision.deny(
                    "abusive",
                    "repeated_failures",
                    "Too many failed requests detected",
                    retry_after=3600,
                )

        return AdmissionDecision.allow()

    def _evaluate(self, request: AdmissionRequest) -> AdmissionDecision:
        if self._config.origin_screen_enabled:
            origin = screen_origin(
                request.user_agent, request.referer, request.host, self._config
            )
            if not origin.allowed:
                return origin

        rate = self.check_rate_limit(request.client_id, request.is_ai_request)
        if not rate.allowed:
            return rate

        if request.check_content:
            return screen_content(request.content, self._config)
        return AdmissionDecision.allow()
