"""Tests for AdmissionController."""

import random

import pytest

from calendar_intake.admission import (
    ActivityStore,
    AdmissionConfig,
    AdmissionController,
    AdmissionRequest,
)
from calendar_intake.admission.store import HOUR, MINUTE

BROWSER_UA = "Mozilla/5.0 (X11; Linux x86_64) Gecko/20100101 Firefox/128.0"


def _request(
    client_id: str = "203.0.113.7",
    is_ai_request: bool = False,
    content: object = None,
    check_content: bool = False,
    user_agent: str | None = BROWSER_UA,
) -> AdmissionRequest:
    return AdmissionRequest(
        client_id=client_id,
        endpoint="/api/process-event",
        is_ai_request=is_ai_request,
        content=content,
        check_content=check_content,
        user_agent=user_agent,
        referer=None,
        host="calendar.example.com",
    )


def _max_in_window(timestamps: list[float], window: float) -> int:
    """Largest number of timestamps inside any trailing window."""
    best = 0
    lo = 0
    for hi, t in enumerate(timestamps):
        while t - timestamps[lo] >= window:
            lo += 1
        best = max(best, hi - lo + 1)
    return best


class TestBurst:
    """Tests for burst detection."""

    def test_sixth_request_in_ten_seconds_denied(self, controller, clock):
        for _ in range(5):
            assert controller.admit(_request()).allowed
            clock.advance(1.5)

        decision = controller.admit(_request())
        assert not decision.allowed
        assert decision.code == "burst_limit"
        assert decision.category == "abusive"
        assert decision.retry_after == 60
        assert decision.to_dict()["retryAfter"] == 60

    def test_burst_window_slides(self, controller, clock):
        for _ in range(5):
            controller.admit(_request())
        clock.advance(10)
        assert controller.admit(_request()).allowed


class TestRateLimits:
    """Tests for the per-minute, per-hour and per-day limits."""

    def test_minute_limit(self, controller, clock):
        for _ in range(10):
            assert controller.admit(_request()).allowed
            clock.advance(3)

        decision = controller.admit(_request())
        assert decision.code == "minute_limit"
        assert decision.retry_after == 60
        assert decision.category == "rate_limited"

    def test_hour_limit(self, controller, clock):
        for _ in range(50):
            assert controller.admit(_request()).allowed
            clock.advance(61)

        decision = controller.admit(_request())
        assert decision.code == "hour_limit"
        assert decision.retry_after == 3600

    def test_day_limit(self, controller, clock):
        # 48 per hour stays under the hourly limit; the 201st lands inside the day
        for _ in range(200):
            assert controller.admit(_request()).allowed
            clock.advance(HOUR / 48)
        clock.advance(HOUR)

        decision = controller.admit(_request())
        assert decision.code == "day_limit"
        assert decision.retry_after == 86400

    def test_ai_hour_limit_independent_of_general_limits(self, controller, clock):
        for _ in range(20):
            assert controller.admit(_request(is_ai_request=True)).allowed
            clock.advance(2 * MINUTE)

        decision = controller.admit(_request(is_ai_request=True))
        assert decision.code == "ai_hour_limit"
        assert decision.retry_after == 3600

        # A non-AI request from the same client still passes
        assert controller.admit(_request()).allowed

    def test_ai_day_limit(self, store, clock, metrics):
        config = AdmissionConfig(
            _env_file=None, ai_requests_per_hour=1000, requests_per_hour=1000, requests_per_day=1000
        )
        controller = AdmissionController(store, config, metrics=metrics)
        for _ in range(100):
            assert controller.admit(_request(is_ai_request=True)).allowed
            clock.advance(2 * MINUTE)

        decision = controller.admit(_request(is_ai_request=True))
        assert decision.code == "ai_day_limit"
        assert decision.retry_after == 86400

    @pytest.mark.parametrize("seed", [1, 7, 42])
    def test_allowed_counts_never_exceed_limits(self, seed):
        rng = random.Random(seed)
        clock_value = [0.0]
        store = ActivityStore(clock=lambda: clock_value[0])
        controller = AdmissionController(store, AdmissionConfig(_env_file=None))

        allowed: list[float] = []
        allowed_ai: list[float] = []
        for _ in range(3000):
            clock_value[0] += rng.choice([0.5, 2, 7, 15, 45, 120, 600])
            is_ai = rng.random() < 0.6
            if controller.admit(_request(is_ai_request=is_ai)).allowed:
                allowed.append(clock_value[0])
                if is_ai:
                    allowed_ai.append(clock_value[0])

        assert allowed
        assert _max_in_window(allowed, MINUTE) <= 10
        assert _max_in_window(allowed, HOUR) <= 50
        assert _max_in_window(allowed, 86400) <= 200
        assert _max_in_window(allowed_ai, HOUR) <= 20
        assert _max_in_window(allowed_ai, 86400) <= 100


class TestAbuseAndRecording:
    """Tests for outcome recording and the failure-abuse check."""

    def test_denied_requests_are_recorded_as_failures(self, controller, store, clock):
        for _ in range(6):
            controller.admit(_request())

        assert store.count_since("203.0.113.7", MINUTE) == 6
        assert store.count_since("203.0.113.7", MINUTE, only_failed=True) == 1

    def test_reported_failures_block_ai_requests(self, controller, clock):
        for _ in range(10):
            assert controller.admit(_request(is_ai_request=True)).allowed
            controller.report_failure("203.0.113.7")
            clock.advance(61)

        decision = controller.admit(_request(is_ai_request=True))
        assert decision.code == "repeated_failures"
        assert decision.category == "abusive"
        assert decision.retry_after == 3600

    def test_failures_do_not_block_general_requests(self, controller, clock):
        for _ in range(10):
            controller.admit(_request())
            controller.report_failure("203.0.113.7")
            clock.advance(61)

        assert controller.admit(_request()).allowed

    def test_metrics_count_decisions(self, controller, metrics, clock):
        for _ in range(6):
            controller.admit(_request())

        sample = metrics.registry.get_sample_value
        assert sample(
            "calendar_intake_admission_decisions_total", {"outcome": "allowed", "code": "ok"}
        ) == 5
        assert sample(
            "calendar_intake_admission_decisions_total",
            {"outcome": "denied", "code": "burst_limit"},
        ) == 1


class TestOriginAndContent:
    """Tests for screens composed into admit()."""

    def test_curl_rejected_regardless_of_rate_state(self, controller):
        decision = controller.admit(_request(user_agent="curl/7.68.0"))
        assert not decision.allowed
        assert decision.category == "suspicious"
        assert decision.code == "automated_client"

    def test_origin_screen_runs_before_rate_checks(self, controller, clock):
        for _ in range(5):
            controller.admit(_request())
        decision = controller.admit(_request(user_agent="curl/7.68.0"))
        assert decision.code == "automated_client"

    def test_origin_screen_can_be_disabled(self, store):
        config = AdmissionConfig(_env_file=None, origin_screen_enabled=False)
        controller = AdmissionController(store, config)
        assert controller.admit(_request(user_agent="curl/7.68.0")).allowed

    def test_content_checked_after_rate_limits(self, controller):
        decision = controller.admit(_request(content="", check_content=True))
        assert decision.code == "empty_content"
        assert decision.category == "invalid_content"

    def test_allowed_decision_carries_sanitized_content(self, controller):
        decision = controller.admit(
            _request(content="  Standup at 9am\x00  ", check_content=True)
        )
        assert decision.allowed
        assert decision.sanitized_content == "Standup at 9am"
