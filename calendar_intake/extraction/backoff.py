"""
Retry schedule for calls to the AI provider.

RetryPolicy is the immutable schedule built from ExtractionConfig.
RetryState is the counter one extract() call carries through its loop;
it is created per call and dropped after success or exhaustion, so
concurrent requests never share retry state.
"""

import random
from dataclasses import dataclass


@dataclass(frozen=True)
class RetryPolicy:
    """
    Bounded exponential retry schedule.

    The wait before retry n (counting from 1) is
    min(base_delay * multiplier ** (n - 1), max_delay), widened by up to
    jitter_range of itself in either direction. The defaults give 1s, 2s.
    """

    max_retries: int = 2
    base_delay: float = 1.0
    multiplier: float = 2.0
    max_delay: float = 30.0
    jitter_range: float = 0.0

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def delay_before_retry(self, retry: int) -> float:
        delay = min(self.base_delay * self.multiplier ** (retry - 1), self.max_delay)
        if self.jitter_range:
            delay += delay * random.uniform(-self.jitter_range, self.jitter_range)
        return max(0.0, delay)

    def start(self) -> "RetryState":
        """Fresh state for one call."""
        return RetryState(self)


@dataclass
class RetryState:
    """
    Attempt counter for a single call.

    Usage:
        state = policy.start()
        while not state.exhausted:
            state.begin_attempt()
            try:
                return await call()
            except TransientError:
                delay = state.next_delay()
                if delay is None:
                    break
                await asyncio.sleep(delay)
    """

    policy: RetryPolicy
    attempts: int = 0

    @property
    def exhausted(self) -> bool:
        return self.attempts >= self.policy.max_attempts

    def begin_attempt(self) -> int:
        """Count a new attempt and return its 1-based number."""
        self.attempts += 1
        return self.attempts

    def next_delay(self) -> float | None:
        """Wait before the next attempt, or None if no attempt is left."""
        if self.exhausted:
            return None
        return self.policy.delay_before_retry(self.attempts)
