"""Schema definitions for request admission.

Provides the activity entries held by the counter store and the
AdmissionDecision value produced for each request.
"""

import threading
from collections import deque
from dataclasses import dataclass, field
from typing import Literal

DenialCategory = Literal["rate_limited", "abusive", "invalid_content", "suspicious"]


@dataclass
class RequestEntry:
    """One general request seen from a client."""

    timestamp: float
    endpoint: str
    success: bool


@dataclass
class AIRequestEntry:
    """One AI-consuming request seen from a client."""

    timestamp: float
    success: bool


@dataclass
class ClientActivityRecord:
    """
    Recent activity for a single client identifier.

    Both deques are ordered by timestamp (oldest first) and hold only
    entries younger than the store's retention window. The lock serializes
    append and prune for this client.
    """

    requests: deque[RequestEntry] = field(default_factory=deque)
    ai_requests: deque[AIRequestEntry] = field(default_factory=deque)
    last_seen: float = 0.0
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    @property
    def is_empty(self) -> bool:
        return not self.requests and not self.ai_requests


@dataclass(frozen=True)
class AdmissionDecision:
    """
    Outcome of screening a single request.

    Attributes:
        allowed: Whether the request may proceed.
        reason: Human-readable explanation for a denial.
        code: Machine-readable reason code (e.g. "burst_limit").
        retry_after: Seconds the client should wait, for rate denials.
        category: Kind of denial, used to pick the HTTP status.
        sanitized_content: Cleaned content when a content screen passed.
    """

    allowed: bool
    reason: str | None = None
    code: str | None = None
    retry_after: int | None = None
    category: DenialCategory | None = None
    sanitized_content: str | None = None

    @classmethod
    def allow(cls, sanitized_content: str | None = None) -> "AdmissionDecision":
        return cls(allowed=True, sanitized_content=sanitized_content)

    @classmethod
    def deny(
        cls,
        category: DenialCategory,
        code: str,
        reason: str,
        retry_after: int | None = None,
    ) -> "AdmissionDecision":
        return cls(
            allowed=False,
            reason=reason,
            code=code,
            retry_after=retry_after,
            category=category,
        )

    def to_dict(self) -> dict:
        """Error body for a denied request."""
        body: dict = {"error": self.reason, "code": self.code}
        if self.retry_after is not None:
            body["retryAfter"] = self.retry_after
        return body
