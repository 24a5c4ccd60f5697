"""
ActivityStore: per-client sliding-window request counters.

Every client identifier owns a ClientActivityRecord holding timestamped
entries for the last 24 hours. Windowed counts (10 seconds, 1 minute,
1 hour, 1 day) are computed by filtering the same deques, so they are
always consistent with each other. Expired entries are pruned on every
access and by a periodic sweep that also drops idle clients.
"""

import asyncio
import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager

import structlog

from calendar_intake.admission.schemas import (
    AIRequestEntry,
    ClientActivityRecord,
    RequestEntry,
)

logger = structlog.get_logger(__name__)

RETENTION_SECONDS = 24 * 60 * 60

MINUTE = 60
HOUR = 60 * 60
DAY = RETENTION_SECONDS


class ActivityStore:
    """
    Process-local store of recent client activity.

    Access to a single client's record is serialized by that record's
    lock; the record map itself is guarded by a store-wide lock that is
    only held while looking records up or removing them.

    Usage:
        store = ActivityStore()
        store.record("10.0.0.1", "/api/process-event", success=True, is_ai_request=True)
        store.count_since("10.0.0.1", 60)

    Args:
        clock: Returns the current time in seconds. Tests inject a fake clock.
        retention_seconds: Age after which entries are discarded.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        retention_seconds: float = RETENTION_SECONDS,
    ):
        self._clock = clock
        self._retention = retention_seconds
        self._records: dict[str, ClientActivityRecord] = {}
        self._map_lock = threading.Lock()

    @property
    def client_count(self) -> int:
        """Number of client records currently held."""
        with self._map_lock:
            return len(self._records)

    def now(self) -> float:
        return self._clock()

    @contextmanager
    def locked(self, client_id: str) -> Iterator[ClientActivityRecord]:
        """
        Hold a client's record lock for a compound check-then-record.

        The lock is re-entrant, so store methods may be called while it is held.
        """
        while True:
            with self._map_lock:
                record = self._records.get(client_id)
                if record is None:
                    record = ClientActivityRecord(last_seen=self._clock())
                    self._records[client_id] = record
            with record.lock:
                # A sweep may have removed the record between lookup and lock
                with self._map_lock:
                    current = self._records.get(client_id)
                if current is record:
                    yield record
                    return

    def record(
        self,
        client_id: str,
        endpoint: str,
        success: bool,
        is_ai_request: bool = False,
    ) -> None:
        """Append a request entry stamped with the current time."""
        with self.locked(client_id) as record:
            now = self._clock()
            self._prune(record, now)
            record.requests.append(RequestEntry(now, endpoint, success))
            if is_ai_request:
                record.ai_requests.append(AIRequestEntry(now, success))
            record.last_seen = now

    def count_since(
        self,
        client_id: str,
        window_seconds: float,
        only_ai: bool = False,
        only_failed: bool = False,
    ) -> int:
        """
        Count a client's entries younger than window_seconds.

        Args:
            client_id: Client identifier.
            window_seconds: Trailing window; capped by the retention window.
            only_ai: Count AI-consuming requests instead of general ones.
            only_failed: Count only entries recorded as unsuccessful.
        """
        with self.locked(client_id) as record:
            now = self._clock()
            self._prune(record, now)
            entries = record.ai_requests if only_ai else record.requests
            return sum(
                1
                for entry in entries
                if now - entry.timestamp < window_seconds
                and not (only_failed and entry.success)
            )

    def mark_last_failed(self, client_id: str) -> bool:
        """
        Flip the client's most recent entry to unsuccessful.

        Used when a request passed admission but failed downstream.
        Returns False if the client has no entries.
        """
        with self.locked(client_id) as record:
            self._prune(record, self._clock())
            if not record.requests:
                return False
            last = record.requests[-1]
            last.success = False
            if record.ai_requests and record.ai_requests[-1].timestamp == last.timestamp:
                record.ai_requests[-1].success = False
            return True

    def snapshot(self, client_id: str) -> dict[str, dict[str, int]]:
        """Windowed counters for one client, for operator reporting."""
        with self.locked(client_id):
            return {
                "requests": {
                    "lastMinute": self.count_since(client_id, MINUTE),
                    "lastHour": self.count_since(client_id, HOUR),
                    "lastDay": self.count_since(client_id, DAY),
                },
                "aiRequests": {
                    "lastHour": self.count_since(client_id, HOUR, only_ai=True),
                    "lastDay": self.count_since(client_id, DAY, only_ai=True),
                },
            }

    def reset(self, client_id: str) -> bool:
        """Forget a client entirely. Returns True if a record existed."""
        with self._map_lock:
            return self._records.pop(client_id, None) is not None

    def sweep(self) -> int:
        """
        Prune every record and drop clients with no remaining entries.

        Returns:
            Number of client records removed.
        """
        now = self._clock()
        with self._map_lock:
            items = list(self._records.items())

        removed = 0
        for client_id, record in items:
            with record.lock:
                self._prune(record, now)
                if not record.is_empty:
                    continue
                with self._map_lock:
                    if self._records.get(client_id) is record:
                        del self._records[client_id]
                        removed += 1

        if removed:
            logger.debug("Swept idle clients", removed=removed, remaining=self.client_count)
        return removed

    async def run_sweeper(self, interval_seconds: float = 300.0) -> None:
        """Sweep on a fixed interval until cancelled."""
        while True:
            await asyncio.sleep(interval_seconds)
            try:
                self.sweep()
            except Exception:
                logger.exception("Activity sweep failed")

    def _prune(self, record: ClientActivityRecord, now: float) -> None:
        """Drop entries older than the retention window. Caller holds the lock."""
        while record.requests and now - record.requests[0].timestamp >= self._retention:
            record.requests.popleft()
        while record.ai_requests and now - record.ai_requests[0].timestamp >= self._retention:
            record.ai_requests.popleft()
