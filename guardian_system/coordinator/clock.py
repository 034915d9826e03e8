"""
Central Clock
Single time reference for reading timestamps and calibration windows
"""

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

logger = logging.getLogger(__name__)

_TICK = timedelta(microseconds=1)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CentralClock:
    """
    Wall clock shared by the poll, log and calibration tasks.

    Every stamp is timezone-aware UTC and strictly later than the one before
    it, so readings from one session always sort in the order they were
    polled even when the system clock stalls or steps back.
    """

    def __init__(self, source: Callable[[], datetime] = _utc_now):
        """
        Args:
            source: Returns the current aware datetime. Replaceable in tests.
        """
        self._source = source
        self._lock = threading.Lock()
        self._previous: Optional[datetime] = None
        self._issued = 0
        self._nudged = 0

    def now(self) -> datetime:
        """Issue the next timestamp."""
        with self._lock:
            stamp = self._source()
            if self._previous is not None and stamp <= self._previous:
                stamp = self._previous + _TICK
                self._nudged += 1
            self._previous = stamp
            self._issued += 1
        return stamp

    def seconds_since(self, start: datetime) -> float:
        """Seconds elapsed since `start`, clamped at zero."""
        return max(0.0, (self._source() - start).total_seconds())

    def get_stats(self) -> dict:
        with self._lock:
            return {
                'total_calls': self._issued,
                'adjusted': self._nudged,
                'last_timestamp': self._previous.isoformat() if self._previous else None,
            }

    def __repr__(self):
        return f"<CentralClock(calls={self._issued}, adjusted={self._nudged})>"
