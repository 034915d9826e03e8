"""
Guardian System - History Store
Bounded per-subject rolling log of readings:
- Append with FIFO eviction beyond capacity (default 50)
- Skip readings that were never acquired (bpm == 0)
- Read back oldest-first
- Persist through a pluggable backend (memory or SQL)
"""

import logging
import threading
from typing import Dict, List, Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from .database.models import HistoryEntry
from .sensors.reading import SensorReading

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 50


class HistoryBackend(Protocol):
    """Read / write interface of the persistence collaborator."""

    def read(self, subject_id: str) -> List[SensorReading]: ...

    def write(self, subject_id: str, readings: List[SensorReading]) -> None: ...


class MemoryHistoryBackend:
    """Process-local backend. Logs vanish when the process exits."""

    def __init__(self):
        self._logs: Dict[str, List[SensorReading]] = {}

    def read(self, subject_id: str) -> List[SensorReading]:
        return list(self._logs.get(subject_id, []))

    def write(self, subject_id: str, readings: List[SensorReading]) -> None:
        self._logs[subject_id] = list(readings)


class SQLHistoryBackend:
    """
    SQLAlchemy backend: one history_entries row per logged reading.

    write() replaces the subject's rows inside a single transaction, so a
    failed write leaves the previous log untouched.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def read(self, subject_id: str) -> List[SensorReading]:
        """
        Load a subject's log.
        Args:
            subject_id: Identifier of the monitored subject.
        Returns:
            Readings ordered oldest-first; empty if the subject has no log.
        """
        with self.session_factory() as session:
            rows = (
                session
                .query(HistoryEntry)
                .filter(HistoryEntry.subject_id == subject_id)
                .order_by(HistoryEntry.position)
                .all()
            )
            return [row.to_reading() for row in rows]

    def write(self, subject_id: str, readings: List[SensorReading]) -> None:
        """
        Replace a subject's log.
        Args:
            subject_id: Identifier of the monitored subject.
            readings:   Full log, oldest-first.
        Raises:
            SQLAlchemyError: The transaction failed and was rolled back.
        """
        with self.session_factory() as session:
            try:
                session.query(HistoryEntry).filter(
                    HistoryEntry.subject_id == subject_id
                ).delete(synchronize_session=False)
                session.add_all(
                    HistoryEntry.from_reading(subject_id, position, reading)
                    for position, reading in enumerate(readings)
                )
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                logger.error(f"✗ Failed to write history for '{subject_id}': {e}")
                raise


class HistoryStore:
    """
    Rolling history log for each monitored subject.

    The store is the only writer of a subject's log. Logs are loaded from
    the backend on first use and written back after every append.

    Usage:
        store = HistoryStore(SQLHistoryBackend(session_factory))
        store.append(subject_id, reading)
        logs = store.read(subject_id)
    """

    def __init__(self, backend: Optional[HistoryBackend] = None, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError(f"History capacity must be at least 1, got {capacity}")

        self.backend = backend if backend is not None else MemoryHistoryBackend()
        self.capacity = capacity
        self._cache: Dict[str, List[SensorReading]] = {}
        self._lock = threading.Lock()

    def append(self, subject_id: str, reading: SensorReading) -> bool:
        """
        Append a reading to the subject's log, evicting the oldest entries
        beyond capacity.
        Args:
            subject_id: Identifier of the monitored subject.
            reading:    Reading to log.
        Returns:
            True if the reading was logged, False for a not-yet-acquired reading.
        Raises:
            Whatever the backend raises on write; the in-memory log is only
            updated once the write succeeded.
        """
        if not reading.is_acquired:
            logger.debug(f"Skipping history append for '{subject_id}': reading not acquired")
            return False

        with self._lock:
            log = self._load(subject_id) + [reading]
            evicted = max(0, len(log) - self.capacity)
            if evicted:
                log = log[evicted:]

            self.backend.write(subject_id, log)
            self._cache[subject_id] = log

        logger.debug(
            f"Logged reading for '{subject_id}' ({len(log)}/{self.capacity}"
            f"{f', evicted {evicted}' if evicted else ''})"
        )
        return True

    def read(self, subject_id: str) -> List[SensorReading]:
        """
        Get a subject's log, oldest entry first.
        Returns:
            List of readings; empty if nothing has been logged yet.
        """
        with self._lock:
            return list(self._load(subject_id))

    def _load(self, subject_id: str) -> List[SensorReading]:
        if subject_id not in self._cache:
            stored = self.backend.read(subject_id)
            # A log persisted under a larger capacity is trimmed on load
            self._cache[subject_id] = stored[-self.capacity:]
        return self._cache[subject_id]

    def __repr__(self):
        return f"<HistoryStore(subjects={len(self._cache)}, capacity={self.capacity})>"
