"""
Guardian System - Database Models
History log rows, one per logged reading
"""

import datetime

from sqlalchemy import Boolean, Column, DateTime, Float, Integer, String
from sqlalchemy.orm import declarative_base

from ..sensors.reading import SensorReading

Base = declarative_base()


class HistoryEntry(Base):
    """One reading in a subject's rolling history log"""

    __tablename__ = "history_entries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    subject_id = Column(String(64), nullable=False, index=True)
    position = Column(Integer, nullable=False)  # 0 = oldest entry in the log

    bpm = Column(Integer, nullable=False)
    spo2 = Column(Integer, nullable=False)
    res_rate = Column(Integer, nullable=False)
    is_fall = Column(Boolean, nullable=False, default=False)
    lat = Column(Float)
    lng = Column(Float)

    observed_at = Column(DateTime(timezone=True), nullable=False)
    logged_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.datetime.now(datetime.timezone.utc),
    )

    @classmethod
    def from_reading(cls, subject_id: str, position: int, reading: SensorReading) -> 'HistoryEntry':
        return cls(
            subject_id=subject_id,
            position=position,
            bpm=reading.bpm,
            spo2=reading.spo2,
            res_rate=reading.res_rate,
            is_fall=reading.is_fall,
            lat=reading.lat,
            lng=reading.lng,
            observed_at=reading.observed_at,
        )

    def to_reading(self) -> SensorReading:
        observed_at = self.observed_at
        # SQLite drops tzinfo on the way back
        if observed_at.tzinfo is None:
            observed_at = observed_at.replace(tzinfo=datetime.timezone.utc)

        return SensorReading(
            bpm=self.bpm,
            spo2=self.spo2,
            res_rate=self.res_rate,
            is_fall=bool(self.is_fall),
            lat=self.lat if self.lat is not None else 0.0,
            lng=self.lng if self.lng is not None else 0.0,
            observed_at=observed_at,
        )

    def __repr__(self):
        return f"<HistoryEntry(subject={self.subject_id}, pos={self.position}, bpm={self.bpm})>"
