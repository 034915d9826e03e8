"""
Sensor Reading
Normalized vital-sign sample shared by every component, plus payload coercion
"""

import math
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

# Reference coordinate used by the synthetic generator and as the fallback
# position when the device omits lat / lng (Riyadh)
REFERENCE_LAT = 24.7136
REFERENCE_LNG = 46.6753

DEFAULT_AVG_BPM = 75
DEFAULT_AVG_SPO2 = 98

_TRUE_STRINGS = {'true', '1', 'yes', 'y', 'on'}


class MalformedReadingError(ValueError):
    """Device payload cannot be turned into a SensorReading."""


@dataclass(frozen=True)
class SensorReading:
    """
    One normalized vital-sign sample.

    bpm == 0 marks a reading that has not been acquired yet; such readings
    are never written to history.
    """

    bpm: int
    spo2: int
    res_rate: int
    is_fall: bool
    lat: float
    lng: float
    observed_at: datetime

    @property
    def is_acquired(self) -> bool:
        return self.bpm != 0

    @property
    def activity(self) -> str:
        """Status label shown next to the vitals."""
        return 'FALLEN' if self.is_fall else 'STABLE'

    def cleared(self) -> 'SensorReading':
        """Copy of this reading with the fall flag removed."""
        return replace(self, is_fall=False)

    def to_dict(self) -> dict:
        """Wire / storage form, camelCase keys as sent by the device."""
        return {
            'bpm': self.bpm,
            'spo2': self.spo2,
            'resRate': self.res_rate,
            'isFall': self.is_fall,
            'lat': self.lat,
            'lng': self.lng,
            'observedAt': self.observed_at.isoformat(),
        }

    @classmethod
    def from_payload(
        cls,
        payload: Any,
        observed_at: datetime,
        default_lat: float = REFERENCE_LAT,
        default_lng: float = REFERENCE_LNG,
    ) -> 'SensorReading':
        """
        Coerce a raw device JSON payload into a reading.

        The device may send numbers as strings, floats for integer fields,
        or leave fields out entirely.

        Args:
            payload:     Decoded JSON body.
            observed_at: Timestamp to stamp the reading with.
            default_lat: Latitude used when lat is absent or not numeric.
            default_lng: Longitude used when lng is absent or not numeric.

        Returns:
            SensorReading with every field coerced to its declared type.

        Raises:
            MalformedReadingError: Payload is not an object, or bpm / spo2 /
                resRate are missing, not numeric or negative.
        """
        if not isinstance(payload, Mapping):
            raise MalformedReadingError(f"Expected JSON object, got {type(payload).__name__}")

        return cls(
            bpm=_coerce_vital(payload, 'bpm'),
            spo2=_coerce_vital(payload, 'spo2'),
            res_rate=_coerce_vital(payload, 'resRate'),
            is_fall=_coerce_flag(payload.get('isFall')),
            lat=_coerce_coordinate(payload.get('lat'), default_lat),
            lng=_coerce_coordinate(payload.get('lng'), default_lng),
            observed_at=observed_at,
        )


# Not-yet-acquired sentinel held by a session before its first poll
EMPTY_READING = SensorReading(
    bpm=0,
    spo2=0,
    res_rate=0,
    is_fall=False,
    lat=0.0,
    lng=0.0,
    observed_at=datetime.fromtimestamp(0, tz=timezone.utc),
)


@dataclass(frozen=True)
class Baseline:
    """Personalized resting averages produced by a calibration window."""

    avg_bpm: int = DEFAULT_AVG_BPM
    avg_spo2: int = DEFAULT_AVG_SPO2

    def to_dict(self) -> dict:
        return {'avgBpm': self.avg_bpm, 'avgSpo2': self.avg_spo2}


@dataclass
class SubjectProfile:
    """
    Monitored subject as supplied by the profile collaborator.

    Only the identifier and language are consumed here.
    """

    subject_id: str
    language: str = 'en'
    full_name: Optional[str] = None


def _to_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _coerce_vital(payload: Mapping[str, Any], key: str) -> int:
    if key not in payload or payload[key] is None:
        raise MalformedReadingError(f"Missing field '{key}'")

    number = _to_number(payload[key])
    if number is None:
        raise MalformedReadingError(f"Field '{key}' is not numeric: {payload[key]!r}")
    if number < 0:
        raise MalformedReadingError(f"Field '{key}' is negative: {number}")

    return int(math.floor(number + 0.5))


def _coerce_flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return bool(value)


def _coerce_coordinate(value: Any, default: float) -> float:
    number = _to_number(value) if value is not None else None
    return default if number is None else number
