"""
Guardian System Sensors
Vital-sign telemetry from the wearable

Available Sensors:
- Wearable: HTTP-polled heart rate, SpO2, respiration rate, fall flag and position

The wearable supports:
- Time-bounded acquisition with synthetic fallback when the device is offline
- Calibration windows producing a personal bpm / SpO2 baseline
"""

from .reading import (
    SensorReading,
    Baseline,
    SubjectProfile,
    MalformedReadingError,
    EMPTY_READING,
)
from .wearable import (
    WearableCollector,
    WearableConfig,
    SyntheticGenerator,
    BaselineCalibrator,
    CalibrationSession,
)

__all__ = [
    'SensorReading',
    'Baseline',
    'SubjectProfile',
    'MalformedReadingError',
    'EMPTY_READING',

    # Wearable (HR + SpO2 + respiration + fall)
    'WearableCollector',
    'WearableConfig',
    'SyntheticGenerator',
    'BaselineCalibrator',
    'CalibrationSession',
]

__version__ = '1.0.0'
