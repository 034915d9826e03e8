"""
Wearable Sensor Module for Guardian System
Heart rate, SpO2, respiration rate and fall detection from an HTTP wearable

Architecture:
- Collector: Time-bounded device polling (synthetic fallback on any failure)
- Synthetic: Plausible resting vitals for offline operation
- Processor: Calibration windows and baseline computation
"""

from .collector import WearableCollector, DeviceResponseError
from .config import WearableConfig
from .synthetic import SyntheticGenerator
from .processor import BaselineCalibrator, CalibrationSession

__all__ = [
    'WearableCollector',
    'DeviceResponseError',
    'WearableConfig',
    'SyntheticGenerator',
    'BaselineCalibrator',
    'CalibrationSession',
]

__version__ = '1.0.0'
