"""
Guardian System
Wearable vital-sign acquisition, calibration and fall-alert core

Components:
- Wearable collector: time-bounded HTTP polling with synthetic fallback
- Baseline calibrator: 30 second calibration window -> average bpm / SpO2
- Fall alert machine: debounced confirm / escalate workflow
- History store: capped rolling log of readings per subject
- Monitoring pipeline: scheduler wiring the above for one subject
"""

from .sensors import SensorReading, Baseline, SubjectProfile
from .pipeline import MonitoringPipeline, MonitoringSession

__all__ = [
    'SensorReading',
    'Baseline',
    'SubjectProfile',
    'MonitoringPipeline',
    'MonitoringSession',
]

__version__ = '1.0.0'
