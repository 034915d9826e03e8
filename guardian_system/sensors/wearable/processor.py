"""
Wearable Baseline Processor
Calibration windows and personal bpm / SpO2 baseline computation
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Sequence

import numpy as np

from ..reading import Baseline, SensorReading

logger = logging.getLogger(__name__)


class BaselineCalibrator:
    """
    Averages a window of readings into a Baseline

    An empty window is not an error: it yields the population default
    (75 bpm, 98 % SpO2).
    """

    def __init__(self, default: Optional[Baseline] = None):
        self.default = default if default else Baseline()

    def compute_baseline(self, readings: Sequence[SensorReading]) -> Baseline:
        """
        Compute the baseline for a calibration window.

        Args:
            readings: Readings collected during the window.

        Returns:
            Baseline with the mean bpm and mean SpO2, each rounded half-up
            to the nearest integer, or the default baseline for an empty window.
        """
        if not readings:
            logger.info("Empty calibration window, using default baseline")
            return self.default

        bpm = np.fromiter((r.bpm for r in readings), dtype=float, count=len(readings))
        spo2 = np.fromiter((r.spo2 for r in readings), dtype=float, count=len(readings))

        baseline = Baseline(
            avg_bpm=_round_half_up(bpm.mean()),
            avg_spo2=_round_half_up(spo2.mean()),
        )
        logger.info(
            f"Baseline from {len(readings)} readings: "
            f"{baseline.avg_bpm} bpm, {baseline.avg_spo2}% SpO2"
        )
        return baseline


@dataclass
class CalibrationSession:
    """
    One open calibration window.

    Collects every reading routed to it until closed; closing is one-way and
    hands back the collected window exactly once.
    """

    started_at: datetime
    duration: float
    window_readings: List[SensorReading] = field(default_factory=list)
    active: bool = True
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def add(self, reading: SensorReading) -> bool:
        """
        Append a reading to the window.

        Returns:
            True if the reading was collected, False if the session is closed.
        """
        with self._lock:
            if not self.active:
                return False
            self.window_readings.append(reading)
            return True

    def close(self) -> List[SensorReading]:
        """
        Close the window.

        Returns:
            The collected readings on the first call, an empty list afterwards.
        """
        with self._lock:
            if not self.active:
                return []
            self.active = False
            window, self.window_readings = self.window_readings, []
            return window

    @property
    def reading_count(self) -> int:
        return len(self.window_readings)

    def get_status(self) -> dict:
        return {
            'active': self.active,
            'started_at': self.started_at.isoformat(),
            'duration': self.duration,
            'readings': self.reading_count,
        }


def _round_half_up(value: float) -> int:
    return int(np.floor(value + 0.5))
