"""
Synthetic Vitals Generator
Plausible readings used whenever the wearable cannot be reached
"""

from typing import Callable, Optional
from datetime import datetime, timezone

import numpy as np

from ..reading import SensorReading
from .config import WearableConfig


class SyntheticGenerator:
    """
    Produces resting-adult vitals so downstream consumers never starve.

    bpm in [60, 100), SpO2 in [95, 100), respiration in [12, 20), a fall with
    probability config.fall_probability, and a position jittered around the
    reference coordinate. The random source is injectable for reproducible
    tests.
    """

    BPM_RANGE = (60, 100)
    SPO2_RANGE = (95, 100)
    RES_RATE_RANGE = (12, 20)

    def __init__(
        self,
        config: Optional[WearableConfig] = None,
        rng: Optional[np.random.Generator] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Args:
            config: Fall probability, reference coordinate and jitter.
            rng:    Random source. Defaults to default_rng(config.seed).
            clock:  Callable returning the timestamp for each reading.
        """
        self.config = config if config else WearableConfig()
        self.rng = rng if rng is not None else np.random.default_rng(self.config.seed)
        self.clock = clock if clock else (lambda: datetime.now(timezone.utc))

    def generate(self) -> SensorReading:
        jitter = self.config.position_jitter
        return SensorReading(
            bpm=int(self.rng.integers(*self.BPM_RANGE)),
            spo2=int(self.rng.integers(*self.SPO2_RANGE)),
            res_rate=int(self.rng.integers(*self.RES_RATE_RANGE)),
            is_fall=bool(self.rng.random() < self.config.fall_probability),
            lat=self.config.reference_lat + float(self.rng.uniform(-jitter, jitter)),
            lng=self.config.reference_lng + float(self.rng.uniform(-jitter, jitter)),
            observed_at=self.clock(),
        )
