"""
Wearable Sensor Configuration
Device endpoint, polling schedule, calibration and retention parameters
"""

import os
from dataclasses import dataclass
from typing import Optional

from ..reading import REFERENCE_LAT, REFERENCE_LNG

ENV_PREFIX = 'GUARDIAN_'


@dataclass
class WearableConfig:
    """
    Configuration parameters for the wearable vital-sign device.

    Controls the HTTP endpoint, the acquisition timeout, the poll / log /
    calibration schedule, history retention and the synthetic fallback.
    """

    # Operating mode
    mode: str = 'session'  # 'session' or 'offline'

    # Device settings
    endpoint: Optional[str] = 'http://192.168.1.50/data'  # None = synthetic only
    timeout_ms: int = 1000  # Hard bound on one acquisition

    # Schedule
    poll_interval: float = 2.0  # Seconds between device polls
    log_interval: float = 60.0  # Seconds between history appends
    calibration_duration: float = 30.0  # Wall-clock length of a calibration window

    # Retention
    history_capacity: int = 50  # Entries kept per subject (FIFO)
    trend_size: int = 20  # Live bpm points kept for charting

    # Synthetic fallback
    fall_probability: float = 0.01  # Chance of a synthetic fall per reading
    reference_lat: float = REFERENCE_LAT
    reference_lng: float = REFERENCE_LNG
    position_jitter: float = 0.005  # +/- degrees around the reference coordinate
    seed: Optional[int] = None  # Seed for the synthetic random source

    @property
    def timeout_s(self) -> float:
        """Acquisition timeout in seconds."""
        return self.timeout_ms / 1000.0

    def validate(self):
        """
        Check the configuration for values the scheduler cannot run with.

        Raises:
            ValueError: On the first invalid field.
        """
        if self.timeout_ms <= 0:
            raise ValueError(f"timeout_ms must be positive, got {self.timeout_ms}")
        for name in ('poll_interval', 'log_interval', 'calibration_duration'):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        if self.history_capacity < 1:
            raise ValueError(f"history_capacity must be at least 1, got {self.history_capacity}")
        if self.trend_size < 1:
            raise ValueError(f"trend_size must be at least 1, got {self.trend_size}")
        if not 0.0 <= self.fall_probability <= 1.0:
            raise ValueError(f"fall_probability must be within [0, 1], got {self.fall_probability}")
        if self.position_jitter < 0:
            raise ValueError(f"position_jitter must be non-negative, got {self.position_jitter}")

    @classmethod
    def for_session(cls, endpoint: Optional[str] = None) -> 'WearableConfig':
        """
        Create a configuration for live monitoring against a device.

        Args:
            endpoint: Device URL. Defaults to the factory address.

        Returns:
            WearableConfig with mode='session'.
        """
        config = cls(mode='session')
        if endpoint:
            config.endpoint = endpoint
        return config

    @classmethod
    def for_offline(cls, seed: Optional[int] = None) -> 'WearableConfig':
        """
        Create a configuration with no device: every reading is synthetic.

        Returns:
            WearableConfig with mode='offline' and endpoint=None.
        """
        config = cls(
            mode='offline',
            endpoint=None,
            seed=seed,
        )
        return config

    @classmethod
    def from_env(cls, environ=None) -> 'WearableConfig':
        """
        Build a configuration from GUARDIAN_* environment variables.

        Recognised: GUARDIAN_ENDPOINT (empty = offline), GUARDIAN_TIMEOUT_MS,
        GUARDIAN_POLL_INTERVAL, GUARDIAN_LOG_INTERVAL,
        GUARDIAN_CALIBRATION_DURATION, GUARDIAN_HISTORY_CAPACITY,
        GUARDIAN_SEED. Unset variables keep their defaults.
        """
        env = os.environ if environ is None else environ
        config = cls()

        if f'{ENV_PREFIX}ENDPOINT' in env:
            endpoint = env[f'{ENV_PREFIX}ENDPOINT'].strip()
            config.endpoint = endpoint or None
            config.mode = 'session' if endpoint else 'offline'

        casts = {
            'timeout_ms': int,
            'poll_interval': float,
            'log_interval': float,
            'calibration_duration': float,
            'history_capacity': int,
            'seed': int,
        }
        for field_name, cast in casts.items():
            raw = env.get(f'{ENV_PREFIX}{field_name.upper()}')
            if raw not in (None, ''):
                setattr(config, field_name, cast(raw))

        config.validate()
        return config
