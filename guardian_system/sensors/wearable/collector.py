"""
Wearable Data Collector
Time-bounded HTTP acquisition from the wearable with synthetic fallback
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from typing import Optional

import requests

from ...coordinator.clock import CentralClock
from ..reading import SensorReading
from .config import WearableConfig
from .synthetic import SyntheticGenerator

logger = logging.getLogger(__name__)


class DeviceResponseError(Exception):
    """Device answered, but not with a usable reading."""


class WearableCollector:
    """
    Wearable collector - one reading per acquire() call, never fails

    Issues a GET to the device endpoint and hard-bounds the whole call by the
    configured timeout. Timeouts, connection errors, non-OK statuses and
    malformed bodies all fall back to SyntheticGenerator, so every caller
    always gets a reading.

    Uses the shared central clock for reading timestamps.
    """

    def __init__(
        self,
        config: Optional[WearableConfig] = None,
        clock: Optional[CentralClock] = None,
        generator: Optional[SyntheticGenerator] = None,
        http: Optional[requests.Session] = None,
    ):
        """
        Initialise the wearable collector.

        Args:
            config:    WearableConfig instance. Defaults to WearableConfig.for_session().
            clock:     CentralClock used to stamp readings.
            generator: Synthetic fallback. Defaults to one built from config.
            http:      requests.Session to issue device calls with.
        """
        self.config = config if config else WearableConfig.for_session()
        self.clock = clock if clock else CentralClock()
        self.generator = generator if generator else SyntheticGenerator(self.config, clock=self.clock.now)
        self.http = http if http else requests.Session()

        # Two workers so a stuck call never delays the next poll's submission
        self._executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix='Wearable-Fetch')
        self._lock = threading.Lock()
        self._closed = False

        # Outcome tracking
        self.device_count = 0
        self.fallback_count = 0
        self.last_failure: Optional[str] = None

        logger.info(
            f"Wearable collector initialized "
            f"(mode: {self.config.mode}, endpoint: {self.config.endpoint or 'none'}, "
            f"timeout: {self.config.timeout_ms} ms)"
        )

    def acquire(self, endpoint: Optional[str] = None, timeout_ms: Optional[int] = None) -> SensorReading:
        """
        Fetch one reading from the device, or a synthetic one on any failure.

        Args:
            endpoint:   Device URL. Defaults to config.endpoint.
            timeout_ms: Upper bound for the whole call. Defaults to config.timeout_ms.

        Returns:
            SensorReading - from the device when it answered in time with a
            well-formed body, synthetic otherwise.
        """
        endpoint = endpoint or self.config.endpoint
        timeout_ms = timeout_ms if timeout_ms is not None else self.config.timeout_ms
        timeout_s = timeout_ms / 1000.0

        if not endpoint:
            return self._fallback("no device endpoint configured")
        if self._closed:
            return self._fallback("collector closed")

        try:
            future = self._executor.submit(self._fetch, endpoint, timeout_s)
        except RuntimeError as e:
            # Executor shut down between the closed check and submit
            return self._fallback(f"collector closed ({e})")

        try:
            reading = future.result(timeout=timeout_s)
        except FutureTimeout:
            future.cancel()
            return self._fallback(f"no response within {timeout_ms} ms")
        except requests.RequestException as e:
            return self._fallback(f"request failed: {type(e).__name__}: {e}")
        except (DeviceResponseError, ValueError) as e:
            return self._fallback(f"bad response: {e}")
        except Exception as e:
            logger.error(f"Unexpected acquisition error: {e}", exc_info=True)
            return self._fallback(f"unexpected error: {type(e).__name__}: {e}")

        with self._lock:
            self.device_count += 1
        logger.debug(f"Device reading: bpm={reading.bpm} spo2={reading.spo2} fall={reading.is_fall}")
        return reading

    def _fetch(self, endpoint: str, timeout_s: float) -> SensorReading:
        """
        Blocking device call, run on the fetch executor.

        Raises:
            requests.RequestException: Transport-level failure.
            DeviceResponseError:       Non-OK HTTP status.
            ValueError:                Body is not JSON or not a valid reading.
        """
        response = self.http.get(endpoint, timeout=timeout_s)

        if not response.ok:
            raise DeviceResponseError(f"HTTP {response.status_code}")

        payload = response.json()
        return SensorReading.from_payload(
            payload,
            observed_at=self.clock.now(),
            default_lat=self.config.reference_lat,
            default_lng=self.config.reference_lng,
        )

    def _fallback(self, reason: str) -> SensorReading:
        with self._lock:
            self.fallback_count += 1
            first_failure = self.last_failure is None
            self.last_failure = reason

        # The device is routinely offline; only the first failure is worth a warning
        if first_failure and self.config.endpoint:
            logger.warning(f"⚠ Wearable unreachable, using synthetic data: {reason}")
        else:
            logger.debug(f"Synthetic reading ({reason})")

        return self.generator.generate()

    def close(self):
        """
        Abort in-flight device calls and release the HTTP session.
        Later acquire() calls return synthetic readings.
        """
        if self._closed:
            return

        self._closed = True
        try:
            self.http.close()
        except Exception as e:
            logger.error(f"Error closing HTTP session: {e}")
        self._executor.shutdown(wait=False, cancel_futures=True)
        logger.info(
            f"✓ Wearable collector closed "
            f"({self.device_count} device / {self.fallback_count} synthetic readings)"
        )

    def get_status(self) -> dict:
        """
        Return the current collector state.

        Returns:
            Dict containing sensor type, mode, endpoint, outcome counters
            and the last failure reason.
        """
        return {
            'sensor_type': 'wearable',
            'mode': self.config.mode,
            'endpoint': self.config.endpoint,
            'closed': self._closed,
            'device_readings': self.device_count,
            'synthetic_readings': self.fallback_count,
            'last_failure': self.last_failure,
        }

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __repr__(self):
        status = "closed" if self._closed else "open"
        return f"<WearableCollector(endpoint={self.config.endpoint}, status={status})>"
