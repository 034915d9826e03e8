"""Shared fixtures for the Guardian System test suite."""

from datetime import datetime, timedelta, timezone
from unittest import mock

import pytest

from guardian_system.sensors.reading import SensorReading, SubjectProfile
from guardian_system.sensors.wearable import WearableConfig

T0 = datetime(2026, 1, 1, 8, 0, 0, tzinfo=timezone.utc)


def make_reading(bpm=72, spo2=98, res_rate=16, is_fall=False, seconds=0, lat=24.7136, lng=46.6753):
    """Build a reading observed `seconds` after T0."""
    return SensorReading(
        bpm=bpm,
        spo2=spo2,
        res_rate=res_rate,
        is_fall=is_fall,
        lat=lat,
        lng=lng,
        observed_at=T0 + timedelta(seconds=seconds),
    )


def http_response(payload=None, status_code=200, json_error=None):
    """Mock of requests.Response for the collector's device call."""
    response = mock.Mock()
    response.status_code = status_code
    response.ok = status_code < 400
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = payload
    return response


@pytest.fixture
def profile():
    return SubjectProfile(subject_id="29801011234567", language="en")


@pytest.fixture
def fast_config():
    """Device-backed config with test-sized intervals and a fixed seed."""
    return WearableConfig(
        endpoint="http://wearable.test/data",
        timeout_ms=200,
        poll_interval=0.05,
        log_interval=0.1,
        calibration_duration=0.3,
        seed=7,
    )


@pytest.fixture
def offline_config():
    config = WearableConfig.for_offline(seed=7)
    config.poll_interval = 0.05
    config.log_interval = 0.1
    config.calibration_duration = 0.3
    config.fall_probability = 0.0
    return config
