"""Tests for WearableConfig presets, validation and environment loading."""

import pytest

from guardian_system.sensors.wearable import WearableConfig


class TestPresets:

    def test_defaults(self):
        config = WearableConfig()

        assert config.poll_interval == 2.0
        assert config.log_interval == 60.0
        assert config.calibration_duration == 30.0
        assert config.timeout_ms == 1000
        assert config.timeout_s == 1.0
        assert config.history_capacity == 50
        assert config.trend_size == 20

    def test_session_with_custom_endpoint(self):
        config = WearableConfig.for_session("http://10.0.0.7/data")

        assert config.mode == 'session'
        assert config.endpoint == "http://10.0.0.7/data"

    def test_offline_has_no_endpoint(self):
        config = WearableConfig.for_offline(seed=3)

        assert config.mode == 'offline'
        assert config.endpoint is None
        assert config.seed == 3


class TestValidation:

    @pytest.mark.parametrize('field, value', [
        ('timeout_ms', 0),
        ('poll_interval', 0),
        ('log_interval', -1),
        ('calibration_duration', 0),
        ('history_capacity', 0),
        ('trend_size', 0),
        ('fall_probability', 1.5),
        ('position_jitter', -0.1),
    ])
    def test_rejects_invalid_values(self, field, value):
        config = WearableConfig()
        setattr(config, field, value)

        with pytest.raises(ValueError, match=field):
            config.validate()

    def test_defaults_are_valid(self):
        WearableConfig().validate()


class TestFromEnv:

    def test_unset_variables_keep_defaults(self):
        assert WearableConfig.from_env({}) == WearableConfig()

    def test_reads_overrides(self):
        config = WearableConfig.from_env({
            'GUARDIAN_ENDPOINT': 'http://wearable.local/data',
            'GUARDIAN_TIMEOUT_MS': '500',
            'GUARDIAN_POLL_INTERVAL': '1.5',
            'GUARDIAN_HISTORY_CAPACITY': '10',
            'GUARDIAN_SEED': '42',
        })

        assert config.endpoint == 'http://wearable.local/data'
        assert config.timeout_ms == 500
        assert config.poll_interval == 1.5
        assert config.history_capacity == 10
        assert config.seed == 42

    def test_empty_endpoint_means_offline(self):
        config = WearableConfig.from_env({'GUARDIAN_ENDPOINT': ''})

        assert config.endpoint is None
        assert config.mode == 'offline'

    def test_invalid_override_is_rejected(self):
        with pytest.raises(ValueError):
            WearableConfig.from_env({'GUARDIAN_POLL_INTERVAL': '0'})

    def test_non_numeric_override_is_rejected(self):
        with pytest.raises(ValueError):
            WearableConfig.from_env({'GUARDIAN_TIMEOUT_MS': 'fast'})
