"""Tests for the console entry point's configuration assembly."""

from run import build_config, parse_args


ENV = {
    'GUARDIAN_ENDPOINT': 'http://wearable.local/data',
    'GUARDIAN_POLL_INTERVAL': '1.5',
    'GUARDIAN_LOG_INTERVAL': '30',
    'GUARDIAN_CALIBRATION_DURATION': '10',
    'GUARDIAN_HISTORY_CAPACITY': '20',
    'GUARDIAN_SEED': '9',
}


class TestBuildConfig:

    def test_offline_keeps_environment_settings(self):
        config = build_config(parse_args(['--subject', '123', '--offline']), ENV)

        assert config.endpoint is None
        assert config.mode == 'offline'
        assert config.poll_interval == 1.5
        assert config.log_interval == 30.0
        assert config.calibration_duration == 10.0
        assert config.history_capacity == 20
        assert config.seed == 9

    def test_endpoint_flag_overrides_environment(self):
        config = build_config(parse_args(['--subject', '123', '--endpoint', 'http://10.0.0.9/data']), ENV)

        assert config.endpoint == 'http://10.0.0.9/data'
        assert config.mode == 'session'
        assert config.poll_interval == 1.5

    def test_environment_only(self):
        config = build_config(parse_args(['--subject', '123']), ENV)

        assert config.endpoint == 'http://wearable.local/data'
        assert config.history_capacity == 20
