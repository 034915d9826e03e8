"""Tests for the synthetic fallback generator."""

import numpy as np

from guardian_system.sensors.wearable import SyntheticGenerator, WearableConfig

from conftest import T0


class TestSyntheticGenerator:

    def test_values_within_resting_ranges(self):
        generator = SyntheticGenerator(WearableConfig(seed=1))
        readings = [generator.generate() for _ in range(500)]

        assert all(60 <= r.bpm < 100 for r in readings)
        assert all(95 <= r.spo2 < 100 for r in readings)
        assert all(12 <= r.res_rate < 20 for r in readings)
        assert all(isinstance(r.bpm, int) and isinstance(r.is_fall, bool) for r in readings)

    def test_position_jitter_around_reference(self):
        config = WearableConfig(seed=2)
        generator = SyntheticGenerator(config)

        for _ in range(200):
            reading = generator.generate()
            assert abs(reading.lat - config.reference_lat) <= config.position_jitter
            assert abs(reading.lng - config.reference_lng) <= config.position_jitter

    def test_same_seed_same_sequence(self):
        clock = lambda: T0
        first = SyntheticGenerator(WearableConfig(seed=42), clock=clock)
        second = SyntheticGenerator(WearableConfig(seed=42), clock=clock)

        assert [first.generate() for _ in range(10)] == [second.generate() for _ in range(10)]

    def test_injected_random_source(self):
        generator = SyntheticGenerator(rng=np.random.default_rng(5), clock=lambda: T0)
        expected = SyntheticGenerator(rng=np.random.default_rng(5), clock=lambda: T0).generate()

        assert generator.generate() == expected

    def test_fall_probability_extremes(self):
        never = SyntheticGenerator(WearableConfig(seed=3, fall_probability=0.0))
        always = SyntheticGenerator(WearableConfig(seed=3, fall_probability=1.0))

        assert not any(never.generate().is_fall for _ in range(200))
        assert all(always.generate().is_fall for _ in range(20))

    def test_default_fall_rate_is_rare(self):
        generator = SyntheticGenerator(WearableConfig(seed=11))
        falls = sum(generator.generate().is_fall for _ in range(5000))

        # 1% expected; generous bounds
        assert 10 <= falls <= 120

    def test_readings_are_stamped_with_clock(self):
        generator = SyntheticGenerator(WearableConfig(seed=4), clock=lambda: T0)
        assert generator.generate().observed_at == T0
