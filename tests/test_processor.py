"""Tests for baseline computation and calibration windows."""

from guardian_system.sensors.reading import Baseline
from guardian_system.sensors.wearable import BaselineCalibrator, CalibrationSession

from conftest import T0, make_reading


class TestBaselineCalibrator:

    def test_empty_window_gives_default(self):
        assert BaselineCalibrator().compute_baseline([]) == Baseline(avg_bpm=75, avg_spo2=98)

    def test_mean_of_window(self):
        readings = [
            make_reading(bpm=70, spo2=96, seconds=5),
            make_reading(bpm=80, spo2=97, seconds=15),
            make_reading(bpm=90, spo2=99, seconds=25),
        ]
        assert BaselineCalibrator().compute_baseline(readings) == Baseline(avg_bpm=80, avg_spo2=97)

    def test_means_round_half_up(self):
        readings = [make_reading(bpm=70, spo2=97), make_reading(bpm=71, spo2=98)]
        baseline = BaselineCalibrator().compute_baseline(readings)

        assert baseline == Baseline(avg_bpm=71, avg_spo2=98)

    def test_means_round_down_below_half(self):
        readings = [make_reading(bpm=b, spo2=s) for b, s in [(60, 95), (60, 95), (61, 96)]]
        assert BaselineCalibrator().compute_baseline(readings) == Baseline(avg_bpm=60, avg_spo2=95)

    def test_single_reading(self):
        assert BaselineCalibrator().compute_baseline([make_reading(bpm=64, spo2=99)]) == Baseline(64, 99)

    def test_result_fields_are_plain_ints(self):
        baseline = BaselineCalibrator().compute_baseline([make_reading(bpm=64, spo2=99)])
        assert type(baseline.avg_bpm) is int
        assert type(baseline.avg_spo2) is int

    def test_custom_default(self):
        calibrator = BaselineCalibrator(default=Baseline(60, 95))
        assert calibrator.compute_baseline([]) == Baseline(60, 95)


class TestCalibrationSession:

    def test_collects_until_closed(self):
        session = CalibrationSession(started_at=T0, duration=30.0)

        assert session.add(make_reading(bpm=70))
        assert session.add(make_reading(bpm=80))
        window = session.close()

        assert [r.bpm for r in window] == [70, 80]
        assert not session.active
        assert not session.add(make_reading(bpm=90))

    def test_close_hands_window_back_once(self):
        session = CalibrationSession(started_at=T0, duration=30.0)
        session.add(make_reading())

        assert len(session.close()) == 1
        assert session.close() == []

    def test_status(self):
        session = CalibrationSession(started_at=T0, duration=30.0)
        session.add(make_reading())

        status = session.get_status()
        assert status['active'] is True
        assert status['readings'] == 1
        assert status['started_at'] == T0.isoformat()
