"""Tests for the recurring / one-shot timers and the task scheduler."""

import threading
import time
from datetime import datetime, timedelta, timezone

import pytest

from guardian_system.coordinator import CentralClock, OneShotTask, RecurringTask, TaskScheduler


def wait_for(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


class TestRecurringTask:

    def test_fires_repeatedly_after_first_interval(self):
        calls = []
        task = RecurringTask('tick', 0.05, lambda: calls.append(time.monotonic()))
        started = time.monotonic()
        task.start()

        assert wait_for(lambda: len(calls) >= 3)
        task.stop()

        assert calls[0] - started >= 0.04
        assert task.fire_count >= 3

    def test_body_never_overlaps_itself(self):
        active = []
        overlaps = []

        def slow_body():
            if active:
                overlaps.append(True)
            active.append(1)
            time.sleep(0.08)
            active.pop()

        task = RecurringTask('slow', 0.02, slow_body)
        task.start()
        assert wait_for(lambda: task.fire_count >= 3)
        task.stop()

        assert overlaps == []
        assert task.skipped_count > 0

    def test_no_firing_after_stop(self):
        calls = []
        task = RecurringTask('tick', 0.03, lambda: calls.append(1))
        task.start()
        assert wait_for(lambda: len(calls) >= 1)
        task.stop()

        count = len(calls)
        time.sleep(0.15)
        assert len(calls) == count
        assert not task.is_running

    def test_body_errors_do_not_kill_the_task(self):
        calls = []

        def flaky():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("first call fails")

        task = RecurringTask('flaky', 0.03, flaky)
        task.start()
        assert wait_for(lambda: len(calls) >= 3)
        task.stop()

        assert "RuntimeError" in task.last_error

    def test_stop_from_own_body(self):
        holder = {}

        def body():
            holder['task'].stop()

        holder['task'] = task = RecurringTask('self-stop', 0.02, body)
        task.start()
        assert wait_for(lambda: task.stopped)
        assert wait_for(lambda: not task._thread.is_alive())

    def test_stuck_body_still_reported_running_after_stop(self):
        release = threading.Event()
        entered = threading.Event()

        def stuck():
            entered.set()
            release.wait(2.0)

        task = RecurringTask('stuck', 0.02, stuck)
        task.start()
        assert entered.wait(1.0)

        task.stop(timeout=0.05)
        assert task.is_running
        assert task.get_status()['is_running'] is True

        release.set()
        assert wait_for(lambda: not task.is_running)
        assert task.get_status()['is_running'] is False

    def test_interval_must_be_positive(self):
        with pytest.raises(ValueError):
            RecurringTask('bad', 0, lambda: None)


class TestOneShotTask:

    def test_fires_once_after_delay(self):
        fired = threading.Event()
        calls = []
        task = OneShotTask('once', 0.05, lambda: (calls.append(1), fired.set()))
        task.start()

        assert task.is_pending
        assert fired.wait(1.0)
        time.sleep(0.1)
        assert calls == [1]
        assert task.fired

    def test_cancel_before_firing(self):
        calls = []
        task = OneShotTask('once', 0.2, lambda: calls.append(1))
        task.start()
        task.stop()

        time.sleep(0.3)
        assert calls == []
        assert not task.fired


class TestTaskScheduler:

    def test_start_all_and_shutdown(self):
        calls = {'a': 0, 'b': 0}

        def bump(name):
            calls[name] += 1

        scheduler = TaskScheduler(owner='test')
        scheduler.register_task(RecurringTask('a', 0.03, lambda: bump('a')))
        scheduler.register_task(RecurringTask('b', 0.03, lambda: bump('b')))
        scheduler.start_all()

        assert wait_for(lambda: calls['a'] >= 2 and calls['b'] >= 2)
        scheduler.shutdown()
        snapshot = dict(calls)
        time.sleep(0.1)

        assert calls == snapshot
        assert all(not t.is_running for t in scheduler.tasks.values())

    def test_unknown_task(self):
        with pytest.raises(ValueError):
            TaskScheduler(owner='test').start_task('missing')

    def test_register_after_shutdown_rejected(self):
        scheduler = TaskScheduler(owner='test')
        scheduler.shutdown()

        with pytest.raises(RuntimeError):
            scheduler.register_task(OneShotTask('late', 0.1, lambda: None))

    def test_replacing_a_task_cancels_the_old_one(self):
        calls = []
        scheduler = TaskScheduler(owner='test')
        old = scheduler.register_task(OneShotTask('cal', 0.1, lambda: calls.append('old')))
        old.start()
        new = scheduler.register_task(OneShotTask('cal', 0.05, lambda: calls.append('new')))
        new.start()

        time.sleep(0.25)
        scheduler.shutdown()
        assert calls == ['new']

    def test_status(self):
        scheduler = TaskScheduler(owner='test')
        scheduler.register_task(RecurringTask('poll', 2.0, lambda: None))

        status = scheduler.get_status()
        assert status['poll']['interval'] == 2.0
        assert status['poll']['kind'] == 'recurring'


class TestCentralClock:

    def test_timestamps_strictly_increase(self):
        clock = CentralClock()
        stamps = [clock.now() for _ in range(1000)]

        assert all(b > a for a, b in zip(stamps, stamps[1:]))
        assert all(s.tzinfo is not None for s in stamps[:5])
        assert clock.get_stats()['total_calls'] == 1000

    def test_stalled_source_is_nudged_forward(self):
        frozen = datetime(2026, 1, 1, tzinfo=timezone.utc)
        clock = CentralClock(source=lambda: frozen)

        first, second = clock.now(), clock.now()

        assert first == frozen
        assert second == frozen + timedelta(microseconds=1)
        assert clock.get_stats()['adjusted'] == 1

    def test_seconds_since(self):
        clock = CentralClock()
        start = clock.now()
        time.sleep(0.05)

        assert clock.seconds_since(start) >= 0.04
