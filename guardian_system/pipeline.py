"""
Guardian System - Monitoring Pipeline
======================================
Central module that owns one subject's monitoring session.

Usage in run.py:
    pipeline = MonitoringPipeline(profile, config, history, notifier)
    pipeline.start()
    # ... presentation layer reacts to callbacks, sends user actions ...
    pipeline.stop()

Timers managed:
    - poll        : every 2 s, acquire a reading and route it
    - log         : every 60 s, append the latest reading to history
    - calibration : one-shot, 30 s after start_calibration()

Routing of every polled reading, in poll order:
    latest reading + bpm trend -> fall alert machine -> calibration window
    (when active) -> on_reading callback

Failure policy:
    Acquisition never fails (synthetic fallback). History write failures are
    logged by the log timer and retried on its next firing. Escalation
    failures are reported back to the subject. Nothing here stops the session.
"""

import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Deque, List, Optional, Tuple

from .alerts import AlertState, EscalationOutcome, FallAlertMachine, FallPrompt, LogNotifier, Notifier
from .coordinator import CentralClock, OneShotTask, RecurringTask, TaskScheduler
from .history import HistoryStore
from .sensors.reading import EMPTY_READING, Baseline, SensorReading, SubjectProfile
from .sensors.wearable import BaselineCalibrator, CalibrationSession, WearableCollector, WearableConfig

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Task names
# ---------------------------------------------------------------------------
TASK_POLL        = 'poll'
TASK_LOG         = 'log'
TASK_CALIBRATION = 'calibration'


@dataclass
class MonitoringSession:
    """
    Everything the core knows about one monitored subject.

    Owned by MonitoringPipeline; the components receive it (or parts of it)
    explicitly instead of sharing globals.
    """

    profile: SubjectProfile
    alert: FallAlertMachine
    latest_reading: SensorReading = EMPTY_READING
    baseline: Optional[Baseline] = None
    calibration: Optional[CalibrationSession] = None
    trend: Deque[Tuple[datetime, int]] = field(default_factory=lambda: deque(maxlen=20))
    reading_count: int = 0

    @property
    def subject_id(self) -> str:
        return self.profile.subject_id

    @property
    def is_calibrating(self) -> bool:
        return self.calibration is not None

    def bpm_trend(self) -> List[Tuple[datetime, int]]:
        """Recent (timestamp, bpm) points for the live chart, oldest first."""
        return list(self.trend)


class MonitoringPipeline:
    """
    Scheduler / orchestrator for a single subject.

    Responsibilities:
      - Drive the poll, log and calibration timers
      - Route readings to the alert machine and calibration window
      - Expose user actions: start_calibration, confirm_okay, request_help
      - Publish readings, calibrating state, baselines and alert transitions
      - Cancel every timer on stop(); no callback fires afterwards
    """

    def __init__(
        self,
        profile: SubjectProfile,
        config: Optional[WearableConfig] = None,
        history: Optional[HistoryStore] = None,
        notifier: Optional[Notifier] = None,
        collector: Optional[WearableCollector] = None,
        clock: Optional[CentralClock] = None,
        on_reading: Optional[Callable[[SensorReading], None]] = None,
        on_calibrating: Optional[Callable[[bool], None]] = None,
        on_baseline: Optional[Callable[[Baseline], None]] = None,
        on_alert: Optional[Callable[[AlertState, AlertState], None]] = None,
        on_prompt: Optional[Callable[[FallPrompt], None]] = None,
        on_escalation: Optional[Callable[[EscalationOutcome], None]] = None,
    ):
        """
        Args:
            profile    : Subject being monitored (id + language)
            config     : Wearable / schedule configuration
            history    : Store receiving the periodic log entries
            notifier   : Emergency contact channel. Defaults to LogNotifier
            collector  : Acquisition client. Defaults to one built from config
            clock      : Shared CentralClock for reading / calibration timestamps
            on_*       : Presentation-layer callbacks
        """
        self.config = config if config else WearableConfig.for_session()
        self.config.validate()

        self.clock = clock if clock else CentralClock()
        self.collector = collector if collector else WearableCollector(self.config, clock=self.clock)
        self.calibrator = BaselineCalibrator()
        self.history = history if history else HistoryStore(capacity=self.config.history_capacity)
        self.scheduler = TaskScheduler(owner=f"subject {profile.subject_id}")

        self.on_reading = on_reading
        self.on_calibrating = on_calibrating
        self.on_baseline = on_baseline
        self.on_alert = on_alert
        self.on_prompt = on_prompt
        self.on_escalation = on_escalation

        alert = FallAlertMachine(
            profile=profile,
            notifier=notifier if notifier else LogNotifier(),
            on_prompt=lambda prompt: self._emit(self.on_prompt, prompt),
            on_transition=lambda old, new: self._emit(self.on_alert, old, new),
            on_escalation=lambda outcome: self._emit(self.on_escalation, outcome),
        )
        self.session = MonitoringSession(
            profile=profile,
            alert=alert,
            trend=deque(maxlen=self.config.trend_size),
        )

        self._lock = threading.RLock()
        self._started = False
        self._stopped = False

        logger.info(f"MonitoringPipeline created for subject {profile.subject_id}")

    # -----------------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------------

    def start(self):
        """Register and start the poll and log timers."""
        with self._lock:
            if self._stopped:
                raise RuntimeError("Pipeline already stopped; create a new one")
            if self._started:
                logger.warning("Pipeline already started")
                return
            self._started = True

        self.scheduler.register_task(RecurringTask(TASK_POLL, self.config.poll_interval, self.poll_once))
        self.scheduler.register_task(RecurringTask(TASK_LOG, self.config.log_interval, self.log_once))
        self.scheduler.start_all()

        logger.info(
            f"✓ Monitoring {self.session.subject_id} "
            f"(poll {self.config.poll_interval}s, log {self.config.log_interval}s, "
            f"endpoint {self.config.endpoint or 'synthetic'})"
        )

    def stop(self):
        """
        Cancel every timer, abort in-flight device calls and drop any open
        calibration window. Safe to call more than once.
        """
        with self._lock:
            if self._stopped:
                return
            self._stopped = True
            calibration, self.session.calibration = self.session.calibration, None

        logger.info("Stopping monitoring pipeline...")
        self.collector.close()
        self.scheduler.shutdown()

        if calibration:
            calibration.close()
            logger.info("Open calibration window discarded")
        self.session.alert.reset()

        logger.info("✓ Monitoring pipeline stopped")

    @property
    def is_running(self) -> bool:
        return self._started and not self._stopped

    @property
    def is_calibrating(self) -> bool:
        return self.session.is_calibrating

    @property
    def alert_state(self) -> AlertState:
        return self.session.alert.state

    @property
    def latest_reading(self) -> SensorReading:
        return self.session.latest_reading

    # -----------------------------------------------------------------------
    # Timer bodies
    # -----------------------------------------------------------------------

    def poll_once(self) -> Optional[SensorReading]:
        """
        Acquire one reading and route it.

        Returns:
            The routed reading, or None if the pipeline stopped meanwhile.
        """
        reading = self.collector.acquire()
        if self._stopped:
            return None
        self.handle_reading(reading)
        return reading

    def handle_reading(self, reading: SensorReading):
        """Route a reading to the session state, alert machine and calibration window."""
        with self._lock:
            if self._stopped:
                return
            self.session.latest_reading = reading
            self.session.trend.append((reading.observed_at, reading.bpm))
            self.session.reading_count += 1
            calibration = self.session.calibration

        self.session.alert.process(reading)
        if calibration:
            calibration.add(reading)

        self._emit(self.on_reading, reading)

    def log_once(self) -> bool:
        """
        Append the latest reading to the subject's history.

        Returns:
            True if a reading was logged (False before the first poll).
        """
        with self._lock:
            if self._stopped:
                return False
            reading = self.session.latest_reading
            subject_id = self.session.subject_id

        return self.history.append(subject_id, reading)

    # -----------------------------------------------------------------------
    # User actions
    # -----------------------------------------------------------------------

    def start_calibration(self) -> bool:
        """
        Open a calibration window for config.calibration_duration seconds.

        Returns:
            True if a window was opened, False if one is already running
            (or the pipeline is stopped).
        """
        with self._lock:
            if self._stopped:
                logger.warning("Calibration requested after stop, ignoring")
                return False
            if self.session.calibration is not None:
                logger.info("Calibration already in progress")
                return False

            self.session.calibration = CalibrationSession(
                started_at=self.clock.now(),
                duration=self.config.calibration_duration,
            )

        task = OneShotTask(TASK_CALIBRATION, self.config.calibration_duration, self._finish_calibration)
        try:
            self.scheduler.register_task(task)
        except RuntimeError:
            # stop() raced us
            with self._lock:
                self.session.calibration = None
            return False
        task.start()

        logger.info(f"Calibration started ({self.config.calibration_duration:.0f}s window)")
        self._emit(self.on_calibrating, True)
        return True

    def confirm_okay(self) -> Optional[SensorReading]:
        """
        "I'm fine": dismiss the pending fall prompt.

        Returns:
            The triggering reading with its fall flag cleared, or None if no
            prompt was pending. The latest reading loses its fall flag too,
            even when a later fall arrived while the prompt was open.
        """
        cleared = self.session.alert.confirm_okay()
        if cleared is None:
            return None

        with self._lock:
            latest = self.session.latest_reading
            if latest.is_fall:
                self.session.latest_reading = latest.cleared()
        return cleared

    def request_help(self) -> Optional[EscalationOutcome]:
        """
        "Send help": notify the emergency contact once.

        Returns:
            Outcome of the attempt, or None if no prompt was pending.
        """
        return self.session.alert.request_help()

    # -----------------------------------------------------------------------
    # Private
    # -----------------------------------------------------------------------

    def _finish_calibration(self):
        with self._lock:
            calibration = self.session.calibration
            if self._stopped or calibration is None:
                return
            self.session.calibration = None
            window = calibration.close()
            baseline = self.calibrator.compute_baseline(window)
            self.session.baseline = baseline

        logger.info(
            f"✓ Calibration finished after {self.clock.seconds_since(calibration.started_at):.1f}s: "
            f"{baseline.avg_bpm} bpm / {baseline.avg_spo2}% from {len(window)} readings"
        )
        self._emit(self.on_calibrating, False)
        self._emit(self.on_baseline, baseline)

    def _emit(self, callback: Optional[Callable], *args):
        """Invoke a presentation callback unless the pipeline has stopped."""
        if callback is None or self._stopped:
            return
        try:
            callback(*args)
        except Exception as e:
            logger.error(f"Error in {getattr(callback, '__name__', 'callback')}: {e}", exc_info=True)

    def get_status(self) -> dict:
        """
        Return a summary of the session for logging / UI display.
        """
        baseline = self.session.baseline
        return {
            'subject_id'     : self.session.subject_id,
            'running'        : self.is_running,
            'readings'       : self.session.reading_count,
            'latest'         : self.session.latest_reading.to_dict(),
            'calibrating'    : self.is_calibrating,
            'baseline'       : baseline.to_dict() if baseline else None,
            'alert'          : self.session.alert.get_status(),
            'collector'      : self.collector.get_status(),
            'tasks'          : self.scheduler.get_status(),
            'clock'          : self.clock.get_stats(),
        }

    # -----------------------------------------------------------------------
    # Dunder helpers
    # -----------------------------------------------------------------------

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()

    def __repr__(self):
        return (
            f"<MonitoringPipeline("
            f"subject={self.session.subject_id}, "
            f"alert={self.alert_state.value}, "
            f"calibrating={self.is_calibrating})>"
        )
