"""
Task Scheduler
Cancellable recurring and one-shot timers for a monitoring session
"""

import logging
import threading
import time
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)


class RecurringTask:
    """
    Runs a callable at a fixed rate on its own thread.

    - First firing happens one interval after start()
    - The body always runs to completion before the next firing
    - Firings missed while the body was running are skipped, not queued
    - Exceptions raised by the body are logged and the task keeps running
    """

    def __init__(self, name: str, interval: float, body: Callable[[], None]):
        """
        Args:
            name:     Task identifier, used for the thread name and logging.
            interval: Seconds between firings.
            body:     Zero-argument callable executed on every firing.
        """
        if interval <= 0:
            raise ValueError(f"Task '{name}' interval must be positive, got {interval}")

        self.name = name
        self.interval = interval
        self.body = body

        self.fire_count = 0
        self.skipped_count = 0
        self.last_error: Optional[str] = None

        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    def start(self):
        """Start the task thread. No-op if already running."""
        if self.is_running:
            logger.warning(f"Task '{self.name}' already running")
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run,
            name=f"{self.name}-Task-Thread",
            daemon=True
        )
        self._thread.start()
        logger.debug(f"Task '{self.name}' started (every {self.interval}s)")

    def stop(self, timeout: float = 5.0):
        """
        Cancel future firings and wait for an in-progress body to finish.

        Args:
            timeout: Maximum seconds to wait for the thread to exit.
        """
        self._stop_event.set()

        thread = self._thread
        if thread and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=timeout)
            if thread.is_alive():
                logger.warning(f"Task '{self.name}' did not exit within {timeout}s")

    @property
    def is_running(self) -> bool:
        """True while the task thread is alive, including a body that outlived stop()."""
        return bool(self._thread and self._thread.is_alive())

    @property
    def stopped(self) -> bool:
        """True once stop() has been requested."""
        return self._stop_event.is_set()

    def _run(self):
        next_fire = time.monotonic() + self.interval

        while not self._stop_event.wait(max(0.0, next_fire - time.monotonic())):
            try:
                self.body()
                self.fire_count += 1
            except Exception as e:
                self.last_error = f"{type(e).__name__}: {e}"
                logger.error(f"Error in task '{self.name}': {e}", exc_info=True)

            next_fire += self.interval
            now = time.monotonic()
            if next_fire <= now:
                missed = int((now - next_fire) // self.interval) + 1
                self.skipped_count += missed
                next_fire += missed * self.interval

        logger.debug(f"Task '{self.name}' loop exited")

    def get_status(self) -> dict:
        return {
            'task': self.name,
            'kind': 'recurring',
            'interval': self.interval,
            'is_running': self.is_running,
            'fire_count': self.fire_count,
            'skipped_count': self.skipped_count,
            'last_error': self.last_error,
        }

    def __repr__(self):
        status = "running" if self.is_running else "stopped"
        return f"<RecurringTask({self.name}, every={self.interval}s, status={status})>"


class OneShotTask:
    """
    Runs a callable once after a delay unless cancelled first.
    """

    def __init__(self, name: str, delay: float, body: Callable[[], None]):
        self.name = name
        self.delay = delay
        self.body = body

        self.fired = False
        self.last_error: Optional[str] = None

        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    @property
    def is_running(self) -> bool:
        return bool(self._thread and self._thread.is_alive())

    @property
    def is_pending(self) -> bool:
        """True while the delay is still counting down."""
        return self.is_running and not self.fired and not self._stop_event.is_set()

    def start(self):
        if self.is_running:
            logger.warning(f"Task '{self.name}' already scheduled")
            return

        self._stop_event.clear()
        self.fired = False
        self._thread = threading.Thread(
            target=self._run,
            name=f"{self.name}-Timer-Thread",
            daemon=True
        )
        self._thread.start()
        logger.debug(f"Task '{self.name}' scheduled in {self.delay}s")

    def stop(self, timeout: float = 5.0):
        """Cancel the pending firing (if any) and join the thread."""
        self._stop_event.set()

        thread = self._thread
        if thread and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=timeout)

    def _run(self):
        if self._stop_event.wait(self.delay):
            logger.debug(f"Task '{self.name}' cancelled before firing")
            return

        self.fired = True
        try:
            self.body()
        except Exception as e:
            self.last_error = f"{type(e).__name__}: {e}"
            logger.error(f"Error in task '{self.name}': {e}", exc_info=True)

    def get_status(self) -> dict:
        return {
            'task': self.name,
            'kind': 'one_shot',
            'delay': self.delay,
            'is_pending': self.is_pending,
            'fired': self.fired,
            'last_error': self.last_error,
        }

    def __repr__(self):
        return f"<OneShotTask({self.name}, delay={self.delay}s, fired={self.fired})>"


class TaskScheduler:
    """
    Owns every timer of one monitoring session

    Responsibilities:
    - Register recurring and one-shot tasks by name
    - Start / cancel tasks individually or all at once
    - Guarantee nothing fires after shutdown()
    - Report task status
    """

    def __init__(self, owner: str):
        """
        Args:
            owner: Identifier of the session owning these timers (for logging).
        """
        self.owner = owner
        self.tasks: Dict[str, object] = {}
        self._lock = threading.Lock()
        self._shut_down = False

        logger.info(f"Task scheduler initialized for {owner}")

    def register_task(self, task):
        """
        Register a RecurringTask or OneShotTask, replacing (and cancelling)
        any task already registered under the same name.
        """
        with self._lock:
            if self._shut_down:
                raise RuntimeError(f"Scheduler for {self.owner} already shut down")

            previous = self.tasks.get(task.name)
            self.tasks[task.name] = task

        if previous is not None:
            logger.warning(f"Task '{task.name}' already registered, replacing")
            previous.stop()

        logger.debug(f"✓ Registered task: {task.name}")
        return task

    def start_task(self, name: str):
        """
        Start a registered task.

        Raises:
            ValueError: If no task is registered under that name.
        """
        if name not in self.tasks:
            logger.error(f"Task '{name}' not registered")
            raise ValueError(f"Unknown task: {name}")

        self.tasks[name].start()

    def start_all(self):
        for name in list(self.tasks):
            self.start_task(name)
        logger.info(f"✓ Started {len(self.tasks)} tasks for {self.owner}")

    def shutdown(self):
        """Cancel and join every task. Further registrations are rejected."""
        with self._lock:
            self._shut_down = True
            tasks = list(self.tasks.values())

        for task in tasks:
            try:
                task.stop()
            except Exception as e:
                logger.error(f"Error stopping task '{task.name}': {e}")

        logger.info(f"✓ All tasks stopped for {self.owner}")

    def get_status(self) -> Dict[str, dict]:
        return {name: task.get_status() for name, task in self.tasks.items()}

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown()

    def __repr__(self):
        return f"<TaskScheduler(owner={self.owner}, tasks={len(self.tasks)})>"
