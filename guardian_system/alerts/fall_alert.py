"""
Fall Alert State Machine
Debounced confirm / escalate workflow for detected falls

States:
    IDLE                   no fall pending
    AWAITING_CONFIRMATION  prompt shown, waiting for "I'm fine" or "send help"
    ESCALATED              emergency contact being notified

Transitions:
    IDLE --fall reading--> AWAITING_CONFIRMATION   (prompt raised once)
    AWAITING_CONFIRMATION --confirm_okay--> IDLE   (fall flag cleared)
    AWAITING_CONFIRMATION --request_help--> ESCALATED --> IDLE

Fall readings arriving outside IDLE are ignored. Alert state is not
persisted: a restarted process always begins in IDLE.
"""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional

from ..sensors.reading import SensorReading, SubjectProfile
from .messages import FallPrompt, escalation_message, escalation_result_message, fall_prompt
from .notifier import Notifier

logger = logging.getLogger(__name__)


class AlertState(Enum):
    IDLE = 'idle'
    AWAITING_CONFIRMATION = 'awaiting_confirmation'
    ESCALATED = 'escalated'


@dataclass(frozen=True)
class EscalationOutcome:
    """Result of one "send help" press, shown back to the subject."""

    subject_id: str
    delivered: bool
    feedback: str
    error: Optional[str] = None
    attempted_at: Optional[datetime] = None


class FallAlertMachine:
    """
    Fall alert workflow for one subject

    Responsibilities:
    - Raise exactly one confirmation prompt per fall event
    - Clear the fall on "I'm fine"
    - Send exactly one emergency notification per "send help" press
    - Report delivery failures to the subject instead of hiding them
    """

    def __init__(
        self,
        profile: SubjectProfile,
        notifier: Notifier,
        on_prompt: Optional[Callable[[FallPrompt], None]] = None,
        on_transition: Optional[Callable[[AlertState, AlertState], None]] = None,
        on_escalation: Optional[Callable[[EscalationOutcome], None]] = None,
    ):
        """
        Args:
            profile:       Subject whose falls are handled (id + language).
            notifier:      Channel used to reach the emergency contact.
            on_prompt:     Called with the prompt when a fall is detected.
            on_transition: Called with (old_state, new_state) on every transition.
            on_escalation: Called with the outcome of every escalation attempt.
        """
        self.profile = profile
        self.notifier = notifier
        self.on_prompt = on_prompt
        self.on_transition = on_transition
        self.on_escalation = on_escalation

        self._lock = threading.RLock()
        self._state = AlertState.IDLE
        self._trigger: Optional[SensorReading] = None

        self.prompt_count = 0
        self.escalations_delivered = 0
        self.escalations_failed = 0

    @property
    def state(self) -> AlertState:
        return self._state

    @property
    def trigger_reading(self) -> Optional[SensorReading]:
        """Reading that raised the pending prompt, if any."""
        return self._trigger

    def process(self, reading: SensorReading) -> bool:
        """
        Feed one reading to the machine.

        Returns:
            True if this reading raised a new confirmation prompt.
        """
        if not reading.is_fall:
            return False

        with self._lock:
            if self._state is not AlertState.IDLE:
                logger.debug(f"Fall reading ignored, alert already {self._state.value}")
                return False

            self._trigger = reading
            self._set_state(AlertState.AWAITING_CONFIRMATION)
            self.prompt_count += 1
            prompt = fall_prompt(self.profile.subject_id, self.profile.language)

        logger.warning(f"⚠ Fall detected for {self.profile.subject_id}, awaiting confirmation")
        if self.on_prompt:
            self.on_prompt(prompt)
        return True

    def confirm_okay(self) -> Optional[SensorReading]:
        """
        Subject reports they are fine.

        Returns:
            The triggering reading with its fall flag cleared, or None when
            no prompt was pending.
        """
        with self._lock:
            if self._state is not AlertState.AWAITING_CONFIRMATION:
                logger.warning(f"confirm_okay ignored in state {self._state.value}")
                return None

            cleared = self._trigger.cleared() if self._trigger else None
            self._trigger = None
            self._set_state(AlertState.IDLE)

        logger.info(f"✓ {self.profile.subject_id} confirmed they are okay")
        return cleared

    def request_help(self) -> Optional[EscalationOutcome]:
        """
        Subject asks for help: notify the emergency contact once.

        Delivery failures are not retried. They are logged, counted and
        returned in the outcome so the subject can see the alert did not go out.

        Returns:
            EscalationOutcome, or None when no prompt was pending.
        """
        subject_id = self.profile.subject_id

        with self._lock:
            if self._state is not AlertState.AWAITING_CONFIRMATION:
                logger.warning(f"request_help ignored in state {self._state.value}")
                return None
            self._set_state(AlertState.ESCALATED)

        # Notify outside the lock so a slow channel does not stall polling;
        # ESCALATED already rejects new falls and repeated presses
        error = None
        try:
            self.notifier.notify(subject_id, escalation_message(subject_id, self.profile.language))
            logger.info(f"✓ Emergency alert sent for patient ID: {subject_id}")
        except Exception as e:
            error = f"{type(e).__name__}: {e}"
            logger.error(f"✗ Emergency alert for patient ID {subject_id} failed: {error}")

        delivered = error is None
        outcome = EscalationOutcome(
            subject_id=subject_id,
            delivered=delivered,
            feedback=escalation_result_message(subject_id, delivered, self.profile.language),
            error=error,
            attempted_at=datetime.now(timezone.utc),
        )

        with self._lock:
            if delivered:
                self.escalations_delivered += 1
            else:
                self.escalations_failed += 1
            self._trigger = None
            self._set_state(AlertState.IDLE)

        if self.on_escalation:
            self.on_escalation(outcome)
        return outcome

    def reset(self):
        """Drop any pending alert without notifying (session teardown)."""
        with self._lock:
            self._trigger = None
            if self._state is not AlertState.IDLE:
                self._set_state(AlertState.IDLE)

    def _set_state(self, new_state: AlertState):
        old_state, self._state = self._state, new_state
        logger.debug(f"Alert {old_state.value} -> {new_state.value}")
        if self.on_transition:
            self.on_transition(old_state, new_state)

    def get_status(self) -> dict:
        return {
            'subject_id': self.profile.subject_id,
            'state': self._state.value,
            'prompts': self.prompt_count,
            'escalations_delivered': self.escalations_delivered,
            'escalations_failed': self.escalations_failed,
        }

    def __repr__(self):
        return f"<FallAlertMachine(subject={self.profile.subject_id}, state={self._state.value})>"
