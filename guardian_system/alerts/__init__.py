"""
Guardian System Alerts
Fall confirmation workflow and emergency notification channels
"""

from .fall_alert import FallAlertMachine, AlertState, EscalationOutcome
from .messages import FallPrompt
from .notifier import Notifier, NotificationError, LogNotifier, WebhookNotifier, TelegramNotifier

__all__ = [
    'FallAlertMachine',
    'AlertState',
    'EscalationOutcome',
    'FallPrompt',
    'Notifier',
    'NotificationError',
    'LogNotifier',
    'WebhookNotifier',
    'TelegramNotifier',
]
