"""
Emergency notification channels.

Every channel exposes notify(subject_id, message) and raises
NotificationError when the message was not delivered. Nothing here retries.
"""

import logging
import time
from typing import Optional, Protocol

import requests

logger = logging.getLogger(__name__)


class NotificationError(Exception):
    """Escalation message could not be delivered."""


class Notifier(Protocol):
    def notify(self, subject_id: str, message: str) -> None: ...


class LogNotifier:
    """Writes the alert to the log only. Used when no contact channel is configured."""

    def __init__(self):
        self.sent = []

    def notify(self, subject_id: str, message: str) -> None:
        logger.warning(f"Emergency alert for patient ID {subject_id}: {message}")
        self.sent.append((subject_id, message))


class WebhookNotifier:
    """POSTs a JSON alert to a guardian / caregiver webhook."""

    def __init__(self, url: str, timeout: float = 4.0, session: Optional[requests.Session] = None):
        """
        Args:
            url:     Webhook endpoint.
            timeout: Seconds before the POST is abandoned.
            session: requests.Session to send with.
        """
        if not url:
            raise ValueError("Webhook URL is required")
        self.url = url
        self.timeout = timeout
        self.session = session if session else requests.Session()

    def notify(self, subject_id: str, message: str) -> None:
        payload = {
            "type": "fall",
            "subject_id": subject_id,
            "message": message,
            "ts": int(time.time()),
        }
        try:
            response = self.session.post(self.url, json=payload, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise NotificationError(f"Webhook delivery failed: {e}") from e

        logger.info(f"✓ Webhook alert delivered for {subject_id}")


class TelegramNotifier:
    """Telegram Bot API wrapper for sending emergency alerts to a family chat."""

    def __init__(self, bot_token: Optional[str] = None, chat_id: Optional[str] = None, timeout: float = 10.0):
        """
        Args:
            bot_token: Telegram bot token
            chat_id:   Telegram chat ID of the emergency contact
            timeout:   Seconds before the request is abandoned
        """
        self.bot_token = bot_token
        self.chat_id = chat_id
        self.timeout = timeout
        self.base_url = (
            f"https://api.telegram.org/bot{bot_token}" if bot_token else None
        )

    def notify(self, subject_id: str, message: str) -> None:
        if not self.bot_token or not self.chat_id:
            raise NotificationError("Telegram bot not configured")

        data = {
            "chat_id": self.chat_id,
            "text": message,
        }
        try:
            response = requests.post(f"{self.base_url}/sendMessage", data=data, timeout=self.timeout)
        except requests.RequestException as e:
            raise NotificationError(f"Telegram request failed: {e}") from e

        if response.status_code == 404:
            raise NotificationError("Telegram 404: Bot not found. Check bot token and chat_id.")
        if response.status_code != 200:
            raise NotificationError(f"Telegram API error: {response.status_code} - {response.text}")

        logger.info(f"✓ Telegram alert delivered for {subject_id}")
