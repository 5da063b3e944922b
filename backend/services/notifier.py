"""Transactional email notifier backed by the Resend HTTP API."""

import logging
from dataclasses import dataclass
from threading import Lock
from typing import Optional
import requests


logger = logging.getLogger(__name__)


class NotificationError(Exception):
    """Raised when the notification request could not be delivered to the API."""
    pass


@dataclass
class NotificationResult:
    sent: bool
    error: Optional[str] = None
    message_id: Optional[str] = None


class ResendNotifier:
    """Sends a single HTML email per call. Never retries."""

    def __init__(self, api_key, api_url='https://api.resend.com/emails', timeout=10.0):
        self.api_key = api_key
        self.api_url = api_url
        self.timeout = timeout

    @property
    def is_configured(self):
        return bool(self.api_key)

    def send(self, from_address, to, subject, html):
        """
        Send one email.

        Args:
            from_address: Sender, e.g. 'Daily Reports <reports@example.com>'
            to: List of recipient addresses
            subject: Subject line
            html: HTML body

        Returns:
            NotificationResult: sent=False with error detail when the API rejects the message

        Raises:
            NotificationError: If no API key is configured or the request fails in transit
        """
        if not self.is_configured:
            raise NotificationError('RESEND_API_KEY is not set')

        try:
            response = requests.post(
                self.api_url,
                headers={'Authorization': f"Bearer {self.api_key}"},
                json={'from': from_address, 'to': list(to), 'subject': subject, 'html': html},
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise NotificationError(f"Notification request failed: {e}") from e

        try:
            payload = response.json()
        except ValueError:
            payload = {}

        if response.status_code >= 400:
            error = payload.get('message') if isinstance(payload, dict) else None
            error = error or f"{response.status_code} {response.reason}"
            logger.error(f"Resend rejected notification email: {error}")
            return NotificationResult(sent=False, error=error)

        message_id = payload.get('id') if isinstance(payload, dict) else None
        logger.info(f"Notification email accepted by Resend, id: {message_id}")
        return NotificationResult(sent=True, message_id=message_id)


# Global instance
_notifier = None
_notifier_lock = Lock()


def get_notifier(settings=None):
    """Get or create the notifier instance (thread-safe)."""
    global _notifier
    if _notifier is None:
        with _notifier_lock:
            if _notifier is None:
                if settings is None:
                    from ..config_manager import ConfigManager
                    settings = ConfigManager()
                _notifier = ResendNotifier(
                    api_key=settings.resend_api_key,
                    api_url=settings.resend_api_url,
                    timeout=settings.notify_timeout,
                )
                if not _notifier.is_configured:
                    logger.warning("RESEND_API_KEY not set; notification emails will be skipped")
    return _notifier
