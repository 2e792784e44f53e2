import logging
import threading
from typing import Optional, Sequence

import requests

logger = logging.getLogger(__name__)


class NotificationRelay:
    """
    Client for the send-booking-email relay endpoint.

    Notifications are best effort: they go out on a background thread after the booking write has succeeded, and any failure is only logged.
    """

    def __init__(self, relay_url: Optional[str], recipients: Sequence[str]):
        self._relay_url = relay_url
        self._recipients = list(recipients)

    @property
    def is_configured(self) -> bool:
        return bool(self._relay_url)

    def send(self, subject: str, body: str) -> bool:
        """
        Posts {subject, body, to} to the relay and waits for the response.

        Returns True if the relay accepted the email, False otherwise.
        """
        if not self.is_configured:
            logger.info(f"No notification relay configured. Skipping: {subject}")
            return False
        logger.info("Sending email notification...")
        try:
            response = requests.post(self._relay_url, json={"subject": subject, "body": body, "to": self._recipients})
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Failed to send email: {e}")
            return False
        logger.info("Email sent successfully")
        return True

    def dispatch(self, subject: str, body: str) -> Optional[threading.Thread]:
        """Sends the notification without blocking the caller. Returns the worker thread, or None if nothing was sent."""
        if not self.is_configured:
            logger.info(f"No notification relay configured. Skipping: {subject}")
            return None
        worker = threading.Thread(target=self.send, args=(subject, body), daemon=True)
        worker.start()
        return worker
