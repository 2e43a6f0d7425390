# backend/tablebook/services/email.py
"""
Email delivery for reservation notifications.

``ResendEmailDispatcher`` sends through the Resend API;
``ConsoleEmailDispatcher`` only logs and is used when no API key is set.
Both satisfy the ``NotificationDispatcher`` protocol.
"""

import logging
import re
from typing import Optional, Protocol, runtime_checkable

import resend

from ..core.config import settings
from ..core.exceptions import DependencyFailureException

logger = logging.getLogger(__name__)


@runtime_checkable
class NotificationDispatcher(Protocol):
    """Delivers one message to one recipient address."""

    def send(self, recipient: str, subject: str, body: str) -> bool:
        ...


def html_to_text(html_content: str) -> str:
    """Convert HTML content to plain text for better deliverability"""
    text = re.sub(r"<[^>]+>", "", html_content)
    text = re.sub(r"\s+", " ", text)
    return text.strip()


class ResendEmailDispatcher:
    """Dispatcher backed by the Resend API."""

    def __init__(self, api_key: Optional[str] = None, from_email: Optional[str] = None):
        api_key = api_key or settings.resend_api_key
        if not api_key:
            raise DependencyFailureException("Resend API key not configured")
        resend.api_key = api_key
        self.from_email = from_email or settings.from_email
        logger.info("ResendEmailDispatcher initialized")

    def send(self, recipient: str, subject: str, body: str) -> bool:
        """
        Send an HTML email; raises DependencyFailureException when Resend rejects it.
        """
        email_data = {
            "from": self.from_email,
            "to": [recipient],
            "subject": subject,
            "html": body,
            "text": html_to_text(body),
        }
        try:
            response = resend.Emails.send(email_data)
        except Exception as e:
            logger.error(f"Failed to send email to {recipient}: {str(e)}")
            raise DependencyFailureException(f"Email delivery failed: {str(e)}") from e

        logger.info(f"Email sent to {recipient}: {subject} (id={response.get('id')})")
        return True


class ConsoleEmailDispatcher:
    """No-op dispatcher used when real providers are unavailable."""

    def send(self, recipient: str, subject: str, body: str) -> bool:
        logger.info(f"[console email] to={recipient} subject={subject!r} body={html_to_text(body)!r}")
        return True


def build_dispatcher() -> NotificationDispatcher:
    """Pick the Resend dispatcher when configured, else the console one."""
    if settings.email_delivery_configured:
        return ResendEmailDispatcher()
    return ConsoleEmailDispatcher()
