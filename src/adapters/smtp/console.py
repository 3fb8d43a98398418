"""
Console email sender adapter - Implements EmailSender protocol.

This module provides a console-based implementation of the domain's
email sender port, logging registration emails for demo purposes.
"""

import logging

from src.domain.models import NotificationKind

from .messages import render_message

logger = logging.getLogger(__name__)


class ConsoleEmailSender:
    """
    Implements EmailSender protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    For demo/development purposes - prints emails to stdout.
    """

    def send(self, kind: NotificationKind, recipient: dict[str, str | None]) -> None:
        """
        Log a registration email to console (simulates email delivery).

        In production, this is replaced with the Resend adapter.
        Logged at INFO level to be visible in docker-compose logs.

        Args:
            kind: CONFIRMED or REMINDER
            recipient: Recipient fields (email is normalized by the domain layer)
        """
        subject, _ = render_message(kind, recipient)
        logger.info("[EMAIL:%s] To: %s Subject: %s", kind.value, recipient["email"], subject)
