"""
Resend email sender adapter - Implements EmailSender protocol over HTTP.

Posts to the Resend /emails endpoint with httpx. Errors are raised to the
caller; the committer logs and swallows them since the registration is
already stored by the time an email goes out.
"""

import logging

import httpx

from src.domain.models import NotificationKind

from .messages import render_message

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com"


class ResendEmailSender:
    """
    Implements EmailSender protocol via the Resend API.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, client: httpx.Client, sender: str) -> None:
        self._client = client
        self.sender = sender

    @classmethod
    def from_api_key(cls, api_key: str, sender: str, timeout: float = 10.0) -> "ResendEmailSender":
        client = httpx.Client(
            base_url=RESEND_API_URL,
            headers={"Authorization": f"Bearer {api_key}"},
            timeout=timeout,
        )
        return cls(client, sender)

    def send(self, kind: NotificationKind, recipient: dict[str, str | None]) -> None:
        subject, body = render_message(kind, recipient)
        response = self._client.post(
            "/emails",
            json={
                "from": self.sender,
                "to": [recipient["email"]],
                "subject": subject,
                "text": body,
            },
        )
        response.raise_for_status()
        logger.info("Sent %s email to %s", kind.value, recipient["email"])

    def close(self) -> None:
        self._client.close()
