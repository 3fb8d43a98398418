"""
Registration email content.

Shared by every EmailSender adapter so the console output matches what
applicants actually receive.
"""

from src.domain.models import NotificationKind

CONFERENCE_NAME = "VOFMUN 2026"
CONTACT_ADDRESS = "conference@vofmun.org"


def render_message(kind: NotificationKind, recipient: dict[str, str | None]) -> tuple[str, str]:
    """Return (subject, plain-text body) for a registration email."""
    name = f"{recipient.get('first_name') or ''} {recipient.get('last_name') or ''}".strip() or "there"
    role = recipient.get("role") or "participant"

    if kind is NotificationKind.CONFIRMED:
        subject = f"{CONFERENCE_NAME}: registration and payment proof received"
        lines = [
            f"Hi {name},",
            "",
            f"Thank you for registering as a {role} for {CONFERENCE_NAME}.",
            "We have received your proof of payment"
            + (f" ({recipient['payment_proof_file_name']})" if recipient.get("payment_proof_file_name") else "")
            + " and our team will verify it shortly.",
        ]
    else:
        subject = f"{CONFERENCE_NAME}: complete your registration payment"
        lines = [
            f"Hi {name},",
            "",
            f"Thank you for registering as a {role} for {CONFERENCE_NAME}.",
            "Your spot is not confirmed until payment is received.",
            "Please complete your payment and send the proof to us as soon as possible.",
        ]

    lines += ["", f"Questions? Email {CONTACT_ADDRESS}."]
    return subject, "\n".join(lines)
