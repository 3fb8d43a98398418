"""
Registration committer - Orchestrates one conference sign-up.

Pipeline (forward-only, any step may end in an error)
=====================================================

    Received
      -> ProofUploaded   (only when paymentStatus == "yes")
      -> Validated       (core fields + role payload)
      -> ReferralChecked (every submitted code is registered)
      -> Inserted        (single row, UNIQUE(email))
      -> Notified        (best effort, scheduled off the response path)
      -> Done

The proof is uploaded before validation so a valid artifact is durable as
early as possible. The flip side is that a rejection at any later step
leaves the artifact in storage with no registration pointing at it. These
orphans are accepted; the committer logs their keys and never deletes them.

Referral codes are checked last among the validation steps: they are
optional and the cheapest field for the applicant to fix and resubmit.

Email uniqueness is enforced only by the repository's UNIQUE constraint.
Of two concurrent submissions for the same address exactly one insert
succeeds; the other raises EmailAlreadyRegistered.
"""

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from .exceptions import InvalidReferralCodes
from .models import NotificationKind, PaymentProof, PaymentStatus, Registration, RegistrationDraft
from .payment_proof import PaymentProofHandler
from .ports import EmailSender, RegistrationRepository
from .referrals import ReferralResolver, collect_referral_codes
from .validation import PayloadValidator

logger = logging.getLogger(__name__)

Scheduler = Callable[..., Any]


def _run_now(func: Callable[..., Any], *args: Any) -> None:
    func(*args)


def payment_status_for(raw_status: Any) -> PaymentStatus:
    """Map the envelope's paymentStatus to the stored status."""
    return PaymentStatus.PENDING if raw_status in ("yes", "pending") else PaymentStatus.UNPAID


def notification_for(raw_status: Any) -> NotificationKind | None:
    """Pick the email to send for a submitted paymentStatus, if any."""
    if raw_status == "yes":
        return NotificationKind.CONFIRMED
    if raw_status == "no":
        return NotificationKind.REMINDER
    return None


@dataclass
class RegistrationCommitter:
    """
    Domain service for conference registration.

    Orchestrates payment proof upload, payload validation, referral code
    resolution, persistence and notification. schedule receives
    (func, *args) and decides where the notification runs; over HTTP it is
    FastAPI's BackgroundTasks.add_task so the response is never blocked.
    """

    repository: RegistrationRepository
    email_sender: EmailSender
    validator: PayloadValidator
    resolver: ReferralResolver
    proof_handler: PaymentProofHandler
    schedule: Scheduler = field(default=_run_now)

    def commit(self, envelope: Mapping[str, Any]) -> Registration:
        """
        Commit one submission envelope.

        Args:
            envelope: Untrusted JSON body of the sign-up request

        Returns:
            The committed Registration

        Raises:
            PaymentProofInvalid: Malformed payment confirmation (nothing stored)
            StorageContainerMissing: Payment proof bucket not configured
            PaymentProofUploadFailed: Storage rejected the upload
            PayloadInvalid: Field or business-rule violations
            InvalidReferralCodes: Unregistered referral codes, with suggestions
            EmailAlreadyRegistered: Email taken by an earlier registration
        """
        raw_status = envelope.get("paymentStatus")

        proof: PaymentProof | None = None
        if raw_status == "yes":
            proof = self.proof_handler.store(envelope.get("paymentConfirmation"))

        try:
            draft = self.validator.validate(envelope)

            resolution = self.resolver.resolve(collect_referral_codes(envelope))
            if not resolution.is_valid:
                logger.warning(
                    "Unrecognized referral code(s): %s",
                    ", ".join(entry.code for entry in resolution.invalid_codes),
                )
                raise InvalidReferralCodes(resolution.invalid_codes)

            draft.referral_codes = list(resolution.valid_codes) or None
            draft.payment_status = payment_status_for(raw_status)
            draft.payment_proof = proof

            registration = self.repository.insert_registration(draft)
        except Exception:
            if proof is not None:
                logger.warning("Payment proof left orphaned: %s", proof.storage_path)
            raise

        logger.info("Registration %s committed (role=%s)", registration.id, registration.role.value)

        kind = notification_for(raw_status)
        if kind is not None:
            self.schedule(self._notify, kind, self._recipient(draft))

        return registration

    def _recipient(self, draft: RegistrationDraft) -> dict[str, str | None]:
        return {
            "email": draft.email,
            "first_name": draft.first_name,
            "last_name": draft.last_name,
            "role": draft.role.value,
            "payment_proof_file_name": draft.payment_proof.file_name if draft.payment_proof else None,
        }

    def _notify(self, kind: NotificationKind, recipient: dict[str, str | None]) -> None:
        """
        Send the post-registration email.

        The registration is already committed; a failure here is logged
        and never propagates.
        """
        try:
            self.email_sender.send(kind, recipient)
        except Exception:
            logger.exception("Failed to send %s email to %s", kind.value, recipient["email"])
