"""
Domain exceptions - Semantic error types for registration.

This module defines domain-specific exceptions that communicate
business rule violations without leaking infrastructure details.
Each class maps to exactly one response classification at the API
boundary.
"""

from .models import InvalidReferralCode


class RegistrationError(Exception):
    """Base class for registration domain errors."""

    pass


class SubmissionRejected(RegistrationError):
    """
    Submission failed field-level checks.

    Carries every violation found, not just the first, as a list of
    {"field": ..., "message": ...} dicts.
    """

    def __init__(self, errors: list[dict[str, str]]) -> None:
        super().__init__(f"{len(errors)} field error(s)")
        self.errors = errors


class PayloadInvalid(SubmissionRejected):
    """Schema or business-rule violation in the registration payload."""

    pass


class PaymentProofInvalid(SubmissionRejected):
    """Payment confirmation block is missing, malformed or undecodable."""

    pass


class InvalidReferralCodes(RegistrationError):
    """One or more referral codes are not in the registry."""

    def __init__(self, invalid_codes: tuple[InvalidReferralCode, ...]) -> None:
        super().__init__(format_referral_message(invalid_codes))
        self.invalid_codes = invalid_codes

    @property
    def message(self) -> str:
        return str(self)


class EmailAlreadyRegistered(RegistrationError):
    """Email is already used by a committed registration."""

    pass


class PaymentProofStorageError(RegistrationError):
    """Base class for object storage failures while storing payment proof."""

    pass


class StorageContainerMissing(PaymentProofStorageError):
    """
    Storage bucket does not exist and could not be created.

    operator_message carries setup instructions for the logs;
    user_message is safe to show to applicants.
    """

    DEFAULT_USER_MESSAGE = (
        "Payment proof uploads are temporarily unavailable while we finish "
        "setting up storage. Please try again later or contact support."
    )

    def __init__(self, operator_message: str, user_message: str = DEFAULT_USER_MESSAGE) -> None:
        super().__init__(operator_message)
        self.operator_message = operator_message
        self.user_message = user_message


class PaymentProofUploadFailed(PaymentProofStorageError):
    """Upload failed for a reason other than a missing bucket."""

    pass


def format_referral_message(invalid_codes: tuple[InvalidReferralCode, ...]) -> str:
    """Build the applicant-facing message for unrecognized referral codes."""
    parts = []
    for entry in invalid_codes:
        message = f'Referral code "{entry.code}" is not recognized.'
        if entry.suggestions:
            options = " or ".join(f"{s.code} ({s.owner})" for s in entry.suggestions)
            message += f" Did you mean {options}?"
        parts.append(message)
    return " ".join(parts)
