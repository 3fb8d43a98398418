"""
Domain layer - Registration intake business logic, no web framework imports.

This package contains the conference registration pipeline: referral code
resolution, payload validation, payment proof handling and the committer
that ties them together. It defines its own port interfaces for
infrastructure abstraction, ensuring true hexagonal architecture decoupling.
"""

from .exceptions import (
    EmailAlreadyRegistered,
    InvalidReferralCodes,
    PayloadInvalid,
    PaymentProofInvalid,
    PaymentProofStorageError,
    PaymentProofUploadFailed,
    RegistrationError,
    StorageContainerMissing,
    SubmissionRejected,
)
from .models import NotificationKind, PaymentStatus, Registration, RegistrationDraft, Role
from .payment_proof import PaymentProofHandler
from .ports import EmailSender, ObjectStorage, RegistrationRepository
from .referrals import ReferralRegistry, ReferralResolver
from .registration import RegistrationCommitter
from .validation import PayloadValidator

__all__ = [
    "EmailAlreadyRegistered",
    "EmailSender",
    "InvalidReferralCodes",
    "NotificationKind",
    "ObjectStorage",
    "PayloadInvalid",
    "PayloadValidator",
    "PaymentProofHandler",
    "PaymentProofInvalid",
    "PaymentProofStorageError",
    "PaymentProofUploadFailed",
    "PaymentStatus",
    "ReferralRegistry",
    "ReferralResolver",
    "Registration",
    "RegistrationCommitter",
    "RegistrationDraft",
    "RegistrationError",
    "RegistrationRepository",
    "Role",
    "StorageContainerMissing",
    "SubmissionRejected",
]
