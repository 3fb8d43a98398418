"""
Domain models - Value types for the registration intake pipeline.

Plain dataclasses and enums shared by the resolver, validator,
payment proof handler and committer. Nothing here touches I/O.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class Role(str, Enum):
    """Conference role an applicant registers for."""

    DELEGATE = "delegate"
    CHAIR = "chair"
    ADMIN = "admin"


class PaymentStatus(str, Enum):
    """
    Stored payment status.

    A submission that claims to have paid is stored as PENDING until the
    secretariat checks the uploaded proof; everything else is UNPAID.
    """

    UNPAID = "unpaid"
    PENDING = "pending"


class NotificationKind(str, Enum):
    """Kind of email sent after a committed registration."""

    CONFIRMED = "confirmed"
    REMINDER = "reminder"


@dataclass(frozen=True)
class ReferralCodeEntry:
    """One row of the referral registry."""

    code: str
    owner: str


@dataclass(frozen=True)
class InvalidReferralCode:
    """A submitted code that is not in the registry, with ranked alternatives."""

    code: str
    suggestions: tuple[ReferralCodeEntry, ...] = ()


@dataclass(frozen=True)
class ReferralResolution:
    """Outcome of resolving a batch of raw referral codes."""

    valid_codes: tuple[str, ...] = ()
    invalid_codes: tuple[InvalidReferralCode, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.invalid_codes


@dataclass(frozen=True)
class PaymentProof:
    """Reference to an uploaded payment proof artifact."""

    url: str
    storage_path: str
    file_name: str
    payer_name: str
    role: Role
    uploaded_at: datetime


@dataclass
class RegistrationDraft:
    """
    Validated registration, ready to be stored.

    Exactly one of delegate_data, chair_data, admin_data is set and it is
    the slot matching role.
    """

    email: str
    first_name: str
    last_name: str
    phone: str
    nationality: str | None
    school: str
    grade: str
    dietary_type: str
    dietary_other: str | None
    has_allergies: str
    allergies_details: str | None
    emergency_contact_name: str
    emergency_contact_phone: str
    agree_terms: bool
    agree_photos: bool
    role: Role
    delegate_data: dict[str, Any] | None = None
    chair_data: dict[str, Any] | None = None
    admin_data: dict[str, Any] | None = None
    referral_codes: list[str] | None = None
    payment_status: PaymentStatus = PaymentStatus.UNPAID
    payment_proof: PaymentProof | None = None

    def role_payload(self) -> dict[str, Any] | None:
        """Return the populated role-specific slot."""
        return {
            Role.DELEGATE: self.delegate_data,
            Role.CHAIR: self.chair_data,
            Role.ADMIN: self.admin_data,
        }[self.role]


@dataclass(frozen=True)
class Registration:
    """A committed registration row."""

    id: str
    email: str
    role: Role
    payment_status: PaymentStatus
    referral_codes: tuple[str, ...] = field(default_factory=tuple)
    payment_proof_path: str | None = None
