"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) that the domain requires
from infrastructure. Adapters implement these protocols.
"""

from typing import Protocol

from .models import NotificationKind, Registration, RegistrationDraft


class RegistrationRepository(Protocol):
    """Port interface for registration persistence."""

    def insert_registration(self, draft: RegistrationDraft) -> Registration:
        """
        Insert a registration as a single row.

        The email column carries a UNIQUE constraint; it is the only
        guard against two concurrent submissions for the same address.

        Args:
            draft: Fully validated registration

        Returns:
            The committed Registration with its generated id

        Raises:
            EmailAlreadyRegistered: If the email is already taken
        """
        ...


class ObjectStorage(Protocol):
    """Port interface for the payment proof object store."""

    def ensure_container_exists(self) -> None:
        """
        Make sure the configured bucket exists, creating it if allowed.

        Raises:
            StorageContainerMissing: If the bucket is absent and cannot be created
        """
        ...

    def upload(self, key: str, data: bytes, content_type: str) -> None:
        """
        Store bytes under key. Never overwrites an existing object.

        Raises:
            StorageContainerMissing: If the bucket vanished before the upload
            PaymentProofUploadFailed: For any other storage failure
        """
        ...

    def public_url(self, key: str) -> str:
        """Return a publicly dereferenceable URL for key."""
        ...


class EmailSender(Protocol):
    """Port interface for email delivery."""

    def send(self, kind: NotificationKind, recipient: dict[str, str | None]) -> None:
        """
        Send a registration email.

        Args:
            kind: CONFIRMED or REMINDER
            recipient: email, first_name, last_name, role and, for
                confirmations, payment_proof_file_name
        """
        ...
