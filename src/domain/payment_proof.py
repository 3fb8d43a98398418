"""
Payment proof handling - Decode, name and upload the proof artifact.

Applicants who have already paid attach a screenshot or PDF as a data URL.
The handler decodes it, derives a collision-free storage key of the form

    proof-of-payment/<YYYY-MM-DD>/<uuid4>-<sanitized-filename>

and uploads it to the object store. There is no compensating delete: if a
later stage of the submission fails, the artifact stays behind as an orphan.
"""

import base64
import binascii
import logging
import re
import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, ValidationError

from .exceptions import PaymentProofInvalid
from .models import PaymentProof, Role
from .ports import ObjectStorage

logger = logging.getLogger(__name__)

STORAGE_PREFIX = "proof-of-payment"
DEFAULT_FILE_NAME = "payment-proof"
FALLBACK_EXTENSION = "png"

# MIME subtype -> file extension for the formats the upload form accepts
MIME_EXTENSIONS = {
    "png": "png",
    "jpeg": "jpg",
    "jpg": "jpg",
    "gif": "gif",
    "webp": "webp",
    "heic": "heic",
    "heif": "heif",
    "pdf": "pdf",
}

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]")
_WHITESPACE = re.compile(r"\s+")

NonBlank = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class PaymentConfirmation(BaseModel):
    """The paymentConfirmation block of a submission."""

    model_config = ConfigDict(populate_by_name=True)

    full_name: NonBlank = Field(alias="fullName")
    role: Role
    file_name: NonBlank = Field(alias="fileName")
    mime_type: NonBlank = Field(alias="mimeType")
    data_url: str = Field(alias="dataUrl", pattern=r"^data:[^,]*;base64,\s*\S")


def sanitize_file_name(file_name: str, mime_type: str) -> str:
    """
    Make a filename safe for use in a storage key.

    Characters outside [A-Za-z0-9._-] become "_". A name without an
    extension gets one from the MIME subtype, or FALLBACK_EXTENSION.
    """
    sanitized = _UNSAFE_FILENAME_CHARS.sub("_", file_name.strip() or DEFAULT_FILE_NAME)
    if "." in sanitized:
        return sanitized
    subtype = mime_type.partition("/")[2].split(";")[0].strip().lower()
    return f"{sanitized}.{MIME_EXTENSIONS.get(subtype, FALLBACK_EXTENSION)}"


def decode_data_url(data_url: str) -> bytes:
    """
    Decode the base64 section of a data URL.

    Raises:
        PaymentProofInvalid: If there is no data section or it is not base64
    """
    _, _, body = data_url.partition(",")
    # Line-wrapped or space-padded base64 is accepted
    body = _WHITESPACE.sub("", body)
    if not body:
        raise PaymentProofInvalid(
            [{"field": "paymentConfirmation.dataUrl", "message": "Invalid payment proof payload received"}]
        )
    try:
        return base64.b64decode(body, validate=True)
    except binascii.Error as exc:
        raise PaymentProofInvalid(
            [{"field": "paymentConfirmation.dataUrl", "message": "Payment proof is not valid base64"}]
        ) from exc


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class PaymentProofHandler:
    """
    Stores payment proof artifacts in object storage.

    clock and new_id are injectable so tests can pin the storage key.
    """

    storage: ObjectStorage
    max_bytes: int = 10 * 1024 * 1024
    clock: Callable[[], datetime] = field(default=_utcnow)
    new_id: Callable[[], str] = field(default=lambda: str(uuid.uuid4()))

    def parse(self, raw: Any) -> PaymentConfirmation:
        """
        Validate a paymentConfirmation block.

        Raises:
            PaymentProofInvalid: If the block is missing or malformed
        """
        if not isinstance(raw, Mapping):
            raise PaymentProofInvalid(
                [{"field": "paymentConfirmation", "message": "Please upload proof of payment before submitting"}]
            )
        try:
            return PaymentConfirmation.model_validate(raw)
        except ValidationError as exc:
            raise PaymentProofInvalid(
                [
                    {
                        "field": ".".join(["paymentConfirmation", *(str(p) for p in err["loc"])]),
                        "message": err["msg"],
                    }
                    for err in exc.errors()
                ]
            ) from exc

    def store(self, raw: Any) -> PaymentProof:
        """
        Decode and upload a payment proof.

        Args:
            raw: The envelope's paymentConfirmation block

        Returns:
            PaymentProof referencing the uploaded artifact

        Raises:
            PaymentProofInvalid: Malformed block, bad encoding or oversized file
            StorageContainerMissing: Bucket absent and not creatable
            PaymentProofUploadFailed: Any other storage failure
        """
        confirmation = self.parse(raw)
        data = decode_data_url(confirmation.data_url)
        if len(data) > self.max_bytes:
            raise PaymentProofInvalid(
                [
                    {
                        "field": "paymentConfirmation.dataUrl",
                        "message": f"Payment proof must be at most {self.max_bytes // (1024 * 1024)}MB",
                    }
                ]
            )

        file_name = sanitize_file_name(confirmation.file_name, confirmation.mime_type)
        now = self.clock()
        key = f"{STORAGE_PREFIX}/{now.date().isoformat()}/{self.new_id()}-{file_name}"

        self.storage.ensure_container_exists()
        self.storage.upload(key, data, confirmation.mime_type)
        url = self.storage.public_url(key)
        logger.info("Uploaded payment proof %s (%d bytes)", key, len(data))

        return PaymentProof(
            url=url,
            storage_path=key,
            file_name=file_name,
            payer_name=confirmation.full_name,
            role=confirmation.role,
            uploaded_at=now,
        )
