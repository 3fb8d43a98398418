"""
Local filesystem storage adapter - Implements ObjectStorage protocol.

Stores payment proofs under a directory on disk for development and
docker-compose demos. The bucket is a subdirectory; it is created on
demand unless create_missing is False, which mimics a production bucket
that has not been provisioned.
"""

import logging
from pathlib import Path

from src.domain.exceptions import PaymentProofUploadFailed, StorageContainerMissing

logger = logging.getLogger(__name__)


class LocalObjectStorage:
    """
    Implements ObjectStorage protocol on the local filesystem.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(
        self, root: str | Path, bucket: str, base_url: str, create_missing: bool = True
    ) -> None:
        self.root = Path(root)
        self.bucket = bucket
        self.base_url = base_url.rstrip("/")
        self.create_missing = create_missing

    @property
    def bucket_dir(self) -> Path:
        return self.root / self.bucket

    def ensure_container_exists(self) -> None:
        if self.bucket_dir.is_dir():
            return
        if not self.create_missing:
            raise StorageContainerMissing(
                f'Local storage bucket "{self.bucket}" does not exist under {self.root}. '
                f"Create the directory {self.bucket_dir} or set LOCAL_STORAGE_DIR."
            )
        logger.info("Creating local storage bucket %s", self.bucket_dir)
        self.bucket_dir.mkdir(parents=True, exist_ok=True)

    def upload(self, key: str, data: bytes, content_type: str) -> None:
        if not self.bucket_dir.is_dir():
            raise StorageContainerMissing(f'Local storage bucket "{self.bucket}" vanished before upload')

        target = (self.bucket_dir / key).resolve()
        if self.bucket_dir.resolve() not in target.parents:
            raise PaymentProofUploadFailed(f"Storage key escapes bucket: {key}")

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            # "xb" refuses to overwrite an existing object
            with target.open("xb") as fh:
                fh.write(data)
        except OSError as e:
            raise PaymentProofUploadFailed(f"Failed to write payment proof {key}: {e}") from e
        logger.debug("Stored %s (%s, %d bytes)", target, content_type, len(data))

    def public_url(self, key: str) -> str:
        return f"{self.base_url}/{self.bucket}/{key}"
