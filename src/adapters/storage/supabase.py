"""
Supabase Storage adapter - Implements ObjectStorage protocol over HTTP.

Talks to the Supabase Storage REST API with httpx using the service role
key, so it can create the payment proof bucket on first use. When the
bucket is missing and cannot be created, StorageContainerMissing carries a
manual setup checklist for the operator; applicants only ever see the
generic message.
"""

import logging
from urllib.parse import quote

import httpx

from src.domain.exceptions import PaymentProofUploadFailed, StorageContainerMissing

logger = logging.getLogger(__name__)


def manual_bucket_setup_checklist(bucket: str) -> str:
    """Operator instructions for creating the payment proof bucket by hand."""
    return (
        f'Create the "{bucket}" bucket manually:\n'
        "1. Open the Supabase dashboard and go to Storage.\n"
        f'2. Create a new bucket named "{bucket}".\n'
        "3. Mark the bucket as public so proof links can be opened by the secretariat.\n"
        "4. Check that SUPABASE_SERVICE_ROLE_KEY belongs to the same project as SUPABASE_URL."
    )


def _error_payload(response: httpx.Response) -> dict:
    try:
        payload = response.json()
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}


def _error_text(payload: dict) -> str:
    return f"{payload.get('error', '')} {payload.get('message', '')}".lower()


def _is_bucket_not_found(response: httpx.Response) -> bool:
    if response.status_code == 404:
        return True
    return "bucket not found" in _error_text(_error_payload(response))


def _is_already_exists(response: httpx.Response) -> bool:
    """Supabase answers a duplicate bucket create with 409, or 400 carrying statusCode "409"."""
    if response.status_code == 409:
        return True
    payload = _error_payload(response)
    if str(payload.get("statusCode", "")) == "409":
        return True
    text = _error_text(payload)
    return "duplicate" in text or "already exists" in text


class SupabaseObjectStorage:
    """
    Implements ObjectStorage protocol via the Supabase Storage API.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, client: httpx.Client, base_url: str, bucket: str) -> None:
        """
        Args:
            client: httpx client already carrying apikey/Authorization headers
            base_url: Project URL, e.g. https://xyz.supabase.co
            bucket: Name of the payment proof bucket
        """
        self._client = client
        self._base_url = base_url.rstrip("/")
        self.bucket = bucket

    @classmethod
    def from_credentials(
        cls, base_url: str, service_role_key: str, bucket: str, timeout: float = 10.0
    ) -> "SupabaseObjectStorage":
        client = httpx.Client(
            headers={
                "apikey": service_role_key,
                "Authorization": f"Bearer {service_role_key}",
            },
            timeout=timeout,
        )
        return cls(client, base_url, bucket)

    def _missing(self, reason: str) -> StorageContainerMissing:
        return StorageContainerMissing(
            f'Supabase storage bucket "{self.bucket}" was not found ({reason}).\n\n'
            + manual_bucket_setup_checklist(self.bucket)
        )

    def ensure_container_exists(self) -> None:
        """Create the bucket if it does not exist yet."""
        try:
            response = self._client.get(f"{self._base_url}/storage/v1/bucket/{self.bucket}")
            if response.status_code == 200:
                return
            if not _is_bucket_not_found(response):
                response.raise_for_status()

            logger.info("Creating storage bucket %s", self.bucket)
            created = self._client.post(
                f"{self._base_url}/storage/v1/bucket",
                json={"id": self.bucket, "name": self.bucket, "public": True},
            )
        except httpx.HTTPError as e:
            raise PaymentProofUploadFailed(f"Storage bucket check failed: {e}") from e

        if created.status_code in (200, 201):
            return
        if _is_already_exists(created):
            # Another request created it between our check and create
            logger.info("Storage bucket %s already created concurrently", self.bucket)
            return
        raise self._missing(f"create returned HTTP {created.status_code}")

    def upload(self, key: str, data: bytes, content_type: str) -> None:
        try:
            response = self._client.post(
                f"{self._base_url}/storage/v1/object/{self.bucket}/{quote(key)}",
                content=data,
                headers={"Content-Type": content_type, "x-upsert": "false"},
            )
        except httpx.HTTPError as e:
            raise PaymentProofUploadFailed(f"Failed to upload payment proof: {e}") from e

        if response.is_success:
            return
        if _is_bucket_not_found(response):
            raise self._missing("upload rejected")
        raise PaymentProofUploadFailed(
            f"Failed to upload payment proof: HTTP {response.status_code} {response.text[:200]}"
        )

    def public_url(self, key: str) -> str:
        return f"{self._base_url}/storage/v1/object/public/{self.bucket}/{quote(key)}"

    def close(self) -> None:
        self._client.close()
