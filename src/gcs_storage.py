"""Object store access for audio files and index.xml via Google Cloud Storage."""

import json
import logging
from collections.abc import Iterator
from datetime import timedelta

from google.api_core.exceptions import GoogleAPIError, NotFound
from google.auth.exceptions import GoogleAuthError
from google.cloud import storage
from google.oauth2 import service_account

from src.exceptions import ObjectNotFoundError, StoreError
from src.models import StoredObject

logger = logging.getLogger(__name__)

STREAM_CHUNK_SIZE = 1024 * 1024
REQUEST_TIMEOUT_SECONDS = 60


def _get_client(credentials_json: str = "") -> storage.Client:
    """Create a GCS client.

    Uses service account credentials when given, otherwise Application
    Default Credentials (the normal case on Cloud Run).
    """
    if not credentials_json:
        return storage.Client()
    creds_info = json.loads(credentials_json)
    credentials = service_account.Credentials.from_service_account_info(creds_info)
    return storage.Client(credentials=credentials, project=credentials.project_id)


class GCSStore:
    """Narrow store interface over a single bucket.

    All Google API failures surface as StoreError, missing objects as
    ObjectNotFoundError.
    """

    def __init__(self, bucket_name: str, credentials_json: str = "",
                 client: storage.Client | None = None):
        self.bucket_name = bucket_name
        self._client = client or _get_client(credentials_json)
        self._bucket = self._client.bucket(bucket_name)

    def list(self, prefix: str = "", delimiter: str | None = None) -> Iterator[StoredObject]:
        """Yield objects under ``prefix``. Errors surface during iteration."""
        try:
            blobs = self._client.list_blobs(
                self.bucket_name,
                prefix=prefix or None,
                delimiter=delimiter,
                timeout=REQUEST_TIMEOUT_SECONDS,
            )
            for blob in blobs:
                yield StoredObject(name=blob.name, size=blob.size or 0)
        except (GoogleAPIError, GoogleAuthError) as e:
            raise StoreError(f"list gs://{self.bucket_name}/{prefix}: {e}") from e

    def read(self, key: str) -> bytes:
        try:
            return self._bucket.blob(key).download_as_bytes(timeout=REQUEST_TIMEOUT_SECONDS)
        except NotFound as e:
            raise ObjectNotFoundError(f"gs://{self.bucket_name}/{key} not found") from e
        except (GoogleAPIError, GoogleAuthError) as e:
            raise StoreError(f"read gs://{self.bucket_name}/{key}: {e}") from e

    def write(self, key: str, data: bytes, content_type: str) -> None:
        try:
            self._bucket.blob(key).upload_from_string(
                data, content_type=content_type, timeout=REQUEST_TIMEOUT_SECONDS,
            )
        except (GoogleAPIError, GoogleAuthError) as e:
            raise StoreError(f"write gs://{self.bucket_name}/{key}: {e}") from e
        logger.info("Wrote gs://%s/%s (%d bytes)", self.bucket_name, key, len(data))

    def copy(self, src_key: str, dest_key: str) -> None:
        """Server-side copy within the bucket (GCS has no rename)."""
        try:
            self._bucket.copy_blob(
                self._bucket.blob(src_key), self._bucket, dest_key,
                timeout=REQUEST_TIMEOUT_SECONDS,
            )
        except NotFound as e:
            raise ObjectNotFoundError(f"gs://{self.bucket_name}/{src_key} not found") from e
        except (GoogleAPIError, GoogleAuthError) as e:
            raise StoreError(f"copy {src_key} -> {dest_key}: {e}") from e

    def delete(self, key: str) -> None:
        try:
            self._bucket.blob(key).delete(timeout=REQUEST_TIMEOUT_SECONDS)
        except NotFound as e:
            raise ObjectNotFoundError(f"gs://{self.bucket_name}/{key} not found") from e
        except (GoogleAPIError, GoogleAuthError) as e:
            raise StoreError(f"delete gs://{self.bucket_name}/{key}: {e}") from e

    def signed_url(self, key: str, ttl: timedelta) -> str:
        """Return a V4 pre-signed GET URL for ``key``.

        Signing needs a service account key or IAM signBlob permission.
        """
        try:
            return self._bucket.blob(key).generate_signed_url(
                version="v4", expiration=ttl, method="GET",
            )
        except (GoogleAPIError, GoogleAuthError) as e:
            raise StoreError(f"sign gs://{self.bucket_name}/{key}: {e}") from e

    def open(self, key: str) -> tuple[int, Iterator[bytes]]:
        """Return (size, chunk iterator) for streaming ``key``.

        Metadata is fetched up front so a missing object fails before any
        bytes are sent.
        """
        try:
            blob = self._bucket.get_blob(key, timeout=REQUEST_TIMEOUT_SECONDS)
        except (GoogleAPIError, GoogleAuthError) as e:
            raise StoreError(f"stat gs://{self.bucket_name}/{key}: {e}") from e
        if blob is None:
            raise ObjectNotFoundError(f"gs://{self.bucket_name}/{key} not found")
        return blob.size or 0, self._iter_chunks(blob)

    def _iter_chunks(self, blob: storage.Blob) -> Iterator[bytes]:
        try:
            with blob.open("rb", chunk_size=STREAM_CHUNK_SIZE) as fh:
                while True:
                    chunk = fh.read(STREAM_CHUNK_SIZE)
                    if not chunk:
                        break
                    yield chunk
        except (GoogleAPIError, GoogleAuthError) as e:
            raise StoreError(f"stream gs://{self.bucket_name}/{blob.name}: {e}") from e
