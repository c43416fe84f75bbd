"""
Byte storage for offline documents and map tile bundles.

Two backends share one interface:
- ``LocalBlobStore``: files under the on-device cache directory
- ``MinioBlobStore``: MinIO (S3-compatible) bucket, for shared or test rigs

Keys are relative paths such as ``documents/doc-1_ticket.pdf``; the key is
the opaque handle recorded on cache inventory rows.
"""

import hashlib
import os
import re
import tempfile
from datetime import timedelta
from io import BytesIO
from pathlib import Path
from typing import Protocol

from minio import Minio
from minio.error import S3Error

from tripbuddy.config import settings
from tripbuddy.logging_config import get_logger

logger = get_logger(__name__)

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class ObjectStorageError(Exception):
    """Raised when bytes cannot be written or read."""

    pass


def compute_file_hash(file_bytes: bytes) -> str:
    """Compute SHA256 hash of file bytes."""
    return hashlib.sha256(file_bytes).hexdigest()


def safe_key_part(value: str) -> str:
    """Replace characters that are unsafe in file names and object keys."""
    cleaned = _UNSAFE_KEY_CHARS.sub("_", value).strip("._")
    return cleaned or "file"


class BlobStore(Protocol):
    """Durable key/bytes storage used by the offline cache."""

    def write_bytes(self, key: str, data: bytes) -> str: ...

    def read_bytes(self, key: str) -> bytes: ...

    def delete_bytes(self, key: str) -> bool: ...

    def exists(self, key: str) -> bool: ...

    def uri(self, key: str) -> str: ...


class LocalBlobStore:
    """Filesystem-backed store rooted at a cache directory."""

    def __init__(self, root: Path | str):
        self.root = Path(root)

    def _path(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if self.root.resolve() not in path.parents:
            raise ObjectStorageError(f"Key escapes cache directory: {key}")
        return path

    def write_bytes(self, key: str, data: bytes) -> str:
        """
        Durably write bytes under key.

        The data lands in a temp file that is fsynced and renamed over the
        target, so a reader never sees a half-written file.

        Returns:
            The key
        """
        path = self._path(key)
        tmp_name = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".partial-")
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as e:
            logger.error("local_write_failed", key=key, error=str(e))
            raise ObjectStorageError(f"Failed to write {key}: {e}") from e
        finally:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)

        logger.debug("local_file_written", key=key, size_bytes=len(data))
        return key

    def read_bytes(self, key: str) -> bytes:
        try:
            return self._path(key).read_bytes()
        except OSError as e:
            raise ObjectStorageError(f"Failed to read {key}: {e}") from e

    def delete_bytes(self, key: str) -> bool:
        """
        Delete bytes stored under key.

        Returns:
            True if deleted or already absent, False if deletion failed
        """
        try:
            self._path(key).unlink(missing_ok=True)
            logger.debug("local_file_deleted", key=key)
            return True
        except (OSError, ObjectStorageError) as e:
            logger.error("local_delete_failed", key=key, error=str(e))
            return False

    def exists(self, key: str) -> bool:
        try:
            return self._path(key).is_file()
        except ObjectStorageError:
            return False

    def uri(self, key: str) -> str:
        return self._path(key).as_uri()


class MinioBlobStore:
    """MinIO-backed store."""

    def __init__(self, client: Minio, bucket_name: str):
        self.client = client
        self.bucket_name = bucket_name
        self._bucket_checked = False

    def ensure_bucket(self) -> None:
        """Ensure the MinIO bucket exists."""
        if self._bucket_checked:
            return
        if not self.client.bucket_exists(self.bucket_name):
            self.client.make_bucket(self.bucket_name)
            logger.info("minio_bucket_created", bucket=self.bucket_name)
        self._bucket_checked = True

    def write_bytes(self, key: str, data: bytes) -> str:
        try:
            self.ensure_bucket()
            self.client.put_object(
                bucket_name=self.bucket_name,
                object_name=key,
                data=BytesIO(data),
                length=len(data),
                content_type="application/octet-stream",
            )
        except S3Error as e:
            logger.error("minio_write_failed", key=key, error=str(e))
            raise ObjectStorageError(f"Failed to upload {key}: {e}") from e

        logger.info(
            "file_uploaded",
            bucket=self.bucket_name,
            object_key=key,
            size_bytes=len(data),
        )
        return key

    def read_bytes(self, key: str) -> bytes:
        try:
            response = self.client.get_object(self.bucket_name, key)
        except S3Error as e:
            raise ObjectStorageError(f"Failed to download {key}: {e}") from e
        try:
            return response.read()
        finally:
            response.close()
            response.release_conn()

    def delete_bytes(self, key: str) -> bool:
        try:
            self.client.remove_object(self.bucket_name, key)
            logger.info("file_deleted", bucket=self.bucket_name, key=key)
            return True
        except S3Error as e:
            if e.code == "NoSuchKey":
                return True
            logger.error("file_delete_failed", key=key, error=str(e))
            return False

    def exists(self, key: str) -> bool:
        try:
            self.client.stat_object(self.bucket_name, key)
            return True
        except S3Error:
            return False

    def uri(self, key: str, expires_seconds: int = 3600) -> str:
        """Presigned URL for the object."""
        return self.client.presigned_get_object(
            bucket_name=self.bucket_name,
            object_name=key,
            expires=timedelta(seconds=expires_seconds),
        )


def get_blob_store() -> BlobStore:
    """Build the configured blob store."""
    if settings.storage_backend == "minio":
        client = Minio(
            f"{settings.minio_host}:{settings.minio_port}",
            access_key=settings.minio_access_key,
            secret_key=settings.minio_secret_key,
            secure=settings.minio_secure,
        )
        logger.debug(
            "minio_client_initialized",
            host=settings.minio_host,
            port=settings.minio_port,
        )
        return MinioBlobStore(client, settings.minio_bucket_name)
    return LocalBlobStore(settings.cache_directory)
