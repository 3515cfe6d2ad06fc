"""Blob stores for generated script documents."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Protocol

from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)

_MISSING_CODES = frozenset({"404", "NoSuchKey", "NotFound"})
_PRECONDITION_CODES = frozenset({"412", "PreconditionFailed", "ConditionalRequestConflict"})


class BlobStoreError(Exception):
    """Raised when a blob store operation fails."""

    def __init__(self, message: str, key: str) -> None:
        super().__init__(message)
        self.key = key


class BlobExistsError(BlobStoreError):
    """Raised when writing a key that is already present."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Blob already exists: {key}", key)


class BlobStore(Protocol):
    def put(self, key: str, data: bytes) -> None: ...

    def delete(self, key: str) -> None: ...

    def get(self, key: str) -> bytes | None: ...

    def exists(self, key: str) -> bool: ...


class LocalBlobStore:
    """Filesystem blob store; keys are relative paths under ``base_path``."""

    def __init__(self, base_path: str) -> None:
        self._base = Path(base_path)
        self._base.mkdir(parents=True, exist_ok=True)

    def _path_for(self, key: str) -> Path:
        if not key or key.startswith("/"):
            raise BlobStoreError(f"Invalid blob key: {key!r}", key)
        path = (self._base / key).resolve()
        # Reject keys that escape the base directory via "..".
        if not path.is_relative_to(self._base.resolve()):
            raise BlobStoreError(f"Key is outside base directory: {key}", key)
        return path

    def put(self, key: str, data: bytes) -> None:
        path = self._path_for(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            handle = path.open("xb")
        except FileExistsError as exc:
            raise BlobExistsError(key) from exc
        except OSError as exc:
            raise BlobStoreError(f"Failed to create blob {key}: {exc}", key) from exc

        try:
            with handle:
                handle.write(data)
        except OSError as exc:
            path.unlink(missing_ok=True)
            raise BlobStoreError(f"Failed to write blob {key}: {exc}", key) from exc

    def delete(self, key: str) -> None:
        path = self._path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise BlobStoreError(f"Failed to delete blob {key}: {exc}", key) from exc

    def get(self, key: str) -> bytes | None:
        path = self._path_for(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise BlobStoreError(f"Failed to read blob {key}: {exc}", key) from exc

    def exists(self, key: str) -> bool:
        return self._path_for(key).is_file()


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", ""))


class S3BlobStore:
    """S3-compatible blob store (AWS S3, Cloudflare R2, MinIO)."""

    def __init__(
        self,
        bucket: str,
        client: Any,
        content_type: str = "application/ssml+xml",
    ) -> None:
        self._bucket = bucket
        self._client = client
        self._content_type = content_type

    def put(self, key: str, data: bytes) -> None:
        try:
            # IfNoneMatch makes the write a conditional create.
            self._client.put_object(
                Bucket=self._bucket,
                Key=key,
                Body=data,
                ContentType=self._content_type,
                IfNoneMatch="*",
            )
        except ClientError as exc:
            if _error_code(exc) in _PRECONDITION_CODES:
                raise BlobExistsError(key) from exc
            raise BlobStoreError(f"Failed to put s3://{self._bucket}/{key}: {exc}", key) from exc
        except BotoCoreError as exc:
            raise BlobStoreError(f"Failed to put s3://{self._bucket}/{key}: {exc}", key) from exc

    def delete(self, key: str) -> None:
        try:
            self._client.delete_object(Bucket=self._bucket, Key=key)
        except (ClientError, BotoCoreError) as exc:
            raise BlobStoreError(
                f"Failed to delete s3://{self._bucket}/{key}: {exc}", key
            ) from exc

    def get(self, key: str) -> bytes | None:
        try:
            response = self._client.get_object(Bucket=self._bucket, Key=key)
        except ClientError as exc:
            if _error_code(exc) in _MISSING_CODES:
                return None
            raise BlobStoreError(f"Failed to get s3://{self._bucket}/{key}: {exc}", key) from exc
        except BotoCoreError as exc:
            raise BlobStoreError(f"Failed to get s3://{self._bucket}/{key}: {exc}", key) from exc
        return response["Body"].read()

    def exists(self, key: str) -> bool:
        try:
            self._client.head_object(Bucket=self._bucket, Key=key)
        except ClientError as exc:
            if _error_code(exc) in _MISSING_CODES:
                return False
            raise BlobStoreError(
                f"Failed to stat s3://{self._bucket}/{key}: {exc}", key
            ) from exc
        except BotoCoreError as exc:
            raise BlobStoreError(
                f"Failed to stat s3://{self._bucket}/{key}: {exc}", key
            ) from exc
        return True


def create_s3_client(region: str | None = None, endpoint_url: str | None = None) -> Any:
    import boto3
    from botocore.config import Config

    logger.info("Creating S3 client (region=%s, endpoint=%s)", region, endpoint_url)
    return boto3.client(
        "s3",
        region_name=region,
        endpoint_url=endpoint_url,
        config=Config(connect_timeout=5, read_timeout=30, retries={"max_attempts": 2}),
    )
