"""Blob-then-record writes with a compensating delete.

The blob store and the record store share no transaction. ``commit`` writes
the blob first and the metadata row second, so a row never points at a blob
that was not written. If the row insert fails the blob is deleted again; if
that delete fails too the blob is left orphaned and the failure is reported
alongside the primary error.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Mapping, Sequence

from audiolab.storage.blobs import BlobStore
from audiolab.storage.records import RecordStore, ScriptRecord

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("name", "personas")


class CommitError(Exception):
    """Base class for failed ``commit`` calls."""

    def __init__(self, message: str, storage_key: str) -> None:
        super().__init__(message)
        self.storage_key = storage_key


class BlobWriteFailed(CommitError):
    """The artifact could not be written; nothing was persisted."""


class CompensationFailed(Exception):
    """The compensating delete failed and the blob is orphaned."""

    def __init__(self, storage_key: str, cause: BaseException) -> None:
        super().__init__(f"Failed to delete orphaned blob {storage_key}: {cause}")
        self.storage_key = storage_key
        self.cause = cause


class MetadataWriteFailed(CommitError):
    """The metadata row could not be written; the blob was rolled back."""

    def __init__(
        self,
        message: str,
        storage_key: str,
        compensation: CompensationFailed | None = None,
    ) -> None:
        super().__init__(message, storage_key)
        self.compensation = compensation

    @property
    def orphaned(self) -> bool:
        return self.compensation is not None


def script_metadata(name: str, personas: Sequence[str]) -> dict[str, Any]:
    return {"name": name, "personas": json.dumps(list(personas), ensure_ascii=False)}


class ScriptCommitter:
    def __init__(
        self,
        blobs: BlobStore,
        records: RecordStore,
        key_field: str = "r2_file_link",
    ) -> None:
        self._blobs = blobs
        self._records = records
        self._key_field = key_field

    def commit(
        self,
        artifact: bytes,
        storage_key: str,
        metadata: Mapping[str, Any],
    ) -> ScriptRecord:
        """Persist ``artifact`` under ``storage_key`` and record its metadata.

        Raises:
            ValueError: if the key is empty or required metadata is missing.
            BlobWriteFailed: the blob write failed (including key reuse).
            MetadataWriteFailed: the row insert failed; ``compensation`` is set
                when the blob could not be removed afterwards.
        """
        if not storage_key:
            raise ValueError("storage_key must not be empty")
        missing = [name for name in REQUIRED_FIELDS if name not in metadata]
        if missing:
            raise ValueError(f"Missing metadata fields: {', '.join(missing)}")

        try:
            self._blobs.put(storage_key, artifact)
        except Exception as exc:
            logger.error("Blob write failed for %s: %s", storage_key, exc)
            raise BlobWriteFailed(
                f"Failed to store artifact {storage_key}", storage_key
            ) from exc

        fields = {**metadata, self._key_field: storage_key}
        try:
            record = self._records.insert_returning(fields)
        except Exception as exc:
            logger.error("Metadata write failed for %s: %s", storage_key, exc)
            compensation = self._compensate(storage_key)
            raise MetadataWriteFailed(
                f"Failed to record metadata for {storage_key}",
                storage_key,
                compensation=compensation,
            ) from exc

        logger.info("Committed script %s as record %s", record.storage_key, record.id)
        return record

    async def commit_async(
        self,
        artifact: bytes,
        storage_key: str,
        metadata: Mapping[str, Any],
    ) -> ScriptRecord:
        return await asyncio.to_thread(self.commit, artifact, storage_key, metadata)

    def _compensate(self, storage_key: str) -> CompensationFailed | None:
        try:
            self._blobs.delete(storage_key)
        except Exception as exc:
            logger.error("Error cleaning up orphaned blob %s: %s", storage_key, exc)
            return CompensationFailed(storage_key, exc)
        logger.info("Removed blob %s after metadata failure", storage_key)
        return None
