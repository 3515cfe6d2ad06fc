"""Durable storage for generated scripts."""

from audiolab.storage.blobs import (
    BlobExistsError,
    BlobStore,
    BlobStoreError,
    LocalBlobStore,
    S3BlobStore,
)
from audiolab.storage.coordinator import (
    BlobWriteFailed,
    CommitError,
    CompensationFailed,
    MetadataWriteFailed,
    ScriptCommitter,
    script_metadata,
)
from audiolab.storage.keys import build_storage_key
from audiolab.storage.records import (
    RecordStore,
    RecordStoreError,
    ScriptRecord,
    SqliteScriptStore,
)

__all__ = [
    "BlobExistsError",
    "BlobStore",
    "BlobStoreError",
    "BlobWriteFailed",
    "CommitError",
    "CompensationFailed",
    "LocalBlobStore",
    "MetadataWriteFailed",
    "RecordStore",
    "RecordStoreError",
    "S3BlobStore",
    "ScriptCommitter",
    "ScriptRecord",
    "SqliteScriptStore",
    "build_storage_key",
    "script_metadata",
]
