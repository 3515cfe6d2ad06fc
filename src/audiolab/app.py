"""Application context assembly."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache

from audiolab.config import Settings, load_settings
from audiolab.generation.llm import WorkersAIClient
from audiolab.generation.script import ScriptGenerator
from audiolab.storage.blobs import BlobStore, LocalBlobStore, S3BlobStore, create_s3_client
from audiolab.storage.coordinator import ScriptCommitter
from audiolab.storage.records import SqliteScriptStore

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Application-wide dependency container.

    Initialized once at startup and cached for the lifetime of the process.
    ``generator`` is None when no model credentials are configured; listing
    still works in that case.
    """

    settings: Settings
    blobs: BlobStore
    records: SqliteScriptStore
    committer: ScriptCommitter
    generator: ScriptGenerator | None


def build_blob_store(settings: Settings) -> BlobStore:
    storage = settings.storage
    if storage.blob_backend == "s3":
        if not storage.s3_bucket:
            raise RuntimeError("S3_BUCKET is required for BLOB_BACKEND=s3")
        client = create_s3_client(region=storage.s3_region, endpoint_url=storage.s3_endpoint_url)
        return S3BlobStore(storage.s3_bucket, client)
    return LocalBlobStore(storage.blob_path)


def build_generator(settings: Settings) -> ScriptGenerator | None:
    llm = settings.llm
    if not llm.account_id or not llm.api_token:
        logger.warning("CF_ACCOUNT_ID/CF_API_TOKEN not set; script generation is disabled")
        return None
    client = WorkersAIClient(
        account_id=llm.account_id,
        api_token=llm.api_token,
        model=llm.model,
        base_url=llm.base_url,
        timeout=llm.timeout_seconds,
    )
    return ScriptGenerator(client)


@lru_cache(maxsize=1)
def get_app_context() -> AppContext:
    """Get or create the application context."""
    settings = load_settings()
    blobs = build_blob_store(settings)
    records = SqliteScriptStore(settings.storage.sqlite_path, wal=settings.storage.sqlite_wal)

    return AppContext(
        settings=settings,
        blobs=blobs,
        records=records,
        committer=ScriptCommitter(blobs, records),
        generator=build_generator(settings),
    )
