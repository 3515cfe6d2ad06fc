from __future__ import annotations

import asyncio
import contextlib
from pathlib import Path

import pytest

from audiolab.storage.blobs import LocalBlobStore
from audiolab.storage.records import SqliteScriptStore


@pytest.fixture(autouse=True)
def _close_default_event_loop() -> None:
    yield
    policy = asyncio.get_event_loop_policy()
    local = getattr(policy, "_local", None)
    loop = getattr(local, "_loop", None) if local is not None else None
    if loop is not None and not loop.is_running() and not loop.is_closed():
        with contextlib.suppress(Exception):
            loop.close()
    if loop is not None:
        with contextlib.suppress(Exception):
            policy.set_event_loop(None)


@pytest.fixture
def blob_store(tmp_path: Path) -> LocalBlobStore:
    return LocalBlobStore(str(tmp_path / "blobs"))


@pytest.fixture
def record_store(tmp_path: Path):
    store = SqliteScriptStore(str(tmp_path / "scripts.db"))
    yield store
    store.close()
