from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from audiolab import app as app_module
from audiolab.config import LLMSettings, Settings, StorageSettings
from audiolab.generation.script import ScriptGenerator
from audiolab.storage.blobs import LocalBlobStore, S3BlobStore


def _settings(tmp_path: Path, **storage: object) -> Settings:
    return Settings(
        storage=StorageSettings(
            blob_path=str(tmp_path / "blobs"),
            sqlite_path=str(tmp_path / "scripts.db"),
            **storage,
        ),
        llm=LLMSettings(account_id="acct", api_token="token"),
    )


def test_build_blob_store_local(tmp_path: Path) -> None:
    store = app_module.build_blob_store(_settings(tmp_path))
    assert isinstance(store, LocalBlobStore)


def test_build_blob_store_s3(tmp_path: Path) -> None:
    settings = _settings(
        tmp_path, blob_backend="s3", s3_bucket="scripts", s3_endpoint_url="https://r2.example"
    )
    with patch.object(app_module, "create_s3_client", return_value=MagicMock()) as mock_client:
        store = app_module.build_blob_store(settings)

    assert isinstance(store, S3BlobStore)
    mock_client.assert_called_once_with(region=None, endpoint_url="https://r2.example")


def test_build_generator_requires_credentials(tmp_path: Path) -> None:
    settings = _settings(tmp_path)
    assert isinstance(app_module.build_generator(settings), ScriptGenerator)

    settings.llm.api_token = None
    assert app_module.build_generator(settings) is None


def test_get_app_context_is_cached(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(app_module, "load_settings", lambda: _settings(tmp_path))
    app_module.get_app_context.cache_clear()
    try:
        first = app_module.get_app_context()
        second = app_module.get_app_context()
        assert first is second
        assert isinstance(first.blobs, LocalBlobStore)
        assert first.generator is not None
        first.records.close()
    finally:
        app_module.get_app_context.cache_clear()
