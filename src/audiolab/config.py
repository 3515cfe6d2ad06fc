"""Configuration management for the audiolab API."""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

_config_logger = logging.getLogger(__name__)


class LoggingSettings(BaseModel):
    level: str = Field(default="INFO", description="Python logging level name")
    file: str | None = Field(default=None, description="Optional log file path")


class ServerSettings(BaseModel):
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8000, ge=1024, le=65535)


class StorageSettings(BaseModel):
    blob_backend: Literal["local", "s3"] = Field(default="local")
    blob_path: str = Field(default="./data/blobs")
    s3_bucket: str | None = Field(default=None)
    s3_region: str | None = Field(default=None)
    s3_endpoint_url: str | None = Field(default=None)
    sqlite_path: str = Field(default="./data/audiolab.sqlite")
    sqlite_wal: bool = Field(default=True)


class LLMSettings(BaseModel):
    account_id: str | None = Field(default=None)
    api_token: str | None = Field(default=None)
    model: str = Field(default="@cf/mistral/mistral-7b-instruct-v0.1")
    base_url: str = Field(default="https://api.cloudflare.com/client/v4")
    timeout_seconds: float = Field(default=60.0, ge=1.0, le=600.0)

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


class PdfSettings(BaseModel):
    fetch_timeout_seconds: float = Field(default=30.0, ge=1.0, le=300.0)
    max_bytes: int = Field(default=25 * 1024 * 1024, ge=1024)


class Settings(BaseModel):
    server: ServerSettings = Field(default_factory=ServerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    pdf: PdfSettings = Field(default_factory=PdfSettings)


ENV_KEYS = {
    "host": "AUDIOLAB_HOST",
    "port": "AUDIOLAB_PORT",
    "log_level": "LOG_LEVEL",
    "log_file": "LOG_FILE",
    "blob_backend": "BLOB_BACKEND",
    "blob_path": "BLOB_PATH",
    "s3_bucket": "S3_BUCKET",
    "s3_endpoint_url": "S3_ENDPOINT_URL",
    "aws_region": "AWS_DEFAULT_REGION",
    "sqlite_path": "SQLITE_PATH",
    "sqlite_wal": "SQLITE_WAL",
    "llm_account_id": "CF_ACCOUNT_ID",
    "llm_api_token": "CF_API_TOKEN",
    "llm_model": "LLM_MODEL",
    "llm_base_url": "LLM_BASE_URL",
    "llm_timeout": "LLM_TIMEOUT_SECONDS",
    "pdf_timeout": "PDF_FETCH_TIMEOUT_SECONDS",
    "pdf_max_bytes": "PDF_MAX_BYTES",
}

_TRUE_VALUES = frozenset({"1", "true", "yes"})


def _project_root() -> Path:
    return Path(__file__).resolve().parents[2]


def _resolve_path(path: str) -> str:
    candidate = Path(path)
    root = _project_root().resolve()
    if candidate.is_absolute():
        resolved = candidate.resolve()
    else:
        resolved = (root / candidate).resolve()
    if not resolved.is_relative_to(root):
        raise ValueError(f"Path traversal detected: '{path}' resolves outside project root")
    return str(resolved)


def _env_str(key: str) -> str | None:
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return None
    return value.strip()


def _env_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        _config_logger.warning(
            "Invalid integer value for %s: %r, using default %d", key, value, default
        )
        return default


def _env_float(key: str, default: float) -> float:
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except ValueError:
        _config_logger.warning(
            "Invalid float value for %s: %r, using default %s", key, value, default
        )
        return default


def load_settings() -> Settings:
    """Load configuration and cache the result."""

    return _load_settings_cached()


@lru_cache(maxsize=1)
def _load_settings_cached() -> Settings:
    load_dotenv(dotenv_path=_project_root() / ".env")
    log_file_env = _env_str(ENV_KEYS["log_file"])

    settings_data: dict[str, object] = {
        "server": {
            "host": os.getenv(ENV_KEYS["host"], ServerSettings().host),
            "port": _env_int(ENV_KEYS["port"], ServerSettings().port),
        },
        "logging": {
            "level": os.getenv(ENV_KEYS["log_level"], LoggingSettings().level),
            "file": _resolve_path(log_file_env) if log_file_env else None,
        },
        "storage": {
            "blob_backend": os.getenv(
                ENV_KEYS["blob_backend"], StorageSettings().blob_backend
            ).strip().lower(),
            "blob_path": _resolve_path(
                os.getenv(ENV_KEYS["blob_path"], StorageSettings().blob_path)
            ),
            "s3_bucket": _env_str(ENV_KEYS["s3_bucket"]),
            "s3_region": _env_str("AWS_REGION") or _env_str(ENV_KEYS["aws_region"]),
            "s3_endpoint_url": _env_str(ENV_KEYS["s3_endpoint_url"]),
            "sqlite_path": _resolve_path(
                os.getenv(ENV_KEYS["sqlite_path"], StorageSettings().sqlite_path)
            ),
            "sqlite_wal": _env_bool(ENV_KEYS["sqlite_wal"], StorageSettings().sqlite_wal),
        },
        "llm": {
            "account_id": _env_str(ENV_KEYS["llm_account_id"]),
            "api_token": _env_str(ENV_KEYS["llm_api_token"]),
            "model": os.getenv(ENV_KEYS["llm_model"], LLMSettings().model),
            "base_url": os.getenv(ENV_KEYS["llm_base_url"], LLMSettings().base_url),
            "timeout_seconds": _env_float(
                ENV_KEYS["llm_timeout"], LLMSettings().timeout_seconds
            ),
        },
        "pdf": {
            "fetch_timeout_seconds": _env_float(
                ENV_KEYS["pdf_timeout"], PdfSettings().fetch_timeout_seconds
            ),
            "max_bytes": _env_int(ENV_KEYS["pdf_max_bytes"], PdfSettings().max_bytes),
        },
    }

    try:
        settings = Settings.model_validate(settings_data)
    except ValidationError as exc:
        raise RuntimeError(f"Invalid configuration: {exc}") from exc

    if settings.storage.blob_backend == "s3" and not settings.storage.s3_bucket:
        raise RuntimeError("Invalid configuration: S3_BUCKET is required for BLOB_BACKEND=s3")

    if settings.storage.blob_backend == "local":
        Path(settings.storage.blob_path).mkdir(parents=True, exist_ok=True)
    Path(settings.storage.sqlite_path).parent.mkdir(parents=True, exist_ok=True)

    return settings
