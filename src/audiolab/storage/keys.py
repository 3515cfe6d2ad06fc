"""Storage key derivation for generated scripts."""

from __future__ import annotations

import re

from audiolab.utils.time import epoch_millis

KEY_PREFIX = "generated/"
KEY_SUFFIX = ".ssml"

_WHITESPACE_RE = re.compile(r"\s+")
_UNSAFE_RE = re.compile(r"[^A-Za-z0-9._-]")
_DASH_RUN_RE = re.compile(r"-{2,}")


def sanitize(name: str) -> str:
    """Turn a human-supplied script name into a key-safe slug."""
    slug = _WHITESPACE_RE.sub("-", name.strip())
    slug = _UNSAFE_RE.sub("", slug)
    slug = _DASH_RUN_RE.sub("-", slug).strip("-.")
    return slug or "script"


def build_storage_key(name: str, timestamp_ms: int | None = None) -> str:
    if timestamp_ms is None:
        timestamp_ms = epoch_millis()
    return f"{KEY_PREFIX}{sanitize(name)}-{timestamp_ms}{KEY_SUFFIX}"
