from __future__ import annotations

from datetime import datetime, timezone

import pytest

from audiolab.storage import keys
from audiolab.utils.time import epoch_millis


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("Weekly Digest", "Weekly-Digest"),
        ("  spaced   out  ", "spaced-out"),
        ("a/b\\c", "abc"),
        ("../../etc", "etc"),
        ("résumé notes", "rsum-notes"),
        ("!!!", "script"),
    ],
)
def test_sanitize(name: str, expected: str) -> None:
    assert keys.sanitize(name) == expected


def test_build_storage_key_with_timestamp() -> None:
    assert (
        keys.build_storage_key("Weekly Digest", timestamp_ms=1700000000000)
        == "generated/Weekly-Digest-1700000000000.ssml"
    )


def test_build_storage_key_uses_current_time(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(keys, "epoch_millis", lambda: 42)
    assert keys.build_storage_key("x") == "generated/x-42.ssml"


def test_epoch_millis_of_known_moment() -> None:
    moment = datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)
    assert epoch_millis(moment) == 1700000000000
