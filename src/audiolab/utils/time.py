"""Time helpers."""

from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


def epoch_millis(moment: datetime | None = None) -> int:
    moment = moment or utc_now()
    return int(moment.timestamp() * 1000)
