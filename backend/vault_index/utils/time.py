"""Time helpers."""

from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return timezone-aware UTC datetime."""
    return datetime.now(tz=timezone.utc)


def ms_to_display(value: int) -> str:
    """Render an epoch-millisecond timestamp in local time."""
    return datetime.fromtimestamp(value / 1000).strftime("%Y-%m-%d %H:%M:%S")
