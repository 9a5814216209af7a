"""Timestamp helpers."""

from __future__ import annotations

from datetime import UTC, datetime


def rfc3339(epoch: int) -> str:
    """Render epoch seconds as RFC3339 UTC, e.g. ``2000-01-01T00:00:00Z``."""
    return datetime.fromtimestamp(epoch, tz=UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


def utc_now() -> datetime:
    return datetime.now(UTC)
