"""Parse ``Retry-After`` header values."""

from __future__ import annotations

from datetime import UTC, datetime
from email.utils import parsedate_to_datetime


def _parse_retry_after_seconds(value: str) -> float | None:
    try:
        seconds = float(value)
    except ValueError:
        return None
    return max(seconds, 0.0)


def _parse_retry_after_date(value: str, now: datetime | None = None) -> float | None:
    try:
        dt = parsedate_to_datetime(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    delta = (dt - (now or datetime.now(UTC))).total_seconds()
    return max(delta, 0.0)


def parse_retry_after(value: str | None, now: datetime | None = None) -> float | None:
    """Return the number of seconds a ``Retry-After`` header asks us to wait.

    Accepts both delta-seconds and HTTP-date forms; ``None`` when unparseable.
    """

    if not value:
        return None
    seconds = _parse_retry_after_seconds(value)
    if seconds is not None:
        return seconds
    return _parse_retry_after_date(value, now)
