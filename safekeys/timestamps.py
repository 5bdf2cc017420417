"""Canonical timestamp handling shared by envelopes and vault records.

Every timestamp is stored as UTC with millisecond precision and rendered as
``YYYY-MM-DDTHH:MM:SS.sssZ``.
"""
from datetime import datetime, timezone


def utcnow() -> datetime:
    return normalize_timestamp(datetime.now(timezone.utc))


def normalize_timestamp(value: datetime) -> datetime:
    """Convert to an aware UTC datetime truncated to milliseconds.

    Naive datetimes are taken to be UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    else:
        value = value.astimezone(timezone.utc)
    return value.replace(microsecond=(value.microsecond // 1000) * 1000)


def format_timestamp(value: datetime) -> str:
    value = normalize_timestamp(value)
    return (
        f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
        f"T{value.hour:02d}:{value.minute:02d}:{value.second:02d}"
        f".{value.microsecond // 1000:03d}Z"
    )
