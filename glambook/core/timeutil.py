"""Timestamps are stored as naive UTC (TIMESTAMP WITHOUT TIME ZONE)."""

from datetime import UTC, datetime


def utc_naive_now() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


def to_naive_utc(dt: datetime) -> datetime:
    """Aware datetimes are converted to UTC; naive ones are taken as UTC already."""
    if dt.tzinfo is not None:
        return dt.astimezone(UTC).replace(tzinfo=None)
    return dt
