"""UTC helpers shared by models and repositories."""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def as_utc(value: datetime | None) -> datetime | None:
    """
    Attach UTC to naive datetimes.

    SQLite drops tzinfo on ``DateTime(timezone=True)`` columns; values read
    back from it must be normalised before comparing with ``utc_now()``.
    """
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)
