"""Time helpers shared by aggregates and projections."""

from datetime import UTC, datetime


def utc_now():
    return datetime.now(UTC)


def as_naive_utc(value):
    """Normalise a datetime to naive UTC so stored and fresh values compare safely.

    Stored DateTime fields may come back with or without tzinfo depending on the
    provider, while freshly computed values are always aware.
    """
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)
