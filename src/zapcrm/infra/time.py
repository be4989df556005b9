"""Clock helpers."""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Current instant as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def from_epoch_ms(value: float) -> datetime:
    """Epoch milliseconds to a UTC datetime."""
    return datetime.fromtimestamp(value / 1000, timezone.utc)
