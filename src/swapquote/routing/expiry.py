"""Quote expiration helpers."""

from datetime import datetime, timedelta, timezone
from typing import Optional

DEFAULT_MARGIN_SECONDS = 30


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_in_future(
    date: Optional[datetime],
    margin_seconds: float = DEFAULT_MARGIN_SECONDS,
    now: Optional[datetime] = None,
) -> Optional[datetime]:
    """
    Push an expiration out to at least ``now + margin_seconds``.

    Providers sometimes return expirations that are already stale by the time
    the reply is processed. Naive dates are taken as UTC. Returns None when
    no date is given.
    """
    if date is None:
        return None
    if date.tzinfo is None:
        date = date.replace(tzinfo=timezone.utc)
    target = (now or utcnow()) + timedelta(seconds=margin_seconds)
    return date if target < date else target
