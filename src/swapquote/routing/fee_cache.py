"""Short-lived cache pinning custom network fees across spend-building calls.

A quote flow may build the same spend more than once (preview, then the real
quote). The fees picked on the first build are stored here under a session id
so later builds reuse them.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 30.0


@dataclass
class FeeCacheEntry:
    """Custom fees pinned for one quote session."""

    session_id: str
    created_at: float
    custom_network_fee: dict = field(default_factory=dict)


class FeeOverrideCache:
    """In-memory fee cache with lazy expiry.

    Expired entries are purged whenever a session is created or fees are
    written, and are never returned by :meth:`get_fees`, even before they are
    purged.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, FeeCacheEntry] = {}
        self._next_id = 0

    def create_session(self) -> str:
        """Start a session with an empty fee map and return its id."""
        now = self._clock()
        self._purge(now)
        session_id = str(self._next_id)
        self._next_id += 1
        self._entries[session_id] = FeeCacheEntry(session_id=session_id, created_at=now)
        return session_id

    def get_fees(self, session_id: str) -> Optional[dict]:
        """Pinned fees for a session, or None if unknown, empty or expired."""
        entry = self._entries.get(session_id)
        if entry is None or self._is_expired(entry, self._clock()):
            return None
        return entry.custom_network_fee or None

    def set_fees(self, session_id: str, custom_network_fee: dict) -> None:
        """Pin fees for a session, purging expired entries first."""
        now = self._clock()
        self._purge(now)
        self._entries[session_id] = FeeCacheEntry(
            session_id=session_id,
            created_at=now,
            custom_network_fee=dict(custom_network_fee),
        )

    def _purge(self, now: float) -> None:
        expired = [sid for sid, entry in self._entries.items() if self._is_expired(entry, now)]
        for sid in expired:
            del self._entries[sid]
        if expired:
            logger.debug(f"Purged {len(expired)} expired fee sessions")

    def _is_expired(self, entry: FeeCacheEntry, now: float) -> bool:
        return now - entry.created_at > self.ttl_seconds

    def __len__(self) -> int:
        return len(self._entries)
