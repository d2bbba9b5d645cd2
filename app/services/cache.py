"""In-memory response cache with a fixed TTL."""

import logging
import time
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

logger = logging.getLogger(__name__)


class ResponseCache:
    """Maps a request key to ``(stored_at, value)``.

    Entries are only ever inserted or replaced whole.  Expired entries are
    dropped when read; once *max_entries* is reached, expired entries are
    purged and then the oldest remaining entry makes room for the new one.
    """

    def __init__(
        self,
        ttl: float = 3600,
        max_entries: int = 512,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl
        self._max_entries = max_entries
        self._clock = clock
        self._entries: Dict[Hashable, Tuple[float, Any]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def _expired(self, stored_at: float) -> bool:
        return self._clock() - stored_at >= self._ttl

    def get(self, key: Hashable) -> Optional[Any]:
        """Return the cached value, or ``None`` on miss / expiry."""
        entry = self._entries.get(key)
        if entry is None:
            logger.debug("cache miss", extra={"key": str(key)})
            return None
        stored_at, value = entry
        if self._expired(stored_at):
            self._entries.pop(key, None)
            logger.debug("cache expired", extra={"key": str(key)})
            return None
        logger.debug("cache hit", extra={"key": str(key)})
        return value

    def set(self, key: Hashable, value: Any) -> None:
        if key not in self._entries and len(self._entries) >= self._max_entries:
            self.purge_expired()
            if len(self._entries) >= self._max_entries:
                oldest = min(self._entries, key=lambda k: self._entries[k][0])
                del self._entries[oldest]
        self._entries[key] = (self._clock(), value)
        logger.debug("cache set", extra={"key": str(key), "ttl": self._ttl})

    def purge_expired(self) -> int:
        """Drop every expired entry and return how many were removed."""
        expired = [key for key, (stored_at, _) in self._entries.items() if self._expired(stored_at)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()
