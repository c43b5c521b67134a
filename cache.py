"""Thread-safe in-memory TTL cache for weather data."""

import logging
import threading
import time

from config import DEFAULT_CACHE_TTL

log = logging.getLogger(__name__)


class TTLCache:
    """Key -> value store where every entry expires after its own TTL.

    TTLs are in seconds. ``clock`` returns the current time in seconds and
    defaults to ``time.monotonic``; tests pass a fake clock.
    """

    def __init__(self, default_ttl=DEFAULT_CACHE_TTL, clock=time.monotonic):
        self._lock = threading.Lock()
        self._entries = {}  # key -> (value, created_at, ttl)
        self._default_ttl = default_ttl
        self._clock = clock

    def _expired(self, entry, now):
        _, created_at, ttl = entry
        return now - created_at >= ttl

    def get(self, key):
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._expired(entry, self._clock()):
                del self._entries[key]
                return None
            return entry[0]

    def set(self, key, value, ttl=None):
        # Replacing the tuple drops the old entry's expiry along with it
        if ttl is None:
            ttl = self._default_ttl
        with self._lock:
            self._entries[key] = (value, self._clock(), ttl)

    def delete(self, key):
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self):
        with self._lock:
            self._entries.clear()

    def purge_expired(self):
        """Drop every expired entry. Returns the number removed."""
        with self._lock:
            now = self._clock()
            stale = [k for k, e in self._entries.items() if self._expired(e, now)]
            for key in stale:
                del self._entries[key]
        if stale:
            log.debug("Purged %d expired cache entries", len(stale))
        return len(stale)

    def size(self):
        with self._lock:
            return len(self._entries)

    def keys(self):
        with self._lock:
            return list(self._entries)

    def stats(self):
        """Diagnostic snapshot: size plus age/ttl of each entry."""
        with self._lock:
            now = self._clock()
            entries = [
                {
                    "key": key,
                    "age": round(now - created_at, 3),
                    "ttl": ttl,
                    "expired": self._expired((value, created_at, ttl), now),
                }
                for key, (value, created_at, ttl) in self._entries.items()
            ]
        return {"size": len(entries), "entries": entries}
