import logging
import threading
import time
import weakref
from typing import Dict, Optional, Tuple

logger = logging.getLogger(__name__)

# ttl sentinels accepted by ExpiringCache.set
DEFAULT_EXPIRATION = 0.0
NO_EXPIRATION = -1.0

DEFAULT_CLEANUP_INTERVAL = 60.0


class ExpiringCache:
    """Thread-safe in-memory cache keyed by identifier, with optional expiry.

    Entries expire after ``default_ttl`` seconds unless stored with their own
    ttl; a ``default_ttl`` <= 0 keeps entries until the process ends. When
    ``cleanup_interval`` is positive a daemon janitor thread removes expired
    entries on that schedule.
    """

    def __init__(
        self,
        default_ttl: float = NO_EXPIRATION,
        cleanup_interval: float = DEFAULT_CLEANUP_INTERVAL,
    ) -> None:
        self.default_ttl = default_ttl if default_ttl > 0 else NO_EXPIRATION
        self.cleanup_interval = cleanup_interval
        self._memory: Dict[str, Tuple[str, Optional[float]]] = {}
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._janitor: Optional[threading.Thread] = None
        if cleanup_interval > 0:
            # Janitor holds only a weak reference; the finalizer stops it once
            # the cache is collected.
            self._janitor = threading.Thread(
                target=_run_janitor,
                args=(weakref.ref(self), self._stop, cleanup_interval),
                name="ethresolver-cache-janitor",
                daemon=True,
            )
            self._janitor.start()
            weakref.finalize(self, self._stop.set)

    def _now(self) -> float:
        return time.monotonic()

    def _deadline(self, ttl: float) -> Optional[float]:
        if ttl == DEFAULT_EXPIRATION:
            ttl = self.default_ttl
        if ttl <= 0:
            return None
        return self._now() + ttl

    def get(self, key: str) -> Tuple[Optional[str], bool]:
        with self._lock:
            entry = self._memory.get(key)
            if entry is None:
                return None, False
            value, deadline = entry
            if deadline is not None and self._now() > deadline:
                return None, False
            return value, True

    def set(self, key: str, value: str, ttl: float = DEFAULT_EXPIRATION) -> None:
        deadline = self._deadline(ttl)
        with self._lock:
            self._memory[key] = (value, deadline)

    def delete_expired(self) -> int:
        now = self._now()
        with self._lock:
            expired = [
                key
                for key, (_, deadline) in self._memory.items()
                if deadline is not None and now > deadline
            ]
            for key in expired:
                del self._memory[key]
        if expired:
            logger.debug("Evicted %d expired cache entries", len(expired))
        return len(expired)

    def close(self) -> None:
        self._stop.set()
        if self._janitor is not None and self._janitor is not threading.current_thread():
            self._janitor.join(timeout=1.0)

    def __len__(self) -> int:
        with self._lock:
            return len(self._memory)


def _run_janitor(
    cache_ref: "weakref.ref[ExpiringCache]",
    stop: threading.Event,
    interval: float,
) -> None:
    while not stop.wait(interval):
        cache = cache_ref()
        if cache is None:
            return
        cache.delete_expired()
        del cache
