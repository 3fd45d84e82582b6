import logging
import threading
import time
from typing import Callable, Dict, Optional, Tuple

from app.core.config import settings

logger = logging.getLogger(__name__)

Generation = Tuple[int, int]


class BalanceCache:
    """
    customer_name -> (balance, computed_at) with a fixed TTL.

    Safe to share between concurrent requests: every access holds a lock.
    Keys are stripped customer names; blank names are never cached.

    Every invalidate() bumps the customer's generation and clear() bumps the
    cache-wide epoch. A reader takes generation() before querying the store and
    hands it back to set(); if the customer was invalidated in between, the
    computed balance is already stale and is not stored.
    """

    def __init__(
        self,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        self.ttl_seconds = settings.BALANCE_CACHE_TTL_SECONDS if ttl_seconds is None else ttl_seconds
        self._clock = clock
        self._entries: Dict[str, Tuple[float, float]] = {}
        self._generations: Dict[str, int] = {}
        self._epoch = 0
        self._lock = threading.Lock()

    @staticmethod
    def _key(customer_name: Optional[str]) -> Optional[str]:
        if not customer_name or not customer_name.strip():
            return None
        return customer_name.strip()

    def _current_generation(self, key: str) -> Generation:
        return self._epoch, self._generations.get(key, 0)

    def get(self, customer_name: str) -> Optional[float]:
        """Fresh cached balance, or None. Expired entries are dropped."""
        key = self._key(customer_name)
        if key is None:
            return None

        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            balance, computed_at = entry
            if self._clock() - computed_at >= self.ttl_seconds:
                del self._entries[key]
                return None
        logger.debug("Using cached balance for %r: %.2f", key, balance)
        return balance

    def generation(self, customer_name: str) -> Optional[Generation]:
        """Stamp to pass to set() for a balance computed from a read started now."""
        key = self._key(customer_name)
        if key is None:
            return None
        with self._lock:
            return self._current_generation(key)

    def set(self, customer_name: str, balance: float, generation: Optional[Generation] = None) -> bool:
        """Store a balance. Returns False when `generation` is stale and nothing was stored."""
        key = self._key(customer_name)
        if key is None:
            return False
        with self._lock:
            if generation is not None and generation != self._current_generation(key):
                logger.debug("Not caching balance for %r: invalidated while it was computed", key)
                return False
            self._entries[key] = (balance, self._clock())
        return True

    def invalidate(self, customer_name: str) -> None:
        key = self._key(customer_name)
        if key is None:
            return
        with self._lock:
            self._entries.pop(key, None)
            self._generations[key] = self._generations.get(key, 0) + 1
        logger.debug("Cache invalidated for %r", key)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._generations.clear()
            self._epoch += 1
        logger.debug("All balance cache cleared")

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
