# backend/trip_planner/services/attractions_cache.py

import threading
import time
from typing import Callable, Dict, List, Optional, Tuple

from trip_planner.core.config_loader import settings
from trip_planner.core.logger import get_logger
from trip_planner.models.ai_models import Attraction

log = get_logger("attractions_cache")

CacheKey = Tuple[str, str, str, str, str]


def make_key(
    region: str,
    date: str,
    user_suggestion: Optional[str] = None,
    request_more: bool = False,
    user_id: Optional[str] = None,
) -> CacheKey:
    # personalized results are never shared between users
    return (region, date, user_suggestion or "", "more" if request_more else "", user_id or "")


class AttractionsCache:
    """
    Read-through cache in front of attraction discovery.

    Not authoritative: entries expire after `ttl_seconds` and can be dropped
    by region+date or wholesale. Safe to share between request threads.
    """

    def __init__(self, ttl_seconds: Optional[float] = None, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.attractions_cache_ttl_seconds
        self.clock = clock
        self._entries: Dict[CacheKey, Tuple[float, List[Attraction]]] = {}
        self._lock = threading.Lock()

    def get(self, key: CacheKey) -> Optional[List[Attraction]]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            stored_at, attractions = entry
            if self.clock() - stored_at >= self.ttl_seconds:
                del self._entries[key]
                return None
            return list(attractions)

    def set(self, key: CacheKey, attractions: List[Attraction]) -> None:
        with self._lock:
            now = self.clock()
            expired = [k for k, (stored_at, _) in self._entries.items() if now - stored_at >= self.ttl_seconds]
            for stale_key in expired:
                del self._entries[stale_key]
            self._entries[key] = (now, list(attractions))

        if expired:
            log.debug(f"Pruned {len(expired)} expired attraction cache entries")

    def get_or_load(self, key: CacheKey, loader: Callable[[], List[Attraction]]) -> List[Attraction]:
        cached = self.get(key)
        if cached is not None:
            log.debug(f"Cache hit for {key[:4]}")
            return cached

        attractions = loader()
        self.set(key, attractions)
        return list(attractions)

    def invalidate(
        self,
        region: Optional[str] = None,
        date: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> int:
        """
        Drop entries for region+date, or everything when either is missing.
        With `user_id`, only that user's entries are touched.
        """
        with self._lock:
            stale = [
                k for k in self._entries
                if (user_id is None or k[4] == user_id)
                and (not (region and date) or (k[0] == region and k[1] == date))
            ]
            for key in stale:
                del self._entries[key]

        log.info(
            f"Invalidated {len(stale)} attraction cache entries "
            f"(region={region!r}, date={date!r}, user={user_id!r})"
        )
        return len(stale)

    def __len__(self) -> int:
        return len(self._entries)
