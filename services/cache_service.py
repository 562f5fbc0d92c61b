"""
Session cache for portal tokens
"""

import logging
import os
import threading
import time
from typing import Dict, Optional

from models import SessionCacheEntry, SessionKey

logger = logging.getLogger(__name__)

DEFAULT_SESSION_TTL = 3600


class SessionCache:
    """In-memory token cache with a fixed TTL and lazy eviction on read"""

    def __init__(self, default_ttl=DEFAULT_SESSION_TTL, clock=time.time):
        self.cache: Dict[SessionKey, SessionCacheEntry] = {}
        self.default_ttl = default_ttl
        self._clock = clock
        self._lock = threading.Lock()

    def get_token(self, key: SessionKey) -> Optional[str]:
        """Get the cached token for a session, or None if missing or expired"""
        with self._lock:
            entry = self.cache.get(key)
            if entry is None:
                return None
            if entry.is_expired(self.default_ttl, now=self._clock()):
                del self.cache[key]
                logger.debug(f"Token expired for {key}")
                return None
            logger.debug(f"Cache hit for token: {key}")
            return entry.token

    def cache_token(self, key: SessionKey, token: str) -> None:
        """Cache a token for a session, replacing any previous one"""
        with self._lock:
            self.cache[key] = SessionCacheEntry(key=key, token=token, cached_at=self._clock())
        logger.debug(f"Cached token for {key}")

    def invalidate(self, key: SessionKey) -> None:
        """Drop the token for a session"""
        with self._lock:
            self.cache.pop(key, None)

    def clear_all(self):
        """Clear all cache"""
        with self._lock:
            self.cache.clear()
        logger.info("Cleared all cached sessions")


# Global session cache instance
_session_cache: Optional[SessionCache] = None


def get_session_cache() -> SessionCache:
    """Get or create the global session cache instance."""
    global _session_cache
    if _session_cache is None:
        _session_cache = SessionCache(default_ttl=int(os.getenv("SESSION_TTL_SECONDS", DEFAULT_SESSION_TTL)))
    return _session_cache


def reset_session_cache() -> None:
    """Discard the global session cache (used by tests)."""
    global _session_cache
    _session_cache = None
