"""In-memory response cache with a fixed time-to-live.

Keys are built from the route plus the request body serialized with sorted
keys, so two bodies that differ only in key order share an entry.
"""
import copy
import hashlib
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from relay.config import CacheSettings

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    key: str
    value: Dict[str, Any]
    expires_at: float


def make_cache_key(route: str, body: Any) -> str:
    """Canonical signature for a route + JSON body."""
    canonical = json.dumps(body, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str)
    digest = hashlib.sha256(canonical.encode("utf-8")).hexdigest()
    return f"{route}:{digest}"


class ResponseCache:
    """TTL map of full JSON responses.

    Attributes:
        settings: Whether caching is on and how long entries live.
    """

    def __init__(self, settings: Optional[CacheSettings] = None, clock: Callable[[], float] = time.monotonic) -> None:
        self.settings = settings or CacheSettings()
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}

    @property
    def enabled(self) -> bool:
        return self.settings.enabled

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        """Return a copy of the stored response, or None when absent or expired."""
        if not self.enabled:
            return None
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() >= entry.expires_at:
            del self._entries[key]
            return None
        return copy.deepcopy(entry.value)

    def set(self, key: str, value: Dict[str, Any]) -> None:
        if not self.enabled:
            return
        self._entries[key] = CacheEntry(
            key=key,
            value=copy.deepcopy(value),
            expires_at=self._clock() + self.settings.ttl_seconds,
        )

    def clear(self) -> int:
        """Drop every entry. Returns how many were removed."""
        count = len(self._entries)
        self._entries.clear()
        logger.info(f"Response cache cleared ({count} entries)")
        return count

    def purge_expired(self) -> int:
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if now >= entry.expires_at]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)
