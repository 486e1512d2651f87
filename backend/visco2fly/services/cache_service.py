"""In-memory response cache for flight searches, keyed by a search-parameter fingerprint."""

import hashlib
import json
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from visco2fly.config import settings
from visco2fly.schemas.search import SearchParams

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    payload: str
    timestamp: float


def search_fingerprint(params: SearchParams) -> str:
    """Deterministic key: SHA-1 of the canonical JSON of the search fields."""
    raw = json.dumps(params.fingerprint_fields(), sort_keys=True, separators=(",", ":"))
    return hashlib.sha1(raw.encode("utf-8")).hexdigest()


class CacheService:
    """Process-local cache with lazy expiry on read.

    Values are stored JSON-encoded so every hit decodes to a fresh, identical
    copy of what was written.
    """

    def __init__(self, ttl_seconds: float | None = None, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = settings.search_cache_ttl_seconds if ttl_seconds is None else ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def get(self, key: str) -> Any | None:
        """Get a value from cache. Returns None on miss or expiry."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.timestamp >= self.ttl_seconds:
            del self._entries[key]
            return None
        return json.loads(entry.payload)

    def set(self, key: str, value: Any):
        self._entries[key] = CacheEntry(payload=json.dumps(value, default=str), timestamp=self._clock())

    def __len__(self) -> int:
        return len(self._entries)

    # Typed helpers

    def get_search(self, params: SearchParams) -> dict | None:
        return self.get(search_fingerprint(params))

    def set_search(self, params: SearchParams, data: dict):
        self.set(search_fingerprint(params), data)
