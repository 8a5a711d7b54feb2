"""Daily bundle cache with a fixed time-to-live.

Expiry is lazy: an expired entry is deleted when it is next read. ``prune``
removes old entries in bulk.
"""

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Callable

from pydantic import ValidationError

from .errors import PersistenceError
from .models import CACHE_TTL, CacheEntry, ReadingBundle
from .storage import CACHE_STORE, JsonStore

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ReadingCache:
    """Bundles keyed by calendar day, last write wins."""

    def __init__(
        self,
        store: JsonStore,
        ttl: timedelta = CACHE_TTL,
        clock: Clock = utc_now,
    ) -> None:
        self.store = store
        self.ttl = ttl
        self.clock = clock

    @classmethod
    def open(cls, data_dir: str, ttl_hours: int = 24) -> "ReadingCache":
        return cls(JsonStore(CACHE_STORE, data_dir), ttl=timedelta(hours=ttl_hours))

    def _parse(self, key: str, raw: dict) -> CacheEntry:
        try:
            return CacheEntry.model_validate(raw)
        except ValidationError as exc:
            raise PersistenceError(f"corrupt cache entry {key}: {exc}") from exc

    def get(self, day: date) -> CacheEntry | None:
        key = day.isoformat()
        raw = self.store.get(key)
        if raw is None:
            return None

        entry = self._parse(key, raw)
        if entry.is_expired(self.clock()):
            logger.info("Cache expired for %s, removing", key)
            self.store.delete(key)
            return None

        logger.debug("Cache hit for %s", key)
        return entry

    def put(self, day: date, bundle: ReadingBundle) -> CacheEntry:
        entry = CacheEntry.create(day, bundle, stored_at=self.clock(), ttl=self.ttl)
        self.store.put(day.isoformat(), entry.model_dump(mode="json"))
        logger.info("Cached bundle for %s (%d chars)", day, bundle.total_char_count)
        return entry

    def prune(self, older_than_days: int = 7) -> int:
        """Delete entries stored more than ``older_than_days`` ago; returns count."""
        cutoff = self.clock() - timedelta(days=older_than_days)
        removed = 0
        for key, raw in self.store.all().items():
            if self._parse(key, raw).stored_at < cutoff:
                self.store.delete(key)
                removed += 1
        if removed:
            logger.info("Pruned %d cache entries older than %d days", removed, older_than_days)
        return removed
