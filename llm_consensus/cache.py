"""TTL cache of consensus results with an injectable clock."""

from __future__ import annotations

from dataclasses import dataclass
import hashlib
import logging
from threading import Lock
import time
from typing import Callable

from .types import ConsensusResult


DEFAULT_TTL_SECONDS = 3600.0
KEY_PREFIX_CHARS = 100
KEY_HASH_CHARS = 8


def make_cache_key(question: str, agent: str = "unknown") -> str:
    """Agent-scoped key over the case/whitespace-normalized question prefix."""
    simplified = " ".join(question.lower().split())[:KEY_PREFIX_CHARS]
    digest = hashlib.md5(simplified.encode("utf-8")).hexdigest()[:KEY_HASH_CHARS]
    return f"{agent}:{digest}"


@dataclass(slots=True, frozen=True)
class CacheEntry:
    key: str
    result: ConsensusResult
    created_at: float
    ttl: float

    def expired(self, now: float) -> bool:
        return now - self.created_at >= self.ttl


class ConsensusCache:
    """Thread-safe key -> CacheEntry map.

    Expiry is evaluated against ``clock`` on every lookup and store, so tests
    can advance time deterministically.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        *,
        clock: Callable[[], float] = time.monotonic,
        logger: logging.Logger | None = None,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = Lock()
        self.logger = logger or logging.getLogger("llm_consensus.cache")

    def get(self, key: str) -> ConsensusResult | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.expired(self._clock()):
                del self._entries[key]
                self.logger.debug("Cache expired: %s", key)
                return None
            return entry.result

    def put(self, key: str, result: ConsensusResult, *, ttl_seconds: float | None = None) -> CacheEntry:
        """Store ``result`` under ``key``, replacing any previous entry wholesale."""
        with self._lock:
            now = self._clock()
            self._purge_locked(now)
            ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
            entry = CacheEntry(key=key, result=result, created_at=now, ttl=ttl)
            self._entries[key] = entry
            return entry

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def purge_expired(self) -> int:
        with self._lock:
            return self._purge_locked(self._clock())

    def _purge_locked(self, now: float) -> int:
        expired = [key for key, entry in self._entries.items() if entry.expired(now)]
        for key in expired:
            del self._entries[key]
        if expired:
            self.logger.debug("Evicted %d expired cache entries", len(expired))
        return len(expired)

    def clear(self) -> int:
        with self._lock:
            size = len(self._entries)
            self._entries.clear()
        self.logger.info("Cache cleared (%d entries)", size)
        return size

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
