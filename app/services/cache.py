"""
Key-value store for hydrated book detail payloads.

Handlers never talk to a global cache; they receive a ``BookCache`` through
``get_cache`` so tests and alternative deployments can swap the backend.
"""
import json
import logging
import threading
import time
from typing import Any, Optional, Protocol

import redis

from app.config import settings

logger = logging.getLogger(__name__)

CACHE_TTL = settings.book_cache_ttl


def book_cache_key(book_id: int) -> str:
    return f"book:{book_id}"


class BookCache(Protocol):
    def get(self, key: str) -> Optional[Any]: ...

    def set(self, key: str, value: Any, ttl: int = CACHE_TTL) -> None: ...

    def invalidate(self, key: str) -> None: ...


class MemoryCache:
    """In-process TTL store. Expired entries are dropped lazily on read."""

    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if expires_at <= self._clock():
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: Any, ttl: int = CACHE_TTL) -> None:
        with self._lock:
            now = self._clock()
            self._prune(now)
            self._entries[key] = (now + ttl, value)

    def _prune(self, now: float) -> None:
        expired = [k for k, (expires_at, _) in self._entries.items() if expires_at <= now]
        for k in expired:
            del self._entries[k]

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None


class RedisCache:
    """Redis-backed store; payloads are kept as JSON strings."""

    def __init__(self, client: redis.Redis):
        self.client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisCache":
        return cls(redis.Redis.from_url(url, decode_responses=True, encoding="utf-8"))

    def get(self, key: str) -> Optional[Any]:
        raw = self.client.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    def set(self, key: str, value: Any, ttl: int = CACHE_TTL) -> None:
        self.client.setex(key, ttl, json.dumps(value))

    def invalidate(self, key: str) -> None:
        self.client.delete(key)


LOCAL_ENVS = {"local", "test"}


def build_cache(backend: str = settings.cache_backend, env: str = settings.ENV) -> BookCache:
    if backend == "redis":
        logger.info(f"Using redis book cache at {settings.redis_url}")
        return RedisCache.from_url(settings.redis_url)
    if backend != "memory":
        raise ValueError(f"Unknown cache backend: {backend}")
    if env not in LOCAL_ENVS:
        # evictions do not reach other worker processes
        logger.warning(
            "In-process book cache in use; run a single worker or set CACHE_BACKEND=redis"
        )
    return MemoryCache()


_cache: Optional[BookCache] = None


def get_cache() -> BookCache:
    global _cache
    if _cache is None:
        _cache = build_cache()
    return _cache
