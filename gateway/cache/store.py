"""
Cache stores: key/value with TTL expiry and tag-based bulk invalidation.

Stores never raise to their callers. A broken backend looks like a cache
that always misses, and failed writes are logged and dropped.
"""
import logging
import threading
import time
from typing import Dict, Iterable, Optional, Protocol, Set

import redis

from .core import CacheEntry

logger = logging.getLogger("cache.store")


class CacheStore(Protocol):
    """
    Interface for cache backends.

    Implementations:
    - MemoryCacheStore: per-process dict with a tag index
    - RedisCacheStore: shared Redis with one set per tag
    """

    def get(self, key: str) -> Optional[bytes]:
        ...

    def put(self, key: str, value: bytes, ttl: int, tags: Iterable[str] = ()) -> None:
        ...

    def invalidate_by_tag(self, tag: str) -> int:
        """Remove every entry carrying `tag`. Returns the number removed."""
        ...

    def forget(self, key: str) -> bool:
        ...

    def clear(self) -> int:
        ...

    def stats(self) -> Dict[str, object]:
        ...


class MemoryCacheStore:
    """
    In-process store. One lock guards both the entries and the tag index,
    so a get during invalidation sees either the old value or a miss.
    """

    def __init__(self):
        self._entries: Dict[str, CacheEntry] = {}
        self._tag_index: Dict[str, Set[str]] = {}
        self._lock = threading.RLock()

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.is_expired:
                self._remove(key)
                return None
            return entry.value

    def put(self, key: str, value: bytes, ttl: int, tags: Iterable[str] = ()) -> None:
        if ttl <= 0:
            return
        entry = CacheEntry(
            key=key,
            value=value,
            tags=frozenset(tags),
            expires_at=time.monotonic() + ttl,
        )
        with self._lock:
            self._remove(key)
            self._entries[key] = entry
            for tag in entry.tags:
                self._tag_index.setdefault(tag, set()).add(key)

    def invalidate_by_tag(self, tag: str) -> int:
        with self._lock:
            keys = self._tag_index.pop(tag, set())
            for key in keys:
                self._remove(key)
            return len(keys)

    def forget(self, key: str) -> bool:
        with self._lock:
            return self._remove(key)

    def clear(self) -> int:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            self._tag_index.clear()
            return count

    def purge_expired(self) -> int:
        """Drop every expired entry. Returns the number removed."""
        with self._lock:
            expired = [k for k, e in self._entries.items() if e.is_expired]
            for key in expired:
                self._remove(key)
            return len(expired)

    def ttl(self, key: str) -> Optional[float]:
        """Seconds left for `key`, or None when absent."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or entry.is_expired:
                return None
            return entry.ttl_remaining

    def stats(self) -> Dict[str, object]:
        with self._lock:
            return {
                "backend": "memory",
                "entries": len(self._entries),
                "tags": len(self._tag_index),
            }

    def _remove(self, key: str) -> bool:
        # Caller holds the lock
        entry = self._entries.pop(key, None)
        if entry is None:
            return False
        for tag in entry.tags:
            keys = self._tag_index.get(tag)
            if keys is not None:
                keys.discard(key)
                if not keys:
                    del self._tag_index[tag]
        return True


class RedisCacheStore:
    """
    Redis-backed store shared by all gateway workers.

    Values live under their key with SETEX; each tag is a set of member keys
    under "{prefix}:tag:{tag}". Invalidation deletes the members and the set
    in one MULTI/EXEC while WATCHing the set.
    """

    def __init__(self, client: "redis.Redis", prefix: str = "gateway"):
        self._client = client
        self._prefix = prefix

    @classmethod
    def from_url(cls, url: str, prefix: str = "gateway") -> "RedisCacheStore":
        return cls(redis.Redis.from_url(url), prefix=prefix)

    def _tag_key(self, tag: str) -> str:
        return f"{self._prefix}:tag:{tag}"

    def get(self, key: str) -> Optional[bytes]:
        try:
            return self._client.get(key)
        except redis.RedisError as e:
            logger.warning(f"Cache get failed for {key}, treating as miss: {e}")
            return None

    def put(self, key: str, value: bytes, ttl: int, tags: Iterable[str] = ()) -> None:
        if ttl <= 0:
            return
        tag_keys = [self._tag_key(tag) for tag in tags]
        try:
            pipe = self._client.pipeline(transaction=True)
            pipe.setex(key, ttl, value)
            for tag_key in tag_keys:
                pipe.sadd(tag_key, key)
                pipe.ttl(tag_key)
            results = pipe.execute()

            # Tag sets live at least as long as their longest member.
            # TTL replies -1 (no expiry) and -2 (missing) count as shorter.
            remaining = results[2::2]
            stale = [tk for tk, left in zip(tag_keys, remaining) if left < ttl]
            if stale:
                extend = self._client.pipeline(transaction=False)
                for tag_key in stale:
                    extend.expire(tag_key, ttl)
                extend.execute()
        except redis.RedisError as e:
            logger.warning(f"Cache put failed for {key}: {e}")

    def invalidate_by_tag(self, tag: str) -> int:
        tag_key = self._tag_key(tag)

        def flush(pipe):
            members = pipe.smembers(tag_key)
            pipe.multi()
            if members:
                pipe.delete(*members)
            pipe.delete(tag_key)
            return len(members)

        try:
            return self._client.transaction(flush, tag_key, value_from_callable=True)
        except redis.RedisError as e:
            logger.error(f"Failed to invalidate tag {tag}: {e}")
            return 0

    def forget(self, key: str) -> bool:
        try:
            return bool(self._client.delete(key))
        except redis.RedisError as e:
            logger.error(f"Failed to forget cache key {key}: {e}")
            return False

    def clear(self) -> int:
        try:
            keys = list(self._client.scan_iter(match=f"{self._prefix}:*"))
            if keys:
                return int(self._client.delete(*keys))
            return 0
        except redis.RedisError as e:
            logger.error(f"Failed to clear cache: {e}")
            return 0

    def stats(self) -> Dict[str, object]:
        try:
            info = self._client.info()
            return {
                "backend": "redis",
                "keyspace_hits": int(info.get("keyspace_hits", 0)),
                "keyspace_misses": int(info.get("keyspace_misses", 0)),
                "used_memory": int(info.get("used_memory", 0)),
            }
        except redis.RedisError:
            return {"backend": "redis", "available": False}


def create_store(backend: str, redis_url: str = "", prefix: str = "gateway") -> CacheStore:
    """Build the store named by the `cache_backend` setting."""
    if backend == "redis":
        logger.info(f"Using Redis cache backend at {redis_url}")
        return RedisCacheStore.from_url(redis_url, prefix=prefix)
    return MemoryCacheStore()
