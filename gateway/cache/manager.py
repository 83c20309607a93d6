"""
Read-through cache orchestration.

Request flow:
    compute key -> store hit? return cached
                -> miss: single-flight load -> Ok: store under the
                   aggregation's policy, return fresh
                                            -> Err: raise, store nothing
"""
import dataclasses
import json
import logging
import threading
from typing import Any, Callable, Dict, Optional, Tuple

from gateway.clients.result import FetchResult
from gateway.errors import ErrorKind, error_for
from .coalescer import RequestCoalescer
from .core import Aggregate, CacheMeta, CachePolicy
from .keys import build_key
from .store import CacheStore

logger = logging.getLogger("cache.manager")

# A loader returns FetchResult[Aggregate]
Loader = Callable[[], FetchResult]

_MISS = object()

STAT_COUNTERS = ("hits", "misses", "errors", "coalesced", "invalidations")


def to_plain(document: Any) -> Any:
    """Convert typed documents (dataclasses, lists of them) to JSON-ready data."""
    if dataclasses.is_dataclass(document) and not isinstance(document, type):
        return dataclasses.asdict(document)
    if isinstance(document, (list, tuple)):
        return [to_plain(item) for item in document]
    return document


def encode(document: Any) -> bytes:
    return json.dumps(
        to_plain(document), separators=(",", ":"), sort_keys=True, default=str
    ).encode("utf-8")


class CacheManager:
    """
    Read-through cache in front of the aggregators.

    - Deterministic keys from route name + sorted params
    - Single-flight loading per key
    - Only successful aggregations are stored, under their own TTL and tags
    - Store failures degrade to recomputing, never to an error response
    """

    def __init__(
        self,
        store: CacheStore,
        coalesce_timeout: float = 30.0,
        key_prefix: Optional[str] = None,
    ):
        """
        Args:
            store: Backend holding serialized documents
            coalesce_timeout: Max seconds to wait on another request's load
            key_prefix: Key namespace, defaults to settings.cache_key_prefix
        """
        self._store = store
        self._coalescer = RequestCoalescer(timeout=coalesce_timeout)
        self._key_prefix = key_prefix

        self._stats = dict.fromkeys(STAT_COUNTERS, 0)
        self._stats_lock = threading.Lock()

    @property
    def store(self) -> CacheStore:
        return self._store

    def key_for(self, route: str, params: Optional[Dict[str, Any]] = None) -> str:
        return build_key(route, params, prefix=self._key_prefix)

    def fetch(
        self,
        route: str,
        loader: Loader,
        params: Optional[Dict[str, Any]] = None,
        force_refresh: bool = False,
    ) -> Tuple[Any, CacheMeta]:
        """
        Serve `route` from cache, or aggregate it with `loader` and cache it.

        Args:
            route: Route name, e.g. "match_details:42"
            loader: Callable returning FetchResult[Aggregate]
            params: Filter params that are part of the key
            force_refresh: Skip the cache read (the fresh result is still stored)

        Returns:
            (data, cache_meta) tuple

        Raises:
            GatewayError: When the aggregation fails (nothing is cached)
        """
        key = self.key_for(route, params)

        if not force_refresh:
            data = self._read(key)
            if data is not _MISS:
                logger.debug(f"CACHE HIT: {key}")
                self._count("hits")
                return data, CacheMeta(key=key, cached=True)

        logger.info(f"CACHE MISS: {key}" + (" (forced)" if force_refresh else ""))
        self._count("misses")

        result, shared = self._coalescer.run(key, lambda: self._load(key, loader))
        if shared:
            logger.debug(f"CACHE COALESCED: {key}")
            self._count("coalesced")
        if not result.is_ok:
            self._count("errors")
            raise error_for(result.error, result.message)

        payload, policy = result.value
        return json.loads(payload), CacheMeta(
            key=key,
            cached=False,
            ttl_seconds=policy.ttl,
            tags=policy.tags,
        )

    def _read(self, key: str) -> Any:
        try:
            raw = self._store.get(key)
        except Exception as e:
            logger.warning(f"Cache read failed for {key}, treating as miss: {e}")
            return _MISS
        if raw is None:
            return _MISS
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning(f"Dropping undecodable cache entry: {key}")
            self._store.forget(key)
            return _MISS

    def _load(self, key: str, loader: Loader) -> FetchResult:
        try:
            result = loader()
        except Exception:
            logger.exception(f"Aggregation failed for {key}")
            return FetchResult.err(ErrorKind.INTERNAL, "Failed to aggregate data")

        if not result.is_ok:
            logger.info(f"Not caching {key}: {result.error.value} ({result.message})")
            return result

        aggregate: Aggregate = result.value
        policy: CachePolicy = aggregate.policy
        payload = encode(aggregate.document)

        if policy.cacheable:
            try:
                self._store.put(key, payload, policy.ttl, policy.tags)
            except Exception as e:
                logger.warning(f"Cache write failed for {key}: {e}")

        return FetchResult.ok((payload, policy))

    def invalidate_tags(self, *tags: str) -> int:
        """
        Drop every entry carrying any of `tags`.

        Returns:
            Number of entries removed
        """
        removed = 0
        for tag in tags:
            removed += self._store.invalidate_by_tag(tag)
        self._count("invalidations")
        logger.info(f"Invalidated {removed} entries for tags {sorted(tags)}")
        return removed

    def forget(self, route: str, params: Optional[Dict[str, Any]] = None) -> bool:
        """Remove the entry for one logical request."""
        return self._store.forget(self.key_for(route, params))

    def clear(self) -> int:
        count = self._store.clear()
        logger.info(f"Cleared {count} cache entries")
        return count

    def _count(self, name: str) -> None:
        with self._stats_lock:
            self._stats[name] += 1

    def reset_stats(self) -> None:
        """Zero every request counter. Stored entries are untouched."""
        with self._stats_lock:
            self._stats = dict.fromkeys(STAT_COUNTERS, 0)

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        with self._stats_lock:
            stats = dict(self._stats)

        total = stats["hits"] + stats["misses"]
        stats["total_requests"] = total
        stats["hit_rate_percent"] = round(stats["hits"] / total * 100, 1) if total else 0
        stats["store"] = self._store.stats()
        stats["coalescer"] = self._coalescer.stats()
        return stats
