"""
Read-through caching with status-dependent TTL, tag invalidation and
request coalescing.
"""
from .core import Aggregate, CacheEntry, CacheMeta, CachePolicy, EntityKind
from .policies import POLICY_TABLE, resolve, is_live, is_completed
from .keys import build_key, hash_params
from .store import CacheStore, MemoryCacheStore, RedisCacheStore, create_store
from .coalescer import RequestCoalescer
from .manager import CacheManager

__all__ = [
    # Core types
    "Aggregate",
    "CacheEntry",
    "CacheMeta",
    "CachePolicy",
    "EntityKind",
    # Policies
    "POLICY_TABLE",
    "resolve",
    "is_live",
    "is_completed",
    # Keys
    "build_key",
    "hash_params",
    # Stores
    "CacheStore",
    "MemoryCacheStore",
    "RedisCacheStore",
    "create_store",
    # Coalescing
    "RequestCoalescer",
    # Manager
    "CacheManager",
]
