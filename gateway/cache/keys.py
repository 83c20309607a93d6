"""
Cache key generation based on route + query params.
"""
import hashlib
import json
from typing import Any, Dict, Optional

from config.settings import settings


def normalize_route(route: str) -> str:
    """Turn "matches.details/42" style route names into "matches:details:42"."""
    for sep in (".", "/"):
        route = route.replace(sep, ":")
    return route.strip(":")


def hash_params(params: Dict[str, Any]) -> str:
    """
    Hash query params independently of their order.

    None values are dropped so an omitted filter and an explicit empty one
    share a key.
    """
    cleaned = sorted((str(k), v) for k, v in params.items() if v is not None)
    encoded = json.dumps(cleaned, separators=(",", ":"), default=str)
    return hashlib.md5(encoded.encode("utf-8")).hexdigest()


def build_key(
    route: str,
    params: Optional[Dict[str, Any]] = None,
    prefix: Optional[str] = None,
) -> str:
    """
    Build the cache key for a logical request.

    Args:
        route: Route name, e.g. "match_details:42" or "tournaments.list"
        params: Filter parameters; order does not matter
        prefix: Namespace, defaults to settings.cache_key_prefix

    Returns:
        "{prefix}:{route}" plus ":{params hash}" when there are params
    """
    prefix = settings.cache_key_prefix if prefix is None else prefix
    key = normalize_route(route)
    if prefix:
        key = f"{prefix}:{key}"
    if params and any(v is not None for v in params.values()):
        key = f"{key}:{hash_params(params)}"
    return key
