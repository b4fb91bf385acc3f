"""In-process read cache for list queries.

Entries are grouped by namespace ("types", "runs", "entries", "reports",
"research"). Every operation that mutates a table invalidates the matching
namespaces itself, right after its commit; nothing expires implicitly except
through QUERY_CACHE_TTL.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Hashable, Optional

from collector.config import settings

logger = logging.getLogger(__name__)

TYPES = "types"
RUNS = "runs"
ENTRIES = "entries"
REPORTS = "reports"
RESEARCH = "research"

# Cache structure: {namespace: {key: (value, cached_at)}}
_cache: dict[str, dict[Hashable, tuple[Any, datetime]]] = {}


def get_cached(namespace: str, key: Hashable = None) -> Optional[Any]:
    """Get a cached value if present and not expired."""
    if not settings.QUERY_CACHE_TTL:
        return None

    bucket = _cache.get(namespace)
    if not bucket or key not in bucket:
        return None

    value, cached_at = bucket[key]
    if datetime.now() - cached_at < timedelta(seconds=settings.QUERY_CACHE_TTL):
        return value
    # Expired - remove from cache
    del bucket[key]
    return None


def cache_result(namespace: str, key: Hashable, value: Any) -> None:
    """Store a query result (already serialized, never ORM objects)."""
    if not settings.QUERY_CACHE_TTL:
        return
    _cache.setdefault(namespace, {})[key] = (value, datetime.now())


def invalidate(*namespaces: str) -> None:
    """Drop every cached value in the given namespaces."""
    for namespace in namespaces:
        if _cache.pop(namespace, None) is not None:
            logger.debug(f"Cache invalidated: {namespace}")


def clear_cache() -> None:
    """Clear the whole cache."""
    _cache.clear()


def get_cache_stats() -> dict:
    """Get cache statistics."""
    return {
        "namespaces": {ns: len(bucket) for ns, bucket in _cache.items()},
        "ttl_seconds": settings.QUERY_CACHE_TTL,
    }
