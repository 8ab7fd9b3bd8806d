"""
Analytics Cache - Result memoization for the aggregation functions

Every aggregation function is a pure read over the transaction store, so its
result can be reused for identical parameters until the store changes. The
key is (function, normalized params, store version) where the store version
is (transaction count, max transaction id): the store is append-only, so any
import changes it.

One cache per Flask app (app.extensions['analytics_cache']), so test apps
with separate databases never share entries.

Usage:
    @memoize_analytics("price_trends")
    def get_price_trends(*, months=12, town=None, flat_type=None):
        ...
"""

import copy
import functools
import inspect
import logging
import threading
import time
from typing import Any, Dict, Optional, Tuple

from flask import current_app, has_app_context
from sqlalchemy import func

from models.database import db
from utils.cache_key import build_analytics_cache_key

logger = logging.getLogger('analytics_cache')

EXTENSION_KEY = 'analytics_cache'


class TTLCache:
    """Simple TTL cache with max size limit."""

    def __init__(self, maxsize: int = 500, ttl: int = 300):
        self._cache = {}
        self._maxsize = maxsize
        self._ttl = ttl
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            if key in self._cache:
                value, timestamp = self._cache[key]
                if time.time() - timestamp < self._ttl:
                    self._hits += 1
                    return value
                del self._cache[key]
            self._misses += 1
            return None

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            # Evict oldest entry if at capacity
            if key not in self._cache and len(self._cache) >= self._maxsize:
                oldest_key = min(self._cache.keys(), key=lambda k: self._cache[k][1])
                del self._cache[oldest_key]
            self._cache[key] = (value, time.time())

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def stats(self) -> Dict[str, Any]:
        return {
            'size': len(self._cache),
            'maxsize': self._maxsize,
            'ttl': self._ttl,
            'hits': self._hits,
            'misses': self._misses,
        }


def init_analytics_cache(app) -> Optional[TTLCache]:
    """Attach a cache to the app, or None when ANALYTICS_CACHE_ENABLED is off."""
    cache = None
    if app.config.get('ANALYTICS_CACHE_ENABLED', True):
        cache = TTLCache(
            maxsize=app.config.get('ANALYTICS_CACHE_MAX_SIZE', 500),
            ttl=app.config.get('ANALYTICS_CACHE_TTL_SECONDS', 300),
        )
    app.extensions[EXTENSION_KEY] = cache
    return cache


def get_analytics_cache() -> Optional[TTLCache]:
    if not has_app_context():
        return None
    return current_app.extensions.get(EXTENSION_KEY)


def get_store_version() -> Tuple[int, Optional[int]]:
    """(row count, max id) of the transactions table."""
    from models.transaction import Transaction

    count, max_id = db.session.query(
        func.count(Transaction.id), func.max(Transaction.id)
    ).one()
    return int(count or 0), max_id


def memoize_analytics(prefix: str):
    """
    Memoize an aggregation function by (prefix, bound params, store version).

    Defaults are applied before keying, so f() and f(months=12) share an entry.
    Callers always receive their own copy of the cached payload.
    """
    def decorator(fn):
        signature = inspect.signature(fn)

        @functools.wraps(fn)
        def wrapper(*args, **kwargs):
            cache = get_analytics_cache()
            if cache is None:
                return fn(*args, **kwargs)

            bound = signature.bind(*args, **kwargs)
            bound.apply_defaults()
            key = build_analytics_cache_key(prefix, dict(bound.arguments), get_store_version())

            cached = cache.get(key)
            if cached is not None:
                logger.debug("cache_hit key=%s", key)
                return copy.deepcopy(cached)

            result = fn(*args, **kwargs)
            cache.set(key, copy.deepcopy(result))
            return result

        wrapper.uncached = fn
        return wrapper

    return decorator
