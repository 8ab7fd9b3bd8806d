"""
Cache key helpers.

Provides stable, normalized cache key construction for analytics memoization.
A key is (function prefix, normalized params, store version): identical
params against an unchanged store always map to the same key.
"""

from datetime import date, datetime
import json
from typing import Any, Dict, Iterable, Optional


def _normalize_cache_value(value: Any) -> Any:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [_normalize_cache_value(v) for v in value]
    if isinstance(value, dict):
        return {k: _normalize_cache_value(v) for k, v in sorted(value.items())}
    return value


def normalize_cache_params(
    params: Dict[str, Any],
    *,
    include_keys: Optional[Iterable[str]] = None
) -> Dict[str, Any]:
    """
    Normalize params for cache keys.

    - Skips empty values (absent filter == empty filter)
    - Sorts keys for stability
    - Normalizes dates and nested structures
    """
    allowed = set(include_keys) if include_keys is not None else None
    filtered: Dict[str, Any] = {}
    for key, value in params.items():
        if allowed is not None and key not in allowed:
            continue
        if value in (None, "", [], {}):
            continue
        filtered[key] = _normalize_cache_value(value)
    return {k: filtered[k] for k in sorted(filtered.keys())}


def build_analytics_cache_key(
    prefix: str,
    params: Dict[str, Any],
    store_version: Any = None
) -> str:
    """
    Build the memoization key for one analytics call.

    Example:
        build_analytics_cache_key("price_trends", {"months": 12, "town": "BEDOK"}, (1520, 1520))
        -> 'price_trends:{"months": 12, "town": "BEDOK"}@[1520, 1520]'
    """
    normalized = normalize_cache_params(params)
    key = f"{prefix}:{json.dumps(normalized, sort_keys=True)}"
    if store_version is not None:
        key += f"@{json.dumps(_normalize_cache_value(store_version))}"
    return key
