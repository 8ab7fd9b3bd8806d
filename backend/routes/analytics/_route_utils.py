"""
Shared route utilities for analytics endpoints.

Keeps endpoint handlers small and consistent: one namespaced logger per
route module and a single structured success line per request.
"""

import logging
import time
from typing import Any, Dict, Optional

from utils.filter_builder import describe_filters


def route_logger(name: str) -> logging.Logger:
    """Return namespaced logger for analytics routes."""
    return logging.getLogger(f"analytics.{name}")


def elapsed_ms(start_time: float) -> int:
    """Milliseconds since a time.perf_counter() start value."""
    return int((time.perf_counter() - start_time) * 1000)


def log_success(
    logger: logging.Logger,
    route: str,
    start_time: float,
    details: Optional[Dict[str, Any]] = None,
) -> None:
    payload = {"route": route, "elapsed_ms": elapsed_ms(start_time)}
    if details:
        payload.update(details)
    logger.info("route_success %s", payload)


def filters_echo(**filters: Any) -> Dict[str, Any]:
    """Active request filters (camelCase, as sent) for the response envelope."""
    return describe_filters(filters)


def echo_number(value: float):
    """Integral floats echo back as ints (50000, not 50000.0)."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value
