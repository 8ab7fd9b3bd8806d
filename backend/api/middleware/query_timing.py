"""
Query timing middleware - SQL timing per request.

Captures:
- Query execution time (db_time_ms)
- Query count per request
- Correlates with request_id

Log format:
    SLOW_QUERY request_id=<uuid> elapsed_ms=<float> stmt=<first 80 chars>
    REQUEST_TIMING request_id=<uuid> db_time_ms=<float> query_count=<int>

Engine listeners are global to SQLAlchemy, so they are attached once per
process no matter how many apps create_app() builds.
"""

import logging
import time
from threading import local

from flask import Flask
from sqlalchemy import event
from sqlalchemy.engine import Engine

from .request_id import get_request_id

logger = logging.getLogger('query_timing')

# Thread-local storage for query timing (safe for concurrent requests)
_timing = local()

DEFAULT_SLOW_QUERY_THRESHOLD_MS = 500
REQUEST_TIMING_LOG_MS = 200

_settings = {'slow_query_ms': DEFAULT_SLOW_QUERY_THRESHOLD_MS}
_listeners_registered = False


def _before_execute(conn, cursor, statement, parameters, context, executemany):
    context._query_start_time = time.perf_counter()


def _after_execute(conn, cursor, statement, parameters, context, executemany):
    start_time = getattr(context, '_query_start_time', None)
    if start_time is None:
        return

    elapsed_ms = (time.perf_counter() - start_time) * 1000

    # Only collect inside a request (reset_query_timing creates the list)
    queries = getattr(_timing, 'queries', None)
    if queries is not None:
        queries.append(round(elapsed_ms, 2))

    if elapsed_ms > _settings['slow_query_ms']:
        stmt_preview = (statement[:80] + '...') if statement and len(statement) > 80 else statement
        logger.warning(
            "SLOW_QUERY request_id=%s elapsed_ms=%.2f stmt=%s",
            get_request_id() or 'no-request-id', elapsed_ms, stmt_preview,
        )


def _register_engine_listeners() -> None:
    global _listeners_registered
    if _listeners_registered:
        return
    event.listen(Engine, "before_cursor_execute", _before_execute)
    event.listen(Engine, "after_cursor_execute", _after_execute)
    _listeners_registered = True


def setup_query_timing_middleware(app: Flask) -> None:
    """
    Time every SQL statement and report per-request totals as headers.

    Reads SLOW_QUERY_THRESHOLD_MS from app config.

    Args:
        app: Flask application instance
    """
    _settings['slow_query_ms'] = app.config.get('SLOW_QUERY_THRESHOLD_MS', DEFAULT_SLOW_QUERY_THRESHOLD_MS)
    _register_engine_listeners()

    @app.before_request
    def reset_query_timing():
        _timing.queries = []

    @app.after_request
    def inject_timing_headers(response):
        queries = getattr(_timing, 'queries', None) or []
        _timing.queries = None
        if not queries:
            return response

        total_db_ms = round(sum(queries), 2)
        response.headers['X-DB-Time-Ms'] = str(total_db_ms)
        response.headers['X-Query-Count'] = str(len(queries))

        if total_db_ms > REQUEST_TIMING_LOG_MS:
            logger.info(
                "REQUEST_TIMING request_id=%s db_time_ms=%.2f query_count=%d",
                get_request_id() or 'no-request-id', total_db_ms, len(queries),
            )
        return response
