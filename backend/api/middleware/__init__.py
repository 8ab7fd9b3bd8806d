"""
Global middleware for API requests.

Provides:
- Request ID injection (X-Request-ID)
- Error envelope for unhandled and HTTP errors
- Query timing instrumentation (X-DB-Time-Ms, X-Query-Count)
"""

from .request_id import setup_request_id_middleware, get_request_id
from .error_envelope import setup_error_handlers
from .query_timing import setup_query_timing_middleware

__all__ = [
    'setup_request_id_middleware',
    'get_request_id',
    'setup_error_handlers',
    'setup_query_timing_middleware',
]
