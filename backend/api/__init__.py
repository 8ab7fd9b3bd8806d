"""
API package - request/response layer shared by the route modules.

This package provides:
- Global middleware (request_id, error_envelope, query_timing)
- Pydantic request body models (params)
- Response envelope helpers (serializers)
"""

from .middleware import (
    setup_error_handlers,
    setup_query_timing_middleware,
    setup_request_id_middleware,
)

__all__ = [
    'setup_error_handlers',
    'setup_query_timing_middleware',
    'setup_request_id_middleware',
]
