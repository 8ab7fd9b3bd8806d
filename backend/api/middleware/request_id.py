"""
Request ID middleware - X-Request-ID for log correlation.

A client-supplied X-Request-ID is reused when it looks sane (short,
printable); otherwise a new UUID4 is generated. The id is stored on
g.request_id and echoed on every response.
"""

import uuid
from typing import Optional

from flask import Flask, g, has_request_context, request

REQUEST_ID_HEADER = 'X-Request-ID'
MAX_REQUEST_ID_LENGTH = 128


def _accept_client_id(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    value = value.strip()
    if not value or len(value) > MAX_REQUEST_ID_LENGTH or not value.isprintable():
        return None
    return value


def setup_request_id_middleware(app: Flask) -> None:
    """
    Register request id hooks on the app.

    Args:
        app: Flask application instance
    """

    @app.before_request
    def inject_request_id():
        g.request_id = _accept_client_id(request.headers.get(REQUEST_ID_HEADER)) or str(uuid.uuid4())

    @app.after_request
    def add_request_id_header(response):
        request_id = getattr(g, 'request_id', None)
        if request_id:
            response.headers[REQUEST_ID_HEADER] = request_id
        return response


def get_request_id() -> Optional[str]:
    """Current request id, or None outside a request."""
    if not has_request_context():
        return None
    return getattr(g, 'request_id', None)
