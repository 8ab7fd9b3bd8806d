"""
Error envelope middleware - One JSON shape for errors that escape a route.

{
    "error": {
        "code": "NOT_FOUND",
        "message": "The requested resource was not found",
        "requestId": "uuid"
    }
}

Parameter validation is answered by the routes themselves (400 with
success: false); this layer only sees HTTP exceptions (404, 405, ...) and
failures such as a lost database connection, which become 500
INTERNAL_ERROR. Nothing is retried here.
"""

import logging

from flask import Flask, jsonify
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from .request_id import get_request_id

logger = logging.getLogger('api.middleware.error')


def error_payload(code: str, message: str) -> dict:
    return {
        "error": {
            "code": code,
            "message": message,
            "requestId": get_request_id(),
        }
    }


def setup_error_handlers(app: Flask) -> None:
    """
    Register the error envelope handlers on the app.

    Args:
        app: Flask application instance
    """

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        # "Method Not Allowed" -> "METHOD_NOT_ALLOWED"
        code = error.name.upper().replace(' ', '_')
        return jsonify(error_payload(code, error.description)), error.code

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(error):
        logger.exception(
            "database_error request_id=%s error_type=%s",
            get_request_id(), type(error).__name__,
        )
        return jsonify(error_payload("INTERNAL_ERROR", "Database error")), 500

    @app.errorhandler(Exception)
    def handle_generic_error(error):
        logger.exception(
            "unhandled_error request_id=%s error_type=%s",
            get_request_id(), type(error).__name__,
        )
        return jsonify(error_payload("INTERNAL_ERROR", "An unexpected error occurred")), 500
