"""
Admin Endpoints

Endpoints:
- /health - Store reachability, row count, latest month, schema report
"""

from flask import jsonify
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from models.database import db
from models.transaction import Transaction
from routes.analytics import analytics_bp
from routes.analytics._route_utils import route_logger
from services.analytics_cache import get_analytics_cache
from services.schema_check import get_schema_report

logger = route_logger("admin")


@analytics_bp.route("/health", methods=["GET"])
def health():
    """Health check endpoint. 503 when the store cannot be queried."""
    cache = get_analytics_cache()
    schema = get_schema_report()

    try:
        count, latest_month = db.session.query(
            func.count(Transaction.id), func.max(Transaction.month)
        ).one()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error("health_check database unreachable: %s", e)
        return jsonify({
            "status": "unavailable",
            "database": "unreachable",
            "error": type(e).__name__,
            "schema": schema,
        }), 503

    return jsonify({
        "status": "healthy",
        "database": "ok",
        "data_loaded": count > 0,
        "transaction_count": count,
        "latest_month": latest_month,
        "schema": schema,
        "cache": cache.stats() if cache is not None else None,
    })
