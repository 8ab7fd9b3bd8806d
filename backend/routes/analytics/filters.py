"""
Filter Options Endpoint

Endpoints:
- /filter-options - Towns, flat types and month range available for filtering
"""

import time

from flask import jsonify

from api.serializers import success_envelope
from routes.analytics import analytics_bp
from routes.analytics._route_utils import log_success, route_logger
from services.analytics_service import get_filter_options

logger = route_logger("filters")


@analytics_bp.route("/filter-options", methods=["GET"])
def filter_options():
    """Distinct filter values present in the store."""
    start = time.perf_counter()

    data = get_filter_options()

    log_success(logger, "filter-options", start, {
        "towns": len(data["towns"]), "flat_types": len(data["flat_types"])
    })
    return jsonify(success_envelope(data))
