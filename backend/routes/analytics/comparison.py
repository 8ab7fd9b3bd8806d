"""
Comparison Endpoints

Endpoints:
- /town-comparison - Per-town metrics, ranks and national deviation
- /flat-type-comparison - Per-flat-type metrics, ranks and market share
"""

import time

from flask import jsonify, request

from api.serializers import success_envelope
from routes.analytics import analytics_bp
from routes.analytics._route_utils import filters_echo, log_success, route_logger
from services.analytics_service import get_flat_type_comparison, get_town_comparison
from utils.normalize import to_str

logger = route_logger("comparison")


@analytics_bp.route("/town-comparison", methods=["GET"])
def town_comparison():
    """
    Town comparison, ordered by average price (highest first).

    Query params:
      - flatType: restrict to one flat type (baseline is restricted too)
    """
    start = time.perf_counter()

    flat_type = to_str(request.args.get("flatType"), upper=True, field="flatType")
    data = get_town_comparison(flat_type=flat_type)

    log_success(logger, "town-comparison", start, {"towns": len(data)})
    return jsonify(success_envelope(data, filters=filters_echo(flatType=flat_type)))


@analytics_bp.route("/flat-type-comparison", methods=["GET"])
def flat_type_comparison():
    """Flat type comparison, ordered by typical rooms (EXECUTIVE etc. last)."""
    start = time.perf_counter()

    data = get_flat_type_comparison()

    log_success(logger, "flat-type-comparison", start, {"flat_types": len(data)})
    return jsonify(success_envelope(data))
