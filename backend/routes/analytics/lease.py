"""
Lease Endpoints

Endpoints:
- /lease-depreciation - Price by remaining-lease band per flat type
"""

import time

from flask import jsonify, request

from api.serializers import success_envelope
from routes.analytics import analytics_bp
from routes.analytics._route_utils import filters_echo, log_success, route_logger
from services.analytics_service import get_lease_depreciation
from utils.normalize import to_str

logger = route_logger("lease")


@analytics_bp.route("/lease-depreciation", methods=["GET"])
def lease_depreciation():
    """
    Lease depreciation.

    Query params:
      - flatType: restrict to one flat type
    """
    start = time.perf_counter()

    flat_type = to_str(request.args.get("flatType"), upper=True, field="flatType")
    data = get_lease_depreciation(flat_type=flat_type)

    log_success(logger, "lease-depreciation", start, {"rows": len(data)})
    return jsonify(success_envelope(data, filters=filters_echo(flatType=flat_type)))
