"""
Heatmap Endpoints

Endpoints:
- /heatmap - Town YoY growth, current window vs the same window a year earlier
"""

import time

from flask import jsonify, request

from api.serializers import success_envelope
from constants import DEFAULT_HEATMAP_MONTHS, HEATMAP_PREVIOUS_OFFSET_MONTHS, MAX_WINDOW_MONTHS
from routes.analytics import analytics_bp
from routes.analytics._route_utils import filters_echo, log_success, route_logger
from services.analytics_service import get_heatmap
from utils.normalize import ValidationError, to_int, to_month, to_str, validation_error_response
from utils.periods import earliest_anchor

logger = route_logger("heatmap")


@analytics_bp.route("/heatmap", methods=["GET"])
def heatmap():
    """
    Town heatmap.

    Query params:
      - months: window length (default 12)
      - flatType: restrict to one flat type
      - asOf: YYYY-MM the current window ends on (default: latest month with data)

    Response data:
      {current_period, previous_period, towns: [...], excluded_towns: [...]}
    """
    start = time.perf_counter()

    try:
        months = to_int(
            request.args.get("months"), default=DEFAULT_HEATMAP_MONTHS,
            min_value=1, max_value=MAX_WINDOW_MONTHS, field="months"
        )
        as_of = to_month(
            request.args.get("asOf"),
            min_value=earliest_anchor(months, offset_months=HEATMAP_PREVIOUS_OFFSET_MONTHS),
            field="asOf"
        )
    except ValidationError as e:
        return validation_error_response(e)
    flat_type = to_str(request.args.get("flatType"), upper=True, field="flatType")

    data = get_heatmap(months=months, flat_type=flat_type, as_of=as_of)

    log_success(logger, "heatmap", start, {
        "towns": len(data["towns"]), "excluded": len(data["excluded_towns"])
    })
    return jsonify(success_envelope(
        data, count=len(data["towns"]),
        filters=filters_echo(months=months, flatType=flat_type, asOf=as_of)
    ))
