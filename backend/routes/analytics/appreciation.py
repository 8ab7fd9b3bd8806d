"""
Appreciation Endpoints

Endpoints:
- /top-appreciating-towns - Towns ranked by YoY price growth for a year
"""

import time
from datetime import date

from flask import jsonify, request

from api.serializers import success_envelope
from constants import DEFAULT_TOP_TOWNS_LIMIT, MAX_TOP_TOWNS_LIMIT
from routes.analytics import analytics_bp
from routes.analytics._route_utils import log_success, route_logger
from services.analytics_service import get_top_appreciating_towns
from utils.normalize import ValidationError, to_int, to_year, validation_error_response

logger = route_logger("appreciation")


@analytics_bp.route("/top-appreciating-towns", methods=["GET"])
def top_appreciating_towns():
    """
    Top appreciating towns.

    Query params:
      - year: YYYY (default: current calendar year)
      - limit: max towns returned (default 10, max 100)
    """
    start = time.perf_counter()

    try:
        year = to_year(request.args.get("year"), default=str(date.today().year), field="year")
        limit = to_int(
            request.args.get("limit"), default=DEFAULT_TOP_TOWNS_LIMIT,
            min_value=1, max_value=MAX_TOP_TOWNS_LIMIT, field="limit"
        )
    except ValidationError as e:
        return validation_error_response(e)

    data = get_top_appreciating_towns(year=year, limit=limit)

    log_success(logger, "top-appreciating-towns", start, {"year": year, "towns": len(data)})
    return jsonify(success_envelope(data, year=year))
