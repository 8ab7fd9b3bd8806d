"""
Trend Endpoints

Endpoints:
- /price-trends - Monthly price trend with MoM, 3-month MA and YoY
- /town-trends - Yearly price series for one town
"""

import time

from flask import jsonify, request

from api.serializers import success_envelope
from constants import DEFAULT_TREND_MONTHS, MAX_WINDOW_MONTHS
from routes.analytics import analytics_bp
from routes.analytics._route_utils import filters_echo, log_success, route_logger
from services.analytics_service import get_price_trends, get_town_trends
from utils.normalize import ValidationError, to_int, to_str, validation_error_response

logger = route_logger("trends")


@analytics_bp.route("/price-trends", methods=["GET"])
def price_trends():
    """
    Monthly price trend.

    Query params:
      - months: number of most recent months with data to return (default 12)
      - town: town name (case-insensitive)
      - flatType: flat type name, e.g. "4 ROOM"

    Rows are chronological; deltas reach back past the returned window.
    """
    start = time.perf_counter()

    try:
        months = to_int(
            request.args.get("months"), default=DEFAULT_TREND_MONTHS,
            min_value=1, max_value=MAX_WINDOW_MONTHS, field="months"
        )
    except ValidationError as e:
        return validation_error_response(e)
    town = to_str(request.args.get("town"), upper=True, field="town")
    flat_type = to_str(request.args.get("flatType"), upper=True, field="flatType")

    data = get_price_trends(months=months, town=town, flat_type=flat_type)

    log_success(logger, "price-trends", start, {"rows": len(data), "town": town, "flat_type": flat_type})
    return jsonify(success_envelope(
        data, filters=filters_echo(months=months, town=town, flatType=flat_type)
    ))


@analytics_bp.route("/town-trends", methods=["GET"])
def town_trends():
    """
    Yearly average price series for a single town.

    Query params:
      - town: town name (required)
      - flatType: flat type name (optional)
    """
    start = time.perf_counter()

    town = to_str(request.args.get("town"), upper=True, field="town")
    flat_type = to_str(request.args.get("flatType"), upper=True, field="flatType")
    if town is None:
        return validation_error_response(ValidationError("town is required", field="town"))

    data = get_town_trends(town=town, flat_type=flat_type)

    log_success(logger, "town-trends", start, {"town": town, "years": data["summary"]["years"]})
    return jsonify(success_envelope(
        data, count=len(data["series"]), filters=filters_echo(town=town, flatType=flat_type)
    ))
