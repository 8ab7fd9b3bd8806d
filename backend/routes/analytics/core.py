"""
Core Endpoints

Endpoints:
- /statistics - Whole-store statistics with a recent-window comparison
- /get-price-avg - Yearly average price per town with YoY and in-year rank
"""

import time

from flask import jsonify, request

from api.serializers import success_envelope
from constants import DEFAULT_RECENT_WINDOW_MONTHS, MAX_WINDOW_MONTHS
from routes.analytics import analytics_bp
from routes.analytics._route_utils import filters_echo, log_success, route_logger
from services.analytics_service import get_overall_statistics, get_yearly_town_prices
from utils.normalize import ValidationError, to_int, to_month, validation_error_response
from utils.periods import earliest_anchor

logger = route_logger("core")


@analytics_bp.route("/statistics", methods=["GET"])
def statistics():
    """
    Overall market statistics.

    Query params:
      - recentMonths: size of the recent window (default 12)
      - asOf: YYYY-MM month the recent window ends on (default: latest month with data)
    """
    start = time.perf_counter()

    try:
        recent_months = to_int(
            request.args.get("recentMonths"), default=DEFAULT_RECENT_WINDOW_MONTHS,
            min_value=1, max_value=MAX_WINDOW_MONTHS, field="recentMonths"
        )
        as_of = to_month(
            request.args.get("asOf"), min_value=earliest_anchor(recent_months), field="asOf"
        )
    except ValidationError as e:
        return validation_error_response(e)

    data = get_overall_statistics(recent_months=recent_months, as_of=as_of)

    log_success(logger, "statistics", start, {"total_transactions": data["total_transactions"]})
    return jsonify(success_envelope(
        data, filters=filters_echo(recentMonths=recent_months, asOf=as_of)
    ))


@analytics_bp.route("/get-price-avg", methods=["GET"])
def price_avg_by_year():
    """Yearly town price table (2020-2025), ordered by year then price rank."""
    start = time.perf_counter()

    data = get_yearly_town_prices()

    log_success(logger, "get-price-avg", start, {"rows": len(data)})
    return jsonify(success_envelope(data))
