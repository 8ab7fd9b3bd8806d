"""
Distribution Endpoints

Endpoints:
- /price-distribution - Price histogram with cumulative share
"""

import time

from flask import jsonify, request

from api.serializers import success_envelope
from constants import DEFAULT_BUCKET_SIZE, DISTRIBUTION_MAX_PRICE, DISTRIBUTION_MIN_PRICE
from routes.analytics import analytics_bp
from routes.analytics._route_utils import echo_number, log_success, route_logger
from services.analytics_service import get_price_distribution
from utils.normalize import ValidationError, to_float, validation_error_response

logger = route_logger("distribution")


@analytics_bp.route("/price-distribution", methods=["GET"])
def price_distribution():
    """
    Price histogram.

    Query params:
      - bucketSize: bucket width in SGD (default 50000, must be > 0)

    Prices outside [100000, 1250000] are excluded as outliers.
    """
    start = time.perf_counter()

    try:
        bucket_size = to_float(
            request.args.get("bucketSize"), default=DEFAULT_BUCKET_SIZE,
            positive=True, field="bucketSize"
        )
    except ValidationError as e:
        return validation_error_response(e)

    data = get_price_distribution(bucket_size=bucket_size)

    log_success(logger, "price-distribution", start, {"buckets": len(data), "bucket_size": bucket_size})
    return jsonify(success_envelope(
        data,
        bucketSize=echo_number(bucket_size),
        priceRange={"min": DISTRIBUTION_MIN_PRICE, "max": DISTRIBUTION_MAX_PRICE},
    ))
