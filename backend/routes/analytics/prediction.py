"""
Prediction Endpoints

Endpoints:
- POST /predict - Heuristic 2-year price projection for a comparable flat
"""

import time

from flask import jsonify, request
from pydantic import ValidationError as PydanticValidationError

from api.params import PricePredictionRequest
from api.serializers import pydantic_error_response, success_envelope
from routes.analytics import analytics_bp
from routes.analytics._route_utils import log_success, route_logger
from services.prediction_service import predict_price

logger = route_logger("prediction")


@analytics_bp.route("/predict", methods=["POST"])
def predict():
    """
    Price prediction.

    JSON body:
      {
        "town": "BEDOK",            # required
        "flatType": "4 ROOM",       # required
        "floorArea": 92,            # optional, sqm
        "remainingLease": 65,       # optional, years
        "asOf": "2024-06"           # optional cohort anchor
      }

    An empty cohort is not an error: data is
    {"available": false, "reason": "no_comparable_transactions"}.
    """
    start = time.perf_counter()

    body = request.get_json(silent=True)
    if body is None:
        body = {}
    try:
        params = PricePredictionRequest.model_validate(body)
    except PydanticValidationError as e:
        return pydantic_error_response(e)

    data = predict_price(**params.to_service_kwargs())

    log_success(logger, "predict", start, {
        "town": params.town,
        "flat_type": params.flat_type,
        "available": data["available"],
        "sample_size": data.get("cohort", {}).get("sample_size", 0),
    })
    return jsonify(success_envelope(data))
