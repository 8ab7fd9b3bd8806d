"""
Price Prediction Service - Heuristic 2-year resale price projection

Not a statistical model. The projection is:
1. Cohort: transactions in the last 6 months (ending at the anchor month)
   for the town + flat type, floor area within +/-10 sqm and remaining lease
   within +/-10 years when those are given.
2. Growth: mean YoY growth of the town + flat type yearly series over its
   last 5 years; market-wide series when the town has no usable history.
3. Scenarios: the cohort average compounded at 0.7x / 1.0x / 1.3x growth.

An empty cohort is an answer, not an error: it returns
{'available': False, 'reason': 'no_comparable_transactions'}.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from sqlalchemy import func

from constants import (
    PREDICTION_COHORT_MONTHS,
    PREDICTION_FLOOR_AREA_TOLERANCE_SQM,
    PREDICTION_GROWTH_LOOKBACK_YEARS,
    PREDICTION_HORIZON_YEARS,
    PREDICTION_LEASE_TOLERANCE_YEARS,
    PREDICTION_MIN_SAMPLE_SIZE,
    PREDICTION_SCENARIOS,
)
from models import Transaction
from services.analytics_cache import memoize_analytics
from services.analytics_compute import (
    build_scenarios,
    compute_confidence,
    compute_yearly_growth,
    mean_growth_rate,
    round2,
)
from services.analytics_service import (
    analytics_query,
    get_yearly_series,
    resolve_anchor_month,
)
from utils.filter_builder import build_transaction_filters, normalize_name
from utils.periods import month_window

logger = logging.getLogger('price_prediction')

UNAVAILABLE_REASON = 'no_comparable_transactions'


def _recent_growth(filters: Dict[str, Any]) -> Optional[float]:
    """Mean YoY growth over the last PREDICTION_GROWTH_LOOKBACK_YEARS years of a yearly series."""
    series = get_yearly_series(filters, by_town=False)
    rows = compute_yearly_growth(series, partition_key=None)
    recent = rows[-PREDICTION_GROWTH_LOOKBACK_YEARS:]
    return mean_growth_rate(r['yoy_growth_pct'] for r in recent)


def get_historical_growth(town: str, flat_type: str) -> Tuple[float, str]:
    """
    Annual growth rate (%) for the town + flat type and where it came from.

    Returns:
        (rate, source) where source is 'town', 'market' or 'none'.
    """
    rate = _recent_growth({'town': town, 'flat_type': flat_type})
    if rate is not None:
        return rate, 'town'

    rate = _recent_growth({})
    if rate is not None:
        logger.info("No yearly history for %s %s, using market growth %.2f%%", town, flat_type, rate)
        return rate, 'market'

    logger.info("No yearly history in store, assuming 0%% growth")
    return 0.0, 'none'


@memoize_analytics("price_prediction")
def predict_price(
    *,
    town: str,
    flat_type: str,
    floor_area: Optional[float] = None,
    remaining_lease: Optional[float] = None,
    as_of: Optional[str] = None
) -> Dict[str, Any]:
    """
    Project the resale price of a comparable flat PREDICTION_HORIZON_YEARS ahead.

    Args:
        town: Town name (case-insensitive)
        flat_type: Flat type name, e.g. '4 ROOM'
        floor_area: Approximate floor area in sqm (narrows the cohort)
        remaining_lease: Remaining lease in years (narrows the cohort)
        as_of: Anchor month 'YYYY-MM' (default: latest month in the store)

    Returns:
        Prediction dict with cohort stats, growth, scenarios and confidence,
        or {'available': False, 'reason': ...} when no comparable sale exists.
    """
    town = normalize_name(town)
    flat_type = normalize_name(flat_type)

    anchor = resolve_anchor_month(as_of)
    if anchor is None:
        return {'available': False, 'reason': UNAVAILABLE_REASON}

    cohort_from, cohort_to = month_window(anchor, PREDICTION_COHORT_MONTHS)
    filters: Dict[str, Any] = {
        'town': town,
        'flat_type': flat_type,
        'month_from': cohort_from,
        'month_to': cohort_to,
    }

    floor_area_range = None
    if floor_area is not None:
        floor_area_range = [
            round2(max(floor_area - PREDICTION_FLOOR_AREA_TOLERANCE_SQM, 0)),
            round2(floor_area + PREDICTION_FLOOR_AREA_TOLERANCE_SQM),
        ]
        filters['floor_area_min'], filters['floor_area_max'] = floor_area_range

    lease_range = None
    if remaining_lease is not None:
        lease_range = [
            round2(max(remaining_lease - PREDICTION_LEASE_TOLERANCE_YEARS, 0)),
            round2(remaining_lease + PREDICTION_LEASE_TOLERANCE_YEARS),
        ]
        filters['remaining_lease_min'], filters['remaining_lease_max'] = lease_range

    cohort = analytics_query(
        func.count(Transaction.id).label('sample_size'),
        func.avg(Transaction.price).label('avg_price'),
        func.min(Transaction.price).label('min_price'),
        func.max(Transaction.price).label('max_price'),
        with_lease=remaining_lease is not None,
    ).filter(*build_transaction_filters(filters)).one()

    sample_size = int(cohort.sample_size or 0)
    if sample_size == 0:
        logger.info("No comparable transactions for %s %s in %s..%s", town, flat_type, cohort_from, cohort_to)
        return {'available': False, 'reason': UNAVAILABLE_REASON}

    current_avg = round2(float(cohort.avg_price))
    growth_rate, growth_source = get_historical_growth(town, flat_type)
    has_historical_data = growth_source == 'town'
    confidence_score, confidence_level = compute_confidence(sample_size, has_historical_data)

    return {
        'available': True,
        'town': town,
        'flat_type': flat_type,
        'floor_area': floor_area,
        'remaining_lease': remaining_lease,
        'cohort': {
            'from': cohort_from,
            'to': cohort_to,
            'sample_size': sample_size,
            'floor_area_range': floor_area_range,
            'remaining_lease_range': lease_range,
        },
        'current_min': float(cohort.min_price),
        'current_avg': current_avg,
        'current_max': float(cohort.max_price),
        'historical_growth_rate': round2(growth_rate),
        'growth_source': growth_source,
        'has_historical_data': has_historical_data,
        'horizon_years': PREDICTION_HORIZON_YEARS,
        'predictions': build_scenarios(current_avg, growth_rate, PREDICTION_HORIZON_YEARS, PREDICTION_SCENARIOS),
        'confidence_score': confidence_score,
        'confidence_level': confidence_level,
        'warning': 'limited_data' if sample_size < PREDICTION_MIN_SAMPLE_SIZE else None,
    }
