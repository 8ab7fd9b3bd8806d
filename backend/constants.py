"""
Centralized Constants - SINGLE SOURCE OF TRUTH

Analytics policy values for the HDB resale dataset: defaults for query
parameters, outlier bounds, year ranges, lease bands, heat thresholds and
prediction multipliers.

DO NOT duplicate these definitions in other files.
"""

# =============================================================================
# QUERY PARAMETER DEFAULTS
# =============================================================================

DEFAULT_TREND_MONTHS = 12
DEFAULT_RECENT_WINDOW_MONTHS = 12
DEFAULT_HEATMAP_MONTHS = 12
# Heatmap previous period is the same window one year earlier
HEATMAP_PREVIOUS_OFFSET_MONTHS = 12
DEFAULT_BUCKET_SIZE = 50000
DEFAULT_TOP_TOWNS_LIMIT = 10

# Upper bounds keep a single request's scan bounded
MAX_WINDOW_MONTHS = 600
MAX_TOP_TOWNS_LIMIT = 100

# =============================================================================
# PRICE DISTRIBUTION (outlier exclusion, inclusive bounds)
# =============================================================================

DISTRIBUTION_MIN_PRICE = 100000
DISTRIBUTION_MAX_PRICE = 1250000

# =============================================================================
# YEARLY TOWN PRICE TABLE
# =============================================================================

YEARLY_TABLE_FIRST_YEAR = '2020'
YEARLY_TABLE_LAST_YEAR = '2025'

# =============================================================================
# LEASE BANDS (ordered by numeric floor, highest first)
# =============================================================================

LEASE_BANDS = [
    (90, '90+ years'),
    (80, '80-89 years'),
    (70, '70-79 years'),
    (60, '60-69 years'),
    (0, 'Below 60 years'),
]

LEASE_BAND_LABELS = dict(LEASE_BANDS)


def get_lease_band_label(floor: int) -> str:
    """Label for a lease band floor, e.g. 80 -> '80-89 years'."""
    return LEASE_BAND_LABELS[floor]


# =============================================================================
# HEATMAP CATEGORIES (yoy_growth_pct thresholds, checked top-down)
# =============================================================================

HEAT_THRESHOLDS = [
    (10, 'very_hot'),
    (5, 'hot'),
    (2, 'warm'),
    (0, 'neutral'),
]
HEAT_COOL = 'cool'


# =============================================================================
# PRICE PREDICTION
# =============================================================================

PREDICTION_COHORT_MONTHS = 6
PREDICTION_FLOOR_AREA_TOLERANCE_SQM = 10
PREDICTION_LEASE_TOLERANCE_YEARS = 10
PREDICTION_GROWTH_LOOKBACK_YEARS = 5
PREDICTION_HORIZON_YEARS = 2
PREDICTION_MIN_SAMPLE_SIZE = 5

PREDICTION_SCENARIOS = [
    ('conservative', 0.7),
    ('most_likely', 1.0),
    ('optimistic', 1.3),
]

# Confidence score = sample component (up to 70) + history component
CONFIDENCE_SAMPLE_CAP = 30
CONFIDENCE_SAMPLE_WEIGHT = 70
CONFIDENCE_HISTORY_BONUS = 30
CONFIDENCE_NO_HISTORY_BONUS = 10
CONFIDENCE_HIGH = 75
CONFIDENCE_MEDIUM = 50
