"""
Analytics Computation - Pure Functions for Testing

Window-style computations over grouped rows (LAG deltas, trailing moving
averages, sequential ranks, running totals, partition benchmarks) done as
explicit passes over sorted Python lists. The SQL side only groups and
aggregates; everything that needs ordering or a previous value lives here.

All functions are pure (no I/O, no database access). Undefined arithmetic
(missing baseline, division by zero) yields None, never an exception.

Usage:
    from services.analytics_compute import (
        compute_monthly_trends,
        compute_yearly_growth,
        assign_ranks,
        compute_histogram,
    )
"""

import math
from collections import Counter
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from constants import (
    CONFIDENCE_HIGH,
    CONFIDENCE_HISTORY_BONUS,
    CONFIDENCE_MEDIUM,
    CONFIDENCE_NO_HISTORY_BONUS,
    CONFIDENCE_SAMPLE_CAP,
    CONFIDENCE_SAMPLE_WEIGHT,
    HEAT_COOL,
    HEAT_THRESHOLDS,
    get_lease_band_label,
)
from utils.periods import month_index, previous_year


# =============================================================================
# NULL-SAFE ARITHMETIC
# =============================================================================

def round2(value: Optional[float]) -> Optional[float]:
    """Round to 2 decimals, passing None through."""
    if value is None:
        return None
    return round(float(value), 2)


def safe_diff(current: Optional[float], previous: Optional[float]) -> Optional[float]:
    """current - previous, or None when either side is missing."""
    if current is None or previous is None:
        return None
    return round2(current - previous)


def safe_pct_change(current: Optional[float], previous: Optional[float]) -> Optional[float]:
    """
    Percentage change from previous to current.

    Returns None if either value is missing or previous is 0.

    Example:
        >>> safe_pct_change(420000, 400000)
        5.0
    """
    if current is None or previous is None or previous == 0:
        return None
    return round2((current - previous) / previous * 100)


def safe_share_pct(part: Optional[float], total: Optional[float]) -> Optional[float]:
    """part / total * 100, or None when total is 0 or missing."""
    if part is None or not total:
        return None
    return round2(part * 100.0 / total)


def safe_ratio(numerator: Optional[float], denominator: Optional[float]) -> Optional[float]:
    if numerator is None or not denominator:
        return None
    return round2(numerator / denominator)


def population_stddev(mean: Optional[float], mean_of_squares: Optional[float]) -> Optional[float]:
    """
    Population standard deviation from E[x] and E[x^2].

    Tiny negative variances from float cancellation are clamped to 0.
    """
    if mean is None or mean_of_squares is None:
        return None
    variance = mean_of_squares - mean * mean
    return round2(math.sqrt(max(variance, 0.0)))


# =============================================================================
# RANKING
# =============================================================================

def assign_ranks(
    rows: List[Dict[str, Any]],
    *,
    value_key: str,
    rank_key: str,
    name_key: str,
    descending: bool = True
) -> List[Dict[str, Any]]:
    """
    Assign sequential ranks 1..n (no gaps, no shared ranks) in place.

    Ties on value are broken by name ascending; rows with a None value rank
    last. Returns the same rows, in their original order.
    """
    def sort_key(row):
        value = row.get(value_key)
        if value is None:
            return (1, 0, row.get(name_key) or '')
        return (0, -value if descending else value, row.get(name_key) or '')

    for position, row in enumerate(sorted(rows, key=sort_key), start=1):
        row[rank_key] = position
    return rows


# =============================================================================
# MONTHLY TRENDS (MoM, 3-month moving average, YoY)
# =============================================================================

def compute_monthly_trends(monthly_rows: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Add month-over-month, moving-average and year-over-year fields.

    Args:
        monthly_rows: One dict per month with at least 'month' and 'avg_price',
            covering the FULL filtered history (not just the output window)

    Returns:
        New list sorted by month ascending, each row extended with:
            prev_month_price, price_change_mom, pct_change_mom,
            moving_avg_3month, price_12months_ago, yoy_change_pct

    Previous month and 12-months-ago are looked up by calendar month, so a
    month without transactions yields None rather than borrowing an older
    month. The moving average is trailing: the mean over the months in
    [m-2, m] that have data.
    """
    rows = sorted((dict(r) for r in monthly_rows), key=lambda r: r['month'])
    by_index = {month_index(r['month']): r['avg_price'] for r in rows}

    for row in rows:
        idx = month_index(row['month'])
        prev_price = by_index.get(idx - 1)
        year_ago_price = by_index.get(idx - 12)
        window = [by_index[i] for i in (idx - 2, idx - 1, idx)
                  if i in by_index and by_index[i] is not None]

        row['prev_month_price'] = prev_price
        row['price_change_mom'] = safe_diff(row['avg_price'], prev_price)
        row['pct_change_mom'] = safe_pct_change(row['avg_price'], prev_price)
        row['moving_avg_3month'] = round2(sum(window) / len(window)) if window else None
        row['price_12months_ago'] = year_ago_price
        row['yoy_change_pct'] = safe_pct_change(row['avg_price'], year_ago_price)

    return rows


def take_latest(rows: Sequence[Dict[str, Any]], count: int) -> List[Dict[str, Any]]:
    """Last `count` rows of an ascending series, still ascending."""
    if count <= 0:
        return []
    return list(rows[-count:])


# =============================================================================
# YEARLY GROWTH (per partition, e.g. per town)
# =============================================================================

def compute_yearly_growth(
    yearly_rows: Sequence[Dict[str, Any]],
    *,
    partition_key: Optional[str] = 'town_name'
) -> List[Dict[str, Any]]:
    """
    Add prev_year_price, yoy_price_change and yoy_growth_pct to yearly rows.

    Args:
        yearly_rows: Dicts with 'year' ('YYYY'), 'avg_price' and the partition key
        partition_key: Key identifying the series (None = single series)

    Returns:
        New list of rows in input order. The comparison year is strictly
        year - 1 within the same partition; a town's first year, or a year
        following a gap, gets None.
    """
    rows = [dict(r) for r in yearly_rows]
    lookup = {
        (r.get(partition_key) if partition_key else None, r['year']): r['avg_price']
        for r in rows
    }

    for row in rows:
        partition = row.get(partition_key) if partition_key else None
        prev_price = lookup.get((partition, previous_year(row['year'])))
        row['prev_year_price'] = prev_price
        row['yoy_price_change'] = safe_diff(row['avg_price'], prev_price)
        row['yoy_growth_pct'] = safe_pct_change(row['avg_price'], prev_price)

    return rows


def rank_within_groups(
    rows: List[Dict[str, Any]],
    *,
    group_key: str,
    value_key: str,
    rank_key: str,
    name_key: str,
    descending: bool = True
) -> List[Dict[str, Any]]:
    """assign_ranks applied separately to each group (e.g. towns within a year)."""
    groups: Dict[Any, List[Dict[str, Any]]] = {}
    for row in rows:
        groups.setdefault(row[group_key], []).append(row)
    for members in groups.values():
        assign_ranks(members, value_key=value_key, rank_key=rank_key,
                     name_key=name_key, descending=descending)
    return rows


def mean_growth_rate(growth_values: Iterable[Optional[float]]) -> Optional[float]:
    """Arithmetic mean of the non-null growth percentages, or None if there are none."""
    values = [v for v in growth_values if v is not None]
    if not values:
        return None
    return round2(sum(values) / len(values))


# =============================================================================
# PRICE DISTRIBUTION
# =============================================================================

def bucket_floor(price: float, bucket_size: float):
    """
    Lower edge of the bucket a price falls into (lower edge inclusive).

    Integral bucket sizes give int edges so 100000 serializes as 100000,
    not 100000.0.
    """
    edge = math.floor(price / bucket_size) * bucket_size
    if float(bucket_size).is_integer():
        return int(edge)
    return round(edge, 2)


def compute_histogram(prices: Iterable[float], bucket_size: float) -> List[Dict[str, Any]]:
    """
    Bucket prices and compute per-bucket share and cumulative share.

    Returns:
        List of {price_bucket, count, percentage, cumulative_pct} ordered by
        bucket ascending. Empty input gives an empty list.

    Example:
        >>> compute_histogram([100000, 149999, 150000], 50000)[0]
        {'price_bucket': 100000, 'count': 2, 'percentage': 66.67, 'cumulative_pct': 66.67}
    """
    counts = Counter(bucket_floor(p, bucket_size) for p in prices)
    total = sum(counts.values())
    if total == 0:
        return []

    result = []
    running = 0
    for bucket in sorted(counts):
        count = counts[bucket]
        running += count
        result.append({
            'price_bucket': bucket,
            'count': count,
            'percentage': round2(count * 100.0 / total),
            'cumulative_pct': round2(running * 100.0 / total),
        })
    return result


# =============================================================================
# LEASE DEPRECIATION
# =============================================================================

def compute_lease_depreciation(band_rows: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Benchmark each flat type's lease bands against its highest band present.

    Args:
        band_rows: Dicts with 'flat_type_name', 'lease_band_floor' (90/80/70/60/0)
            and 'avg_price'

    Returns:
        New list ordered by flat type, then band floor descending, each row
        extended with lease_band, benchmark_band, price_at_90plus and
        depreciation_pct (0.0 for the benchmark band, None if benchmark is 0).
    """
    rows = sorted(
        (dict(r) for r in band_rows),
        key=lambda r: (r['flat_type_name'], -r['lease_band_floor'])
    )

    benchmarks: Dict[str, Tuple[int, Optional[float]]] = {}
    for row in rows:
        # Rows are sorted band-descending, so the first row per type is the benchmark
        benchmarks.setdefault(row['flat_type_name'], (row['lease_band_floor'], row['avg_price']))

    for row in rows:
        benchmark_floor, benchmark_price = benchmarks[row['flat_type_name']]
        row['lease_band'] = get_lease_band_label(row['lease_band_floor'])
        row['benchmark_band'] = get_lease_band_label(benchmark_floor)
        row['price_at_90plus'] = benchmark_price
        if row['lease_band_floor'] == benchmark_floor:
            row['depreciation_pct'] = 0.0 if benchmark_price else None
        else:
            row['depreciation_pct'] = safe_pct_change(row['avg_price'], benchmark_price)

    return rows


# =============================================================================
# HEATMAP
# =============================================================================

def classify_heat(yoy_growth_pct: Optional[float]) -> Optional[str]:
    """
    Map YoY growth to a heat category.

    >=10 very_hot, >=5 hot, >=2 warm, >=0 neutral, else cool.
    """
    if yoy_growth_pct is None:
        return None
    for threshold, label in HEAT_THRESHOLDS:
        if yoy_growth_pct >= threshold:
            return label
    return HEAT_COOL


def compute_heatmap(
    current_rows: Sequence[Dict[str, Any]],
    previous_rows: Sequence[Dict[str, Any]]
) -> List[Dict[str, Any]]:
    """
    Join current-period and previous-period town aggregates.

    Args:
        current_rows: Dicts with town_name, transaction_count, avg_price,
            avg_price_per_sqm, latest_month
        previous_rows: Dicts with town_name, avg_price, avg_price_per_sqm,
            transaction_count for the comparison window

    Returns:
        Rows for towns present in both periods with a non-zero previous
        average, ordered by yoy_growth_pct descending (town name ascending
        on ties). Towns without a usable baseline are left out.
    """
    previous = {r['town_name']: r for r in previous_rows}
    result = []

    for cur in current_rows:
        prev = previous.get(cur['town_name'])
        if prev is None:
            continue
        growth = safe_pct_change(cur['avg_price'], prev['avg_price'])
        if growth is None:
            continue
        result.append({
            'town_name': cur['town_name'],
            'transaction_count': cur['transaction_count'],
            'avg_price': cur['avg_price'],
            'avg_price_per_sqm': cur['avg_price_per_sqm'],
            'latest_month': cur.get('latest_month'),
            'prev_transaction_count': prev.get('transaction_count'),
            'prev_avg_price': prev['avg_price'],
            'prev_avg_price_per_sqm': prev['avg_price_per_sqm'],
            'yoy_growth_pct': growth,
            'yoy_growth_psm_pct': safe_pct_change(cur['avg_price_per_sqm'], prev['avg_price_per_sqm']),
            'heat_category': classify_heat(growth),
        })

    result.sort(key=lambda r: (-r['yoy_growth_pct'], r['town_name']))
    return result


# =============================================================================
# PRICE PROJECTION
# =============================================================================

def project_price(current_price: float, annual_growth_pct: float, years: int) -> float:
    """Compound current_price annually at annual_growth_pct for `years` years."""
    return round2(current_price * (1 + annual_growth_pct / 100.0) ** years)


def build_scenarios(
    current_price: float,
    annual_growth_pct: float,
    years: int,
    scenarios: Sequence[Tuple[str, float]]
) -> Dict[str, Dict[str, float]]:
    """
    Projected price per scenario.

    Args:
        scenarios: (name, multiplier) pairs applied to the annual growth rate

    Returns:
        {name: {growth_rate, price, pct_change}}
    """
    result = {}
    for name, multiplier in scenarios:
        rate = round2(annual_growth_pct * multiplier)
        price = project_price(current_price, annual_growth_pct * multiplier, years)
        result[name] = {
            'growth_rate': rate,
            'price': price,
            'pct_change': safe_pct_change(price, current_price),
        }
    return result


def compute_confidence(sample_size: int, has_historical_data: bool) -> Tuple[int, str]:
    """
    Confidence score (0-100) and level for a prediction.

    Sample size contributes up to 70 points (saturating at 30 transactions);
    town-level price history contributes 30, market fallback 10.
    """
    sample_part = min(sample_size, CONFIDENCE_SAMPLE_CAP) / CONFIDENCE_SAMPLE_CAP * CONFIDENCE_SAMPLE_WEIGHT
    history_part = CONFIDENCE_HISTORY_BONUS if has_historical_data else CONFIDENCE_NO_HISTORY_BONUS
    score = int(round(sample_part + history_part))

    if score >= CONFIDENCE_HIGH:
        level = 'high'
    elif score >= CONFIDENCE_MEDIUM:
        level = 'medium'
    else:
        level = 'low'
    return score, level
