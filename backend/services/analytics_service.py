"""
Analytics Service - Aggregations over the HDB resale transaction store

Each public function is one analytics endpoint's computation:
- get_overall_statistics     whole-store summary + recent-window comparison
- get_price_trends           monthly series with MoM / 3-month MA / YoY
- get_town_comparison        per-town metrics, ranks, national deviation
- get_flat_type_comparison   per-flat-type metrics, ranks, market share
- get_price_distribution     histogram with cumulative share
- get_yearly_town_prices     (year, town) averages with YoY and in-year rank
- get_top_appreciating_towns towns ranked by YoY growth for one year
- get_lease_depreciation     lease bands benchmarked per flat type
- get_heatmap                current vs year-earlier window per town
- get_town_trends            yearly series for one town (+ flat type)
- get_filter_options         distinct towns / flat types / month range

SQL does the GROUP BY work with portable SQLAlchemy constructs; ordering-
dependent logic (LAG, RANK, running sums, benchmarks) runs in
services/analytics_compute.py. Nothing here writes to the store.

Grouped expressions use inline literals (literal_column) so SELECT and
GROUP BY render identical SQL on PostgreSQL and MySQL.
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy import case, distinct, func, literal_column

from constants import (
    DEFAULT_BUCKET_SIZE,
    DEFAULT_HEATMAP_MONTHS,
    DEFAULT_RECENT_WINDOW_MONTHS,
    DEFAULT_TOP_TOWNS_LIMIT,
    DEFAULT_TREND_MONTHS,
    DISTRIBUTION_MAX_PRICE,
    DISTRIBUTION_MIN_PRICE,
    HEATMAP_PREVIOUS_OFFSET_MONTHS,
    LEASE_BANDS,
    YEARLY_TABLE_FIRST_YEAR,
    YEARLY_TABLE_LAST_YEAR,
)
from models import Block, FlatType, Lease, Town, Transaction
from models.database import db
from services.analytics_cache import memoize_analytics
from services.analytics_compute import (
    assign_ranks,
    compute_heatmap,
    compute_histogram,
    compute_lease_depreciation,
    compute_monthly_trends,
    compute_yearly_growth,
    mean_growth_rate,
    population_stddev,
    rank_within_groups,
    round2,
    safe_diff,
    safe_pct_change,
    safe_ratio,
    safe_share_pct,
    take_latest,
)
from utils.filter_builder import build_transaction_filters
from utils.periods import month_window

logger = logging.getLogger('analytics_service')


# =============================================================================
# QUERY HELPERS
# =============================================================================

def _lit(value: int):
    return literal_column(str(int(value)))


def year_expr():
    """Leading 'YYYY' of Transaction.month."""
    return func.substr(Transaction.month, _lit(1), _lit(4))


def lease_band_floor_expr():
    """CASE mapping remaining lease years to its band floor (90/80/70/60/0)."""
    whens = [
        (Lease.remaining_lease_years >= _lit(floor), _lit(floor))
        for floor, _label in LEASE_BANDS if floor > 0
    ]
    return case(*whens, else_=_lit(0))


def analytics_query(*entities, with_lease: bool = False):
    """
    Base query over Transaction joined to Block, Town and FlatType
    (and Lease when with_lease=True), so any standard filter applies.
    """
    query = (
        db.session.query(*entities)
        .select_from(Transaction)
        .join(Block, Transaction.block_id == Block.id)
        .join(Town, Block.town_id == Town.id)
        .join(FlatType, Transaction.flat_type_id == FlatType.id)
    )
    if with_lease:
        query = query.join(Lease, Transaction.lease_id == Lease.id)
    return query


def _as_float(value) -> Optional[float]:
    return float(value) if value is not None else None


def _rows(query) -> List[Dict[str, Any]]:
    return [dict(row._mapping) for row in query.all()]


def get_latest_month() -> Optional[str]:
    """Latest 'YYYY-MM' in the store, or None when empty."""
    return db.session.query(func.max(Transaction.month)).scalar()


def resolve_anchor_month(as_of: Optional[str] = None) -> Optional[str]:
    """
    Month that "most recent N months" windows end on.

    An explicit as_of wins; otherwise the latest month present in the store,
    which keeps results a function of store contents alone.
    """
    return as_of or get_latest_month()


# =============================================================================
# OVERALL STATISTICS
# =============================================================================

@memoize_analytics("overall_statistics")
def get_overall_statistics(
    *,
    recent_months: int = DEFAULT_RECENT_WINDOW_MONTHS,
    as_of: Optional[str] = None
) -> Dict[str, Any]:
    """
    Whole-store statistics plus a recent-window comparison.

    Returns:
        Dict with totals, price spread, averages, month range, and
        recent_transactions / recent_avg_price / recent_vs_overall_pct for
        the `recent_months` months ending at the anchor month.
        recent_vs_overall_pct is None for an empty store.
    """
    row = analytics_query(
        func.count(Transaction.id).label('total_transactions'),
        func.count(distinct(Town.id)).label('total_towns'),
        func.count(distinct(FlatType.id)).label('total_flat_types'),
        func.min(Transaction.price).label('min_price'),
        func.max(Transaction.price).label('max_price'),
        func.avg(Transaction.price).label('avg_price'),
        func.avg(Transaction.price * Transaction.price).label('avg_price_sq'),
        func.avg(Transaction.floor_area_sqm).label('avg_floor_area'),
        func.avg(Transaction.price_per_sqm).label('avg_price_per_sqm'),
        func.min(Transaction.month).label('earliest_transaction'),
        func.max(Transaction.month).label('latest_transaction'),
    ).one()

    avg_price = round2(_as_float(row.avg_price))
    stats = {
        'total_transactions': int(row.total_transactions or 0),
        'total_towns': int(row.total_towns or 0),
        'total_flat_types': int(row.total_flat_types or 0),
        'min_price': _as_float(row.min_price),
        'max_price': _as_float(row.max_price),
        'avg_price': avg_price,
        'stddev_price': population_stddev(_as_float(row.avg_price), _as_float(row.avg_price_sq)),
        'avg_floor_area': round2(_as_float(row.avg_floor_area)),
        'avg_price_per_sqm': round2(_as_float(row.avg_price_per_sqm)),
        'earliest_transaction': row.earliest_transaction,
        'latest_transaction': row.latest_transaction,
        'recent_window_months': recent_months,
        'recent_window_start': None,
        'recent_window_end': None,
        'recent_transactions': 0,
        'recent_avg_price': None,
        'recent_vs_overall_pct': None,
    }

    anchor = as_of or row.latest_transaction
    if anchor is None:
        return stats

    window_start, window_end = month_window(anchor, recent_months)
    recent = db.session.query(
        func.count(Transaction.id).label('recent_transactions'),
        func.avg(Transaction.price).label('recent_avg_price'),
    ).filter(
        Transaction.month >= window_start,
        Transaction.month <= window_end,
    ).one()

    recent_avg = round2(_as_float(recent.recent_avg_price))
    stats.update({
        'recent_window_start': window_start,
        'recent_window_end': window_end,
        'recent_transactions': int(recent.recent_transactions or 0),
        'recent_avg_price': recent_avg,
        'recent_vs_overall_pct': safe_pct_change(recent_avg, avg_price),
    })
    return stats


# =============================================================================
# PRICE TRENDS
# =============================================================================

def get_monthly_series(filters: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Per-month count / avg / min / max price and avg price-per-sqm, ascending."""
    query = analytics_query(
        Transaction.month.label('month'),
        func.count(Transaction.id).label('transaction_count'),
        func.avg(Transaction.price).label('avg_price'),
        func.min(Transaction.price).label('min_price'),
        func.max(Transaction.price).label('max_price'),
        func.avg(Transaction.price_per_sqm).label('avg_price_per_sqm'),
    ).filter(
        *build_transaction_filters(filters)
    ).group_by(
        Transaction.month
    ).order_by(
        Transaction.month
    )

    return [
        {
            'month': row['month'],
            'transaction_count': int(row['transaction_count']),
            'avg_price': round2(_as_float(row['avg_price'])),
            'min_price': _as_float(row['min_price']),
            'max_price': _as_float(row['max_price']),
            'avg_price_per_sqm': round2(_as_float(row['avg_price_per_sqm'])),
        }
        for row in _rows(query)
    ]


@memoize_analytics("price_trends")
def get_price_trends(
    *,
    months: int = DEFAULT_TREND_MONTHS,
    town: Optional[str] = None,
    flat_type: Optional[str] = None
) -> List[Dict[str, Any]]:
    """
    Monthly price trend for the most recent `months` months with data.

    Deltas are computed over the full filtered history before truncation, so
    the first returned month still has its MoM / YoY values when older data
    exists. Output is chronological (ascending).
    """
    series = get_monthly_series({'town': town, 'flat_type': flat_type})
    trends = compute_monthly_trends(series)
    logger.debug("price_trends months_available=%d returned=%d", len(trends), min(months, len(trends)))
    return take_latest(trends, months)


# =============================================================================
# TOWN / FLAT TYPE COMPARISON
# =============================================================================

@memoize_analytics("town_comparison")
def get_town_comparison(*, flat_type: Optional[str] = None) -> List[Dict[str, Any]]:
    """
    Per-town metrics ranked by price, price-per-sqm and volume, with each
    town's deviation from the national baseline.

    Ranks are 1..n without gaps; ties go to the alphabetically first town.
    Ordered by avg_price descending.
    """
    conditions = build_transaction_filters({'flat_type': flat_type})

    national = analytics_query(
        func.avg(Transaction.price).label('avg_price'),
        func.avg(Transaction.price_per_sqm).label('avg_psm'),
    ).filter(*conditions).one()
    national_avg_price = round2(_as_float(national.avg_price))
    national_avg_psm = round2(_as_float(national.avg_psm))

    query = analytics_query(
        Town.town_name.label('town_name'),
        func.count(Transaction.id).label('transaction_count'),
        func.avg(Transaction.price).label('avg_price'),
        func.avg(Transaction.price_per_sqm).label('avg_price_per_sqm'),
        func.min(Transaction.price).label('min_price'),
        func.max(Transaction.price).label('max_price'),
        func.avg(Transaction.floor_area_sqm).label('avg_floor_area'),
    ).filter(*conditions).group_by(Town.town_name)

    towns = []
    for row in _rows(query):
        avg_price = round2(_as_float(row['avg_price']))
        avg_psm = round2(_as_float(row['avg_price_per_sqm']))
        towns.append({
            'town_name': row['town_name'],
            'transaction_count': int(row['transaction_count']),
            'avg_price': avg_price,
            'avg_price_per_sqm': avg_psm,
            'min_price': _as_float(row['min_price']),
            'max_price': _as_float(row['max_price']),
            'avg_floor_area': round2(_as_float(row['avg_floor_area'])),
            'national_avg_price': national_avg_price,
            'national_avg_psm': national_avg_psm,
            'diff_from_national': safe_diff(avg_price, national_avg_price),
            'pct_diff_from_national': safe_pct_change(avg_price, national_avg_price),
            'psm_diff_from_national': safe_diff(avg_psm, national_avg_psm),
            'psm_pct_diff_from_national': safe_pct_change(avg_psm, national_avg_psm),
        })

    assign_ranks(towns, value_key='avg_price', rank_key='price_rank', name_key='town_name')
    assign_ranks(towns, value_key='avg_price_per_sqm', rank_key='psm_rank', name_key='town_name')
    assign_ranks(towns, value_key='transaction_count', rank_key='volume_rank', name_key='town_name')

    towns.sort(key=lambda t: t['price_rank'])
    return towns


@memoize_analytics("flat_type_comparison")
def get_flat_type_comparison() -> List[Dict[str, Any]]:
    """
    Per-flat-type metrics with price rank, price-efficiency rank (lowest
    avg price-per-sqm first), market share and price per room.

    Ordered by typical_rooms ascending; types without a room count
    (EXECUTIVE, MULTI-GENERATION) come last, by name.
    """
    total = db.session.query(func.count(Transaction.id)).scalar() or 0

    query = analytics_query(
        FlatType.flat_type_name.label('flat_type_name'),
        FlatType.typical_rooms.label('typical_rooms'),
        func.count(Transaction.id).label('transaction_count'),
        func.avg(Transaction.price).label('avg_price'),
        func.min(Transaction.price).label('min_price'),
        func.max(Transaction.price).label('max_price'),
        func.avg(Transaction.floor_area_sqm).label('avg_floor_area'),
        func.avg(Transaction.price_per_sqm).label('avg_price_per_sqm'),
    ).group_by(FlatType.flat_type_name, FlatType.typical_rooms)

    flat_types = []
    for row in _rows(query):
        avg_price = round2(_as_float(row['avg_price']))
        flat_types.append({
            'flat_type_name': row['flat_type_name'],
            'typical_rooms': row['typical_rooms'],
            'transaction_count': int(row['transaction_count']),
            'avg_price': avg_price,
            'min_price': _as_float(row['min_price']),
            'max_price': _as_float(row['max_price']),
            'avg_floor_area': round2(_as_float(row['avg_floor_area'])),
            'avg_price_per_sqm': round2(_as_float(row['avg_price_per_sqm'])),
            'market_share_pct': safe_share_pct(int(row['transaction_count']), total),
            'price_per_room': safe_ratio(avg_price, row['typical_rooms']),
        })

    assign_ranks(flat_types, value_key='avg_price', rank_key='price_rank',
                 name_key='flat_type_name')
    assign_ranks(flat_types, value_key='avg_price_per_sqm', rank_key='price_efficiency_rank',
                 name_key='flat_type_name', descending=False)

    flat_types.sort(key=lambda f: (
        f['typical_rooms'] is None, f['typical_rooms'] or 0, f['flat_type_name']
    ))
    return flat_types


# =============================================================================
# PRICE DISTRIBUTION
# =============================================================================

@memoize_analytics("price_distribution")
def get_price_distribution(*, bucket_size: float = DEFAULT_BUCKET_SIZE) -> List[Dict[str, Any]]:
    """
    Price histogram over [DISTRIBUTION_MIN_PRICE, DISTRIBUTION_MAX_PRICE].

    Prices outside the bounds are excluded as outliers (fixed policy).
    Buckets are floor(price / bucket_size) * bucket_size, lower edge inclusive.
    """
    if bucket_size <= 0:
        raise ValueError("bucket_size must be positive")

    prices = (
        db.session.query(Transaction.price)
        .filter(Transaction.price.between(DISTRIBUTION_MIN_PRICE, DISTRIBUTION_MAX_PRICE))
        .yield_per(10000)
    )
    return compute_histogram((price for (price,) in prices), bucket_size)


# =============================================================================
# YEARLY TOWN PRICES / TOP APPRECIATING TOWNS
# =============================================================================

def get_yearly_series(filters: Dict[str, Any], *, by_town: bool = True) -> List[Dict[str, Any]]:
    """
    Average price and count per year (and per town when by_town=True).

    Rows: {year, [town_name], avg_price, transaction_count}, year ascending.
    """
    year = year_expr()
    columns = [year.label('year')]
    group_by = [year]
    if by_town:
        columns.append(Town.town_name.label('town_name'))
        group_by.append(Town.town_name)
    columns += [
        func.avg(Transaction.price).label('avg_price'),
        func.count(Transaction.id).label('transaction_count'),
    ]

    query = analytics_query(*columns).filter(
        *build_transaction_filters(filters)
    ).group_by(*group_by)

    rows = []
    for row in _rows(query):
        item = {'year': row['year']}
        if by_town:
            item['town_name'] = row['town_name']
        item['avg_price'] = round2(_as_float(row['avg_price']))
        item['transaction_count'] = int(row['transaction_count'])
        rows.append(item)
    rows.sort(key=lambda r: (r['year'], r.get('town_name') or ''))
    return rows


@memoize_analytics("yearly_town_prices")
def get_yearly_town_prices(
    *,
    first_year: str = YEARLY_TABLE_FIRST_YEAR,
    last_year: str = YEARLY_TABLE_LAST_YEAR
) -> List[Dict[str, Any]]:
    """
    Average price per (year, town) with YoY change and in-year price rank.

    YoY compares against the same town's previous calendar year; a town's
    first year present (or a year after a gap) has None deltas.
    Ordered by year ascending, then avg_price descending.
    """
    series = get_yearly_series({'year_from': first_year, 'year_to': last_year})
    rows = compute_yearly_growth(series, partition_key='town_name')
    rank_within_groups(rows, group_key='year', value_key='avg_price',
                       rank_key='price_rank_in_year', name_key='town_name')
    rows.sort(key=lambda r: (r['year'], r['price_rank_in_year']))
    return rows


@memoize_analytics("top_appreciating_towns")
def get_top_appreciating_towns(
    *,
    year: Optional[str] = None,
    limit: int = DEFAULT_TOP_TOWNS_LIMIT
) -> List[Dict[str, Any]]:
    """
    Towns with the highest YoY average price growth in `year`.

    Only towns with data for both `year` and the year before qualify.
    growth_rank is 1..n over all qualifying towns; the top `limit` are returned.
    """
    year = year or str(date.today().year)

    rows = compute_yearly_growth(get_yearly_series({}), partition_key='town_name')
    qualifying = [
        {
            'town_name': r['town_name'],
            'year': r['year'],
            'avg_price': r['avg_price'],
            'prev_year_price': r['prev_year_price'],
            'yoy_growth_pct': r['yoy_growth_pct'],
            'transactions': r['transaction_count'],
        }
        for r in rows
        if r['year'] == year and r['prev_year_price'] is not None and r['yoy_growth_pct'] is not None
    ]

    assign_ranks(qualifying, value_key='yoy_growth_pct', rank_key='growth_rank', name_key='town_name')
    qualifying.sort(key=lambda r: r['growth_rank'])
    return qualifying[:limit]


# =============================================================================
# LEASE DEPRECIATION
# =============================================================================

@memoize_analytics("lease_depreciation")
def get_lease_depreciation(*, flat_type: Optional[str] = None) -> List[Dict[str, Any]]:
    """
    Price by remaining-lease band per flat type, benchmarked against the
    highest band present for that flat type.

    Ordered by flat type, then band descending by numeric floor (so
    "90+ years" precedes "Below 60 years").
    """
    band = lease_band_floor_expr()
    query = analytics_query(
        FlatType.flat_type_name.label('flat_type_name'),
        band.label('lease_band_floor'),
        func.count(Transaction.id).label('transaction_count'),
        func.avg(Transaction.price).label('avg_price'),
        func.avg(Transaction.price_per_sqm).label('avg_psm'),
        func.min(Transaction.price).label('min_price'),
        func.max(Transaction.price).label('max_price'),
        with_lease=True,
    ).filter(
        *build_transaction_filters({'flat_type': flat_type})
    ).group_by(FlatType.flat_type_name, band)

    band_rows = [
        {
            'flat_type_name': row['flat_type_name'],
            'lease_band_floor': int(row['lease_band_floor']),
            'transaction_count': int(row['transaction_count']),
            'avg_price': round2(_as_float(row['avg_price'])),
            'avg_psm': round2(_as_float(row['avg_psm'])),
            'min_price': _as_float(row['min_price']),
            'max_price': _as_float(row['max_price']),
        }
        for row in _rows(query)
    ]
    return compute_lease_depreciation(band_rows)


# =============================================================================
# HEATMAP
# =============================================================================

def _town_period_metrics(month_from: str, month_to: str, flat_type: Optional[str]) -> List[Dict[str, Any]]:
    query = analytics_query(
        Town.town_name.label('town_name'),
        func.count(Transaction.id).label('transaction_count'),
        func.avg(Transaction.price).label('avg_price'),
        func.avg(Transaction.price_per_sqm).label('avg_price_per_sqm'),
        func.max(Transaction.month).label('latest_month'),
    ).filter(
        *build_transaction_filters({
            'flat_type': flat_type,
            'month_from': month_from,
            'month_to': month_to,
        })
    ).group_by(Town.town_name)

    return [
        {
            'town_name': row['town_name'],
            'transaction_count': int(row['transaction_count']),
            'avg_price': round2(_as_float(row['avg_price'])),
            'avg_price_per_sqm': round2(_as_float(row['avg_price_per_sqm'])),
            'latest_month': row['latest_month'],
        }
        for row in _rows(query)
    ]


@memoize_analytics("heatmap")
def get_heatmap(
    *,
    months: int = DEFAULT_HEATMAP_MONTHS,
    flat_type: Optional[str] = None,
    as_of: Optional[str] = None
) -> Dict[str, Any]:
    """
    Town-level YoY growth between the latest `months`-month window and the
    same window one year earlier, categorized for colour coding.

    Returns:
        {
            'current_period': {'from', 'to'},
            'previous_period': {'from', 'to'},
            'towns': [...],              # only towns with both periods
            'excluded_towns': [...],     # current-period towns lacking a baseline
        }
    """
    anchor = resolve_anchor_month(as_of)
    if anchor is None:
        return {'current_period': None, 'previous_period': None, 'towns': [], 'excluded_towns': []}

    current_from, current_to = month_window(anchor, months)
    previous_from, previous_to = month_window(anchor, months, offset_months=HEATMAP_PREVIOUS_OFFSET_MONTHS)

    current = _town_period_metrics(current_from, current_to, flat_type)
    previous = _town_period_metrics(previous_from, previous_to, flat_type)
    towns = compute_heatmap(current, previous)

    included = {t['town_name'] for t in towns}
    excluded = sorted(r['town_name'] for r in current if r['town_name'] not in included)
    if excluded:
        logger.debug("heatmap excluded towns without baseline: %s", excluded)

    return {
        'current_period': {'from': current_from, 'to': current_to},
        'previous_period': {'from': previous_from, 'to': previous_to},
        'towns': towns,
        'excluded_towns': excluded,
    }


# =============================================================================
# TOWN TRENDS / FILTER OPTIONS
# =============================================================================

@memoize_analytics("town_trends")
def get_town_trends(*, town: str, flat_type: Optional[str] = None) -> Dict[str, Any]:
    """
    Yearly average price series for one town (optionally one flat type)
    with YoY growth and a summary of the whole series.
    """
    series = get_yearly_series({'town': town, 'flat_type': flat_type}, by_town=False)
    rows = compute_yearly_growth(series, partition_key=None)

    summary = {
        'years': len(rows),
        'first_year': rows[0]['year'] if rows else None,
        'last_year': rows[-1]['year'] if rows else None,
        'avg_growth_pct': mean_growth_rate(r['yoy_growth_pct'] for r in rows),
        'total_growth_pct': safe_pct_change(rows[-1]['avg_price'], rows[0]['avg_price']) if len(rows) > 1 else None,
    }
    return {'series': rows, 'summary': summary}


@memoize_analytics("filter_options")
def get_filter_options() -> Dict[str, Any]:
    """Distinct towns and flat types with data, plus the store's month range."""
    towns = [
        name for (name,) in
        analytics_query(Town.town_name).distinct().order_by(Town.town_name).all()
    ]
    flat_types = [
        {'flat_type_name': name, 'typical_rooms': rooms}
        for name, rooms in analytics_query(FlatType.flat_type_name, FlatType.typical_rooms).distinct().all()
    ]
    flat_types.sort(key=lambda f: (f['typical_rooms'] is None, f['typical_rooms'] or 0, f['flat_type_name']))
    earliest, latest = db.session.query(func.min(Transaction.month), func.max(Transaction.month)).one()

    return {
        'towns': towns,
        'flat_types': flat_types,
        'month_range': {'earliest': earliest, 'latest': latest},
    }
