"""
Filter builder utilities.

Provides a single source of truth for optional transaction filters across
the analytics services. Each optional filter becomes one independent
SQLAlchemy condition; callers combine them with and_() or query.filter(*conds).

Usage:
    conditions = build_transaction_filters({'town': 'bedok', 'flat_type': '4 room'})
    query = analytics_query(...).filter(*conditions)

Queries using these conditions must join Transaction -> Block -> Town and
Transaction -> FlatType; lease filters additionally need Transaction -> Lease.
"""

from typing import Any, Dict, List


def normalize_name(value: Any) -> str:
    """Town and flat type names are stored stripped and upper-case."""
    return str(value).strip().upper()


def build_transaction_filters(filters: Dict[str, Any]) -> List[Any]:
    """
    Build SQLAlchemy filter conditions from standard analytics filters.

    Recognized keys (all optional):
        town                    -> Town.town_name = name
        flat_type               -> FlatType.flat_type_name = name
        month_from, month_to    -> inclusive 'YYYY-MM' bounds
        year_from, year_to      -> inclusive 'YYYY' bounds on the month's year
        floor_area_min/max      -> inclusive floor area bounds (sqm)
        remaining_lease_min/max -> inclusive remaining lease bounds (years)

    Returns:
        List of SQLAlchemy conditions to be combined with and_().
    """
    from sqlalchemy import func

    from models import FlatType, Lease, Town, Transaction

    conditions: List[Any] = []

    if filters.get('town'):
        conditions.append(Town.town_name == normalize_name(filters['town']))
    if filters.get('flat_type'):
        conditions.append(FlatType.flat_type_name == normalize_name(filters['flat_type']))

    # Month range ('YYYY-MM' strings sort chronologically)
    if filters.get('month_from'):
        conditions.append(Transaction.month >= filters['month_from'])
    if filters.get('month_to'):
        conditions.append(Transaction.month <= filters['month_to'])

    if filters.get('year_from'):
        conditions.append(func.substr(Transaction.month, 1, 4) >= str(filters['year_from']))
    if filters.get('year_to'):
        conditions.append(func.substr(Transaction.month, 1, 4) <= str(filters['year_to']))

    if filters.get('floor_area_min') is not None:
        conditions.append(Transaction.floor_area_sqm >= float(filters['floor_area_min']))
    if filters.get('floor_area_max') is not None:
        conditions.append(Transaction.floor_area_sqm <= float(filters['floor_area_max']))

    if filters.get('remaining_lease_min') is not None:
        conditions.append(Lease.remaining_lease_years >= float(filters['remaining_lease_min']))
    if filters.get('remaining_lease_max') is not None:
        conditions.append(Lease.remaining_lease_years <= float(filters['remaining_lease_max']))

    return conditions


def describe_filters(filters: Dict[str, Any]) -> Dict[str, Any]:
    """Active (non-empty) filters, for logging and response envelopes."""
    return {k: v for k, v in filters.items() if v not in (None, "", [], {})}
