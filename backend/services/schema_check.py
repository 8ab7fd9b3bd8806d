"""
Schema Check Service - Validates database schema matches SQLAlchemy models

Compares the actual database tables/columns (via the SQLAlchemy inspector,
so it works on PostgreSQL, MySQL and SQLite alike) against the expected
schema and reports any discrepancies.

The check runs once at startup; its report is kept in process state and
served read-only by the /health endpoint.

Usage:
    # At startup (in app.py)
    from services.schema_check import run_schema_check
    report = run_schema_check()
    if not report['is_valid']:
        print("Schema drift detected!")

    # Later, anywhere
    from services.schema_check import get_schema_report
"""

import logging
from typing import Any, Dict, Optional, Set

from sqlalchemy import inspect

from models.database import db

logger = logging.getLogger('schema_check')


# Expected columns per table (from SQLAlchemy models)
# This is the source of truth for what columns SHOULD exist
EXPECTED_SCHEMA = {
    'towns': {
        'required': ['id', 'town_name'],
        'optional': []
    },
    'blocks': {
        'required': ['id', 'block_number', 'street_name', 'town_id'],
        'optional': []
    },
    'flat_types': {
        'required': ['id', 'flat_type_name'],
        'optional': ['typical_rooms']
    },
    'flat_models': {
        'required': ['id', 'flat_model_name'],
        'optional': []
    },
    'storey_ranges': {
        'required': ['id', 'storey_range'],
        'optional': ['floor_min', 'floor_max']
    },
    'leases': {
        'required': ['id', 'remaining_lease_years'],
        'optional': ['lease_commence_year', 'remaining_lease_months']
    },
    'transactions': {
        'required': [
            'id', 'month', 'price', 'floor_area_sqm', 'price_per_sqm',
            'block_id', 'flat_type_id', 'lease_id'
        ],
        'optional': ['flat_model_id', 'storey_range_id']
    },
}

# Process-wide memo of the last report (set by run_schema_check)
_schema_report: Optional[Dict[str, Any]] = None


def get_database_tables() -> Set[str]:
    """Get list of tables in database."""
    return set(inspect(db.engine).get_table_names())


def get_database_columns(table_name: str) -> Set[str]:
    """Get actual columns from database for a table."""
    return {col['name'] for col in inspect(db.engine).get_columns(table_name)}


def run_schema_check() -> Dict[str, Any]:
    """
    Run schema check comparing database to expected model schema.

    Returns:
        Dict with:
            - is_valid: bool - True if no critical issues
            - missing_tables: List of tables that don't exist
            - missing_columns: List of {table, column, severity} for missing columns
            - extra_columns: List of {table, column} for columns in DB but not in model
            - summary: Human-readable summary string
    """
    global _schema_report

    missing_tables = []
    missing_columns = []
    extra_columns = []

    db_tables = get_database_tables()

    for table_name, schema in EXPECTED_SCHEMA.items():
        if table_name not in db_tables:
            missing_tables.append(table_name)
            continue

        db_columns = get_database_columns(table_name)
        expected_required = set(schema['required'])
        expected_optional = set(schema['optional'])
        expected_all = expected_required | expected_optional

        for col in sorted(expected_required - db_columns):
            missing_columns.append({'table': table_name, 'column': col, 'severity': 'critical'})

        for col in sorted(expected_optional - db_columns):
            missing_columns.append({'table': table_name, 'column': col, 'severity': 'warning'})

        # Extra columns are info only
        for col in sorted(db_columns - expected_all):
            extra_columns.append({'table': table_name, 'column': col})

    critical_issues = [c for c in missing_columns if c['severity'] == 'critical']
    warning_issues = [c for c in missing_columns if c['severity'] == 'warning']
    is_valid = not missing_tables and not critical_issues

    summary_parts = []
    if missing_tables:
        summary_parts.append(f"Missing tables: {', '.join(missing_tables)}")
    if critical_issues:
        cols = [f"{c['table']}.{c['column']}" for c in critical_issues]
        summary_parts.append(f"Missing critical columns: {', '.join(cols)}")
    if warning_issues:
        summary_parts.append(f"{len(warning_issues)} optional columns missing")

    report = {
        'is_valid': is_valid,
        'missing_tables': missing_tables,
        'missing_columns': missing_columns,
        'extra_columns': extra_columns,
        'summary': '; '.join(summary_parts) if summary_parts else 'Schema OK'
    }

    if is_valid:
        logger.info("schema_check ok")
    else:
        logger.warning("schema_check drift: %s", report['summary'])

    _schema_report = report
    return report


def get_schema_report() -> Optional[Dict[str, Any]]:
    """Report from the last run_schema_check(), or None if it never ran."""
    return _schema_report


def has_critical_drift(report: Dict[str, Any]) -> bool:
    """Required columns missing from tables that do exist."""
    return any(c['severity'] == 'critical' for c in report['missing_columns'])
