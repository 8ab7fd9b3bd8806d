"""
Year-month arithmetic on canonical 'YYYY-MM' strings.

Transaction.month is stored as 'YYYY-MM', which sorts chronologically as a
string. Window bounds produced here are therefore usable directly in SQL
comparisons against that column.

Example:
    # Anchor 2024-06, 12 months
    month_window('2024-06', 12)  -> ('2023-07', '2024-06')
    # Same window one year earlier
    month_window('2024-06', 12, offset_months=12) -> ('2022-07', '2023-06')
"""

from datetime import date
from typing import Tuple

from dateutil.relativedelta import relativedelta

FIRST_MONTH = '0001-01'


def month_index(month: str) -> int:
    """Months since year 0, so consecutive months differ by exactly 1."""
    return int(month[:4]) * 12 + int(month[5:7]) - 1


def shift_month(month: str, delta: int) -> str:
    """Shift a 'YYYY-MM' month by delta months (negative = earlier)."""
    shifted = date(int(month[:4]), int(month[5:7]), 1) + relativedelta(months=delta)
    return f"{shifted.year:04d}-{shifted.month:02d}"


def month_window(anchor: str, months: int, *, offset_months: int = 0) -> Tuple[str, str]:
    """
    Inclusive (start, end) bounds of the `months`-month window ending at
    anchor, optionally shifted `offset_months` into the past.
    """
    end = shift_month(anchor, -offset_months)
    start = shift_month(end, -(months - 1))
    return start, end


def earliest_anchor(months: int, *, offset_months: int = 0) -> str:
    """Earliest anchor whose month_window(...) still starts in year 1 or later."""
    return shift_month(FIRST_MONTH, months - 1 + offset_months)


def previous_year(year: str) -> str:
    return f"{int(year) - 1:04d}"
