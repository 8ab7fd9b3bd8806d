"""
Input Normalization Utilities
=============================

Single source of truth for input normalization.
All parsing of external inputs happens here, nowhere else.

Usage:
    from utils.normalize import to_int, to_month, ValidationError

    @analytics_bp.route("/price-trends")
    def price_trends():
        try:
            months = to_int(request.args.get("months"), default=12, min_value=1, field="months")
            as_of = to_month(request.args.get("asOf"), field="asOf")
        except ValidationError as e:
            return validation_error_response(e)

        # Now types are guaranteed correct
        return service.get_price_trends(months=months, ...)

Absent parameters fall back to defaults. Present but malformed parameters
always raise; they are never silently defaulted.
"""

import re
from datetime import date, datetime
from typing import Optional, Union

_MONTH_PATTERN = re.compile(r'^(\d{4})-(\d{2})$')
_YEAR_PATTERN = re.compile(r'^\d{4}$')


class ValidationError(ValueError):
    """Raised when input cannot be normalized to expected type."""

    def __init__(self, message: str, field: str = None, received_value=None):
        super().__init__(message)
        self.field = field
        self.received_value = received_value


def _check_bounds(value, *, min_value, max_value, field, received_value):
    if min_value is not None and value < min_value:
        raise ValidationError(
            f"Expected value >= {min_value}, got {received_value!r}",
            field=field,
            received_value=received_value
        )
    if max_value is not None and value > max_value:
        raise ValidationError(
            f"Expected value <= {max_value}, got {received_value!r}",
            field=field,
            received_value=received_value
        )
    return value


def to_int(
    value: Optional[Union[str, int]],
    *,
    default: Optional[int] = None,
    min_value: Optional[int] = None,
    max_value: Optional[int] = None,
    field: str = None
) -> Optional[int]:
    """
    Convert string to int, with explicit None handling.

    Args:
        value: Input string (typically from request.args.get())
        default: Value to return if input is None or empty
        min_value: Inclusive lower bound (ValidationError when violated)
        max_value: Inclusive upper bound (ValidationError when violated)
        field: Field name for error messages

    Returns:
        Parsed integer or default

    Raises:
        ValidationError: If value cannot be converted to int or is out of bounds
    """
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise ValidationError(f"Expected int, got bool: {value!r}", field=field, received_value=value)
    try:
        parsed = int(value)
    except (ValueError, TypeError):
        raise ValidationError(
            f"Expected int, got {type(value).__name__}: {value!r}",
            field=field,
            received_value=value
        )
    return _check_bounds(parsed, min_value=min_value, max_value=max_value,
                         field=field, received_value=value)


def to_float(
    value: Optional[Union[str, float]],
    *,
    default: Optional[float] = None,
    min_value: Optional[float] = None,
    max_value: Optional[float] = None,
    positive: bool = False,
    field: str = None
) -> Optional[float]:
    """
    Convert string to float, with explicit None handling.

    Args:
        value: Input string (typically from request.args.get())
        default: Value to return if input is None or empty
        min_value: Inclusive lower bound
        max_value: Inclusive upper bound
        positive: Reject zero and negative values
        field: Field name for error messages

    Returns:
        Parsed float or default

    Raises:
        ValidationError: If value cannot be converted to a finite float or is out of bounds
    """
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise ValidationError(f"Expected float, got bool: {value!r}", field=field, received_value=value)
    try:
        parsed = float(value)
    except (ValueError, TypeError):
        raise ValidationError(
            f"Expected float, got {type(value).__name__}: {value!r}",
            field=field,
            received_value=value
        )
    if parsed != parsed or parsed in (float('inf'), float('-inf')):
        raise ValidationError(f"Expected finite number, got {value!r}", field=field, received_value=value)
    if positive and parsed <= 0:
        raise ValidationError(f"Expected positive number, got {value!r}", field=field, received_value=value)
    return _check_bounds(parsed, min_value=min_value, max_value=max_value,
                         field=field, received_value=value)


def to_str(
    value: Optional[str],
    *,
    default: Optional[str] = None,
    strip: bool = True,
    upper: bool = False,
    field: str = None
) -> Optional[str]:
    """
    Normalize string input, optionally stripping whitespace and upper-casing.

    Town and flat type names are stored upper-case, so filters on them pass
    upper=True.
    """
    if value is None or value == "":
        return default
    result = str(value)
    if strip:
        result = result.strip()
    # Treat whitespace-only as empty
    if result == "":
        return default
    if upper:
        result = result.upper()
    return result


def to_month(
    value: Optional[Union[str, date]],
    *,
    default: Optional[str] = None,
    min_value: Optional[str] = None,
    field: str = None
) -> Optional[str]:
    """
    Normalize a year-month to the canonical 'YYYY-MM' string.

    Accepts 'YYYY-MM', 'YYYY-MM-DD' (day dropped) and date/datetime objects.
    Year 0000 is rejected. min_value is an inclusive 'YYYY-MM' lower bound.

    Raises:
        ValidationError: If value is not a valid year-month
    """
    if value is None or value == "":
        return default
    if isinstance(value, (date, datetime)):
        text = f"{value.year:04d}-{value.month:02d}"
    else:
        text = str(value).strip()
        if len(text) == 10:
            text = text[:7]
        match = _MONTH_PATTERN.match(text)
        if not match or int(match.group(1)) < 1 or not 1 <= int(match.group(2)) <= 12:
            raise ValidationError(
                f"Expected month (YYYY-MM), got {type(value).__name__}: {value!r}",
                field=field,
                received_value=value
            )
    if min_value is not None and text < min_value:
        raise ValidationError(
            f"Expected month >= {min_value}, got {value!r}",
            field=field,
            received_value=value
        )
    return text


def to_year(
    value: Optional[Union[str, int]],
    *,
    default: Optional[str] = None,
    field: str = None
) -> Optional[str]:
    """
    Normalize a calendar year to a 4-digit string ('2024').

    Years are compared as strings against the leading 4 characters of month.
    """
    if value is None or value == "":
        return default
    text = str(value).strip()
    if not _YEAR_PATTERN.match(text):
        raise ValidationError(
            f"Expected 4-digit year, got {type(value).__name__}: {value!r}",
            field=field,
            received_value=value
        )
    return text


def validation_error_response(error: ValidationError) -> tuple:
    """
    Convert ValidationError to a structured 400 response tuple.

    Usage:
        try:
            limit = to_int(request.args.get("limit"))
        except ValidationError as e:
            return validation_error_response(e)

    Returns:
        Tuple of (dict, 400) suitable for Flask response
    """
    response = {
        "success": False,
        "error": str(error),
        "type": "validation_error"
    }
    if error.field:
        response["field"] = error.field
    if error.received_value is not None:
        response["received_value"] = str(error.received_value)
    return response, 400
