"""
Response envelope helpers.

Success responses from the analytics routes share one shape:
{
    "success": true,
    "data": ...,
    "count": n,          # list payloads
    "filters": {...},    # active filters, when the endpoint takes any
    ...extras            # endpoint-specific (bucketSize, year)
}

Client errors:
{
    "success": false,
    "error": "...",
    "type": "validation_error",
    "field": "...",
    "received_value": ...
}
"""

from typing import Any, Dict, Optional

from pydantic import ValidationError as PydanticValidationError


def success_envelope(
    data: Any,
    *,
    filters: Optional[Dict[str, Any]] = None,
    count: Optional[int] = None,
    **extras: Any
) -> Dict[str, Any]:
    """
    Build the standard success envelope.

    count defaults to len(data) for list payloads.
    """
    response: Dict[str, Any] = {"success": True, "data": data}
    if count is None and isinstance(data, list):
        count = len(data)
    if count is not None:
        response["count"] = count
    if filters is not None:
        response["filters"] = filters
    response.update(extras)
    return response


def pydantic_error_response(error: PydanticValidationError):
    """
    Convert a pydantic ValidationError into the validation_error shape.

    Only the first error is reported; `field` is the alias the client sent.
    """
    first = error.errors()[0]
    field = '.'.join(str(part) for part in first.get('loc', ())) or None
    body = {
        "success": False,
        "error": first.get('msg', 'Invalid request body'),
        "type": "validation_error",
    }
    if field:
        body["field"] = field
    if 'input' in first and not isinstance(first['input'], dict):
        body["received_value"] = str(first["input"])
    return body, 400
