"""
Common API utilities for consistent response formatting across all controllers.
"""

from typing import Any, Dict, Optional

from flask import jsonify, request

from vetclinic.core.exceptions import ValidationError
from vetclinic.core.validation import BaseValidator, ValidationResult
from vetclinic.domain.entities import PageRequest

DEFAULT_PAGE_SIZE = 10


def api_response(
    success: bool, message: str, data: Optional[Any] = None, status_code: int = 200
) -> tuple:
    """
    Standardized API response format for all endpoints.

    Args:
        success: Whether the operation was successful
        message: Human-readable message about the operation
        data: Optional data payload
        status_code: HTTP status code

    Returns:
        Tuple of (json_response, status_code)
    """
    response = {"success": success, "message": message}

    if data is not None:
        response["data"] = data

    return jsonify(response), status_code


def error_response(
    message: str,
    error: str,
    status_code: int,
    errors: Optional[Dict[str, str]] = None,
) -> tuple:
    """Error envelope: ``{"success": false, "message", "error"[, "errors"]}``."""
    body: Dict[str, Any] = {"success": False, "message": message, "error": error}
    if errors:
        body["errors"] = errors
    return jsonify(body), status_code


def get_json_body() -> Dict[str, Any]:
    """Return the request JSON object or raise ValidationError."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError({"body": "Request body must be a JSON object"})
    return data


def parse_page_request(max_page_size: int = 100) -> PageRequest:
    """Build a PageRequest from ``page``, ``size``, ``sort`` and ``search``.

    ``sort`` is ``field`` or ``field,desc``. Sizes above ``max_page_size``
    are capped; negative pages and sizes below 1 are rejected.
    """
    result = ValidationResult()
    args = request.args

    page = BaseValidator.validate_integer(args.get("page"), "page", result, min_value=0)
    size = BaseValidator.validate_integer(args.get("size"), "size", result, min_value=1)

    sort_field, direction = "id", "asc"
    raw_sort = (args.get("sort") or "").strip()
    if raw_sort:
        parts = [part.strip() for part in raw_sort.split(",")]
        sort_field = parts[0] or "id"
        if len(parts) > 1 and parts[1]:
            direction = parts[1].lower()
            if direction not in ("asc", "desc"):
                result.add_error("sort", "Sort direction must be 'asc' or 'desc'")

    if not result.is_valid:
        raise ValidationError(result.errors)

    return PageRequest(
        page=page if page is not None else 0,
        size=min(size if size is not None else DEFAULT_PAGE_SIZE, max_page_size),
        sort=sort_field,
        direction=direction,
        search=args.get("search"),
    )
