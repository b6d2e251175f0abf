"""
Shared search, sort and paging for list queries.

Every list endpoint goes through ``paginate``: an optional case-insensitive
substring filter over a fixed set of columns, an explicit sort column from a
whitelist with ``id`` always appended as tie-breaker, and offset paging.
"""

from typing import Any, Dict, List, Sequence, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Query

from vetclinic.core.exceptions import ValidationError
from vetclinic.domain.entities import PageRequest

SORT_DIRECTIONS = ("asc", "desc")


def escape_like(text: str) -> str:
    """Escape LIKE wildcards so user input matches literally."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def validate_page_request(
    page_request: PageRequest, sortable: Dict[str, Any]
) -> None:
    """Raise ValidationError for out-of-range paging or an unknown sort field."""
    errors: Dict[str, str] = {}
    if page_request.page < 0:
        errors["page"] = "Page index must be 0 or greater"
    if page_request.size < 1:
        errors["size"] = "Page size must be at least 1"
    if page_request.sort not in sortable:
        errors["sort"] = (
            f"Unknown sort field '{page_request.sort}'. "
            f"Allowed: {', '.join(sorted(sortable))}"
        )
    if (page_request.direction or "asc").lower() not in SORT_DIRECTIONS:
        errors["direction"] = "Sort direction must be 'asc' or 'desc'"
    if errors:
        raise ValidationError(errors)


def apply_search(query: Query, page_request: PageRequest, columns: Sequence) -> Query:
    text = page_request.search_text
    if text is None:
        return query
    pattern = f"%{escape_like(text)}%"
    return query.filter(or_(*[column.ilike(pattern, escape="\\") for column in columns]))


def paginate(
    query: Query,
    page_request: PageRequest,
    search_columns: Sequence,
    sortable: Dict[str, Any],
    id_column: Any,
) -> Tuple[List[Any], int]:
    """Apply search, ordering and paging to ``query``.

    Returns:
        (rows of the requested page, total rows matching the filter)
    """
    validate_page_request(page_request, sortable)
    query = apply_search(query, page_request, search_columns)

    total = query.order_by(None).count()

    descending = (page_request.direction or "asc").lower() == "desc"
    sort_column = sortable[page_request.sort]
    ordering = [sort_column.desc() if descending else sort_column.asc()]
    if page_request.sort != "id":
        ordering.append(id_column.asc())

    rows = (
        query.order_by(*ordering)
        .offset(page_request.offset)
        .limit(page_request.size)
        .all()
    )
    return rows, total
