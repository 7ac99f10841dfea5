"""Pagination helpers for list endpoints."""

from __future__ import annotations

from flask import current_app, request
from werkzeug.exceptions import BadRequest


def page_args(default_limit: int | None = None) -> tuple[int, int]:
    """Return ``(page, limit)`` from the query string, clamped to config bounds."""

    default_limit = default_limit or current_app.config.get("DEFAULT_PAGE_SIZE", 10)
    max_limit = current_app.config.get("MAX_PAGE_SIZE", 100)
    try:
        page = int(request.args.get("page", 1))
        limit = int(request.args.get("limit", default_limit))
    except (TypeError, ValueError):
        raise BadRequest("page and limit must be integers.") from None
    if page < 1 or limit < 1:
        raise BadRequest("page and limit must be positive.")
    return page, min(limit, max_limit)


def page_meta(pagination) -> dict:
    """Describe a Flask-SQLAlchemy ``Pagination`` object."""

    return {
        "totalDocs": pagination.total,
        "limit": pagination.per_page,
        "page": pagination.page,
        "totalPages": pagination.pages,
        "hasNextPage": pagination.has_next,
        "hasPrevPage": pagination.has_prev,
        "nextPage": pagination.next_num,
        "prevPage": pagination.prev_num,
    }


def parse_bool_arg(name: str) -> bool | None:
    value = request.args.get(name)
    if value is None:
        return None
    lowered = value.strip().lower()
    if lowered in {"1", "true", "yes", "y"}:
        return True
    if lowered in {"0", "false", "no", "n"}:
        return False
    raise BadRequest(f"{name} must be boolean.")
