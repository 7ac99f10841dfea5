"""Utilities for validating incoming Flask requests."""

from __future__ import annotations

from typing import Any, Iterable

from flask import Request
from werkzeug.exceptions import BadRequest


def parse_json_request(
    req: Request,
    *,
    required_keys: Iterable[str] | None = None,
    allow_empty: bool = False,
) -> dict:
    """Return the parsed JSON body or raise a 400 error."""

    if not req.is_json:
        raise BadRequest("Request content type must be application/json.")

    data = req.get_json(silent=True)
    if data is None:
        raise BadRequest("Request JSON body is required.")

    if not isinstance(data, dict):
        raise BadRequest("Request JSON payload must be an object.")

    if not data and not allow_empty:
        raise BadRequest("Request JSON body must not be empty.")

    if required_keys:
        missing = [key for key in required_keys if data.get(key) in (None, "")]
        if missing:
            raise BadRequest(
                "Missing required fields: {}.".format(", ".join(sorted(missing)))
            )

    return data


def parse_optional_json(req: Request) -> dict:
    """Return the JSON body when one was sent, otherwise an empty dict."""

    if not req.content_length:
        return {}
    return parse_json_request(req, allow_empty=True)


def require_int(value: Any, name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise BadRequest(f"{name} must be an integer.") from None
