"""JSON envelope shared by every API endpoint.

``{"success": bool, "message"?: str, "data": ..., "pagination"?: {...}}``
"""
from __future__ import annotations

import math
from typing import Any, Optional

from flask import jsonify, request

from ..core.constants import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from ..core.exceptions import ValidationError


def ok(data: Any = None, *, message: Optional[str] = None, status: int = 200, pagination: Optional[dict] = None):
    body: dict[str, Any] = {"success": True}
    if message:
        body["message"] = message
    body["data"] = data
    if pagination is not None:
        body["pagination"] = pagination
    return jsonify(body), status


def fail(message: str, *, status: int, errors: Optional[list] = None):
    body: dict[str, Any] = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    return jsonify(body), status


def pagination(*, page: int, limit: int, total: int) -> dict:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": math.ceil(total / limit) if limit else 0,
    }


def page_args() -> tuple[int, int]:
    """Read ?page&limit from the current request."""
    try:
        page = int(request.args.get("page", 1))
        limit = int(request.args.get("limit", DEFAULT_PAGE_LIMIT))
    except ValueError:
        raise ValidationError("Page and limit must be integers")
    if page < 1:
        raise ValidationError("Page must be a positive integer")
    if limit < 1 or limit > MAX_PAGE_LIMIT:
        raise ValidationError(f"Limit must be between 1 and {MAX_PAGE_LIMIT}")
    return page, limit


def json_body() -> dict:
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body
