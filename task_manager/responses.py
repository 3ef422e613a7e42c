"""
JSON response envelope helpers.

Every endpoint answers with the same envelope::

    {"success": bool, "data"?: ..., "error"?: {"message": str, "errors"?: [...]},
     "metadata"?: {...}}
"""

from __future__ import annotations

from typing import Any

from flask import Response, jsonify


def success_response(
    data: Any,
    status_code: int = 200,
    metadata: dict[str, Any] | None = None,
) -> tuple[Response, int]:
    """Build a successful envelope, attaching ``metadata`` only when given."""
    body: dict[str, Any] = {"success": True, "data": data}
    if metadata is not None:
        body["metadata"] = metadata
    return jsonify(body), status_code


def error_response(
    message: str,
    status_code: int = 500,
    errors: list[dict[str, str]] | None = None,
) -> tuple[Response, int]:
    """Build a failure envelope with an optional list of per-field errors."""
    error: dict[str, Any] = {"message": message}
    if errors:
        error["errors"] = errors
    return jsonify({"success": False, "error": error}), status_code
