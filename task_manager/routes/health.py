"""Public health-check endpoint."""

from __future__ import annotations

import os

from flask import Blueprint, Response

from ..responses import success_response

health_bp = Blueprint("health", __name__)


@health_bp.route("/health", methods=["GET"])
def health_check() -> tuple[Response, int]:
    """
    Return service health status.

    Public (no authentication) and intended for load-balancer and
    orchestrator liveness probes.
    """
    return success_response(
        {
            "status": "healthy",
            "service": "task-manager",
            "environment": os.getenv("ENVIRONMENT", "unknown"),
        }
    )
