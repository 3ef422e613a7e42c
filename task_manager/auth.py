"""
Bearer-token guard for protected endpoints.

``require_auth`` wraps a view: it pulls the token out of the
``Authorization`` header, verifies it, and stores the caller's identity
on ``flask.g`` (``g.user_id``, ``g.email``, ``g.role``) before calling the
view.  A request without a valid token never reaches the wrapped view.
``require_role`` can be stacked underneath for role checks.
"""

from __future__ import annotations

from collections.abc import Callable
from functools import wraps

from flask import Response, current_app, g, request

from .errors import AuthenticationError, PermissionDeniedError
from .tokens import verify_token

BEARER_PREFIX = "Bearer "


def extract_bearer_token(auth_header: str | None) -> str | None:
    """
    Return the token from an ``Authorization: Bearer <token>`` header.

    Any other shape (missing header, other scheme, empty token) counts as
    no token at all.
    """
    if not auth_header or not auth_header.startswith(BEARER_PREFIX):
        return None
    token = auth_header[len(BEARER_PREFIX) :].strip()
    return token or None


def require_auth(view_func: Callable[..., tuple[Response, int] | Response]):
    """
    Decorator that enforces bearer-token authentication on a view.

    Raises:
        AuthenticationError: ``"Authentication required"`` when no token
            is presented, ``"Invalid or expired token"`` when it fails
            verification.
    """

    @wraps(view_func)
    def wrapper(*args, **kwargs):
        token = extract_bearer_token(request.headers.get("Authorization"))
        if token is None:
            raise AuthenticationError("Authentication required")

        claims = verify_token(
            token,
            current_app.config["JWT_PUBLIC_KEY"],
            issuer=current_app.config["JWT_ISSUER"],
            leeway=int(current_app.config.get("JWT_CLOCK_SKEW_SECONDS", 0)),
        )
        if claims is None:
            raise AuthenticationError("Invalid or expired token")

        g.user_id = claims["user_id"]
        g.email = claims["email"]
        g.role = claims["role"]
        return view_func(*args, **kwargs)

    return wrapper


def require_role(*allowed_roles: str):
    """Decorator, applied below ``require_auth``, that restricts a view to *allowed_roles*."""

    def decorator(view_func):
        @wraps(view_func)
        def wrapper(*args, **kwargs):
            if getattr(g, "role", None) not in allowed_roles:
                raise PermissionDeniedError()
            return view_func(*args, **kwargs)

        return wrapper

    return decorator
