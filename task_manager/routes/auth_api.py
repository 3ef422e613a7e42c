"""
Authentication API endpoints.

Endpoints:
    POST /api/auth/register  -- Create an account and receive a token.
    POST /api/auth/login     -- Exchange credentials for a token.
    GET  /api/auth/me        -- Profile of the token holder.

Both credential endpoints are rate-limited per client address.  Login
failures are deliberately uninformative: an unknown email and a wrong
password produce byte-identical 401 responses.
"""

from __future__ import annotations

import logging

from flask import Blueprint, Response, current_app, g, request
from sqlalchemy import select

from .. import db
from ..auth import require_auth
from ..errors import AuthenticationError, ConflictError, NotFoundError
from ..models import User, UserRole
from ..rate_limit import rate_limit
from ..responses import success_response
from ..tokens import issue_token
from ..validation import require_json_object, validate_login, validate_registration

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth_api", __name__)

INVALID_CREDENTIALS = "Invalid email or password"


def _token_for(user: User) -> str:
    """Issue a session token for *user* using the app's key and lifetime."""
    return issue_token(
        user_id=user.id,
        email=user.email,
        role=user.role,
        private_key=current_app.config["JWT_PRIVATE_KEY"],
        expiry_days=current_app.config["JWT_EXPIRY_DAYS"],
        issuer=current_app.config["JWT_ISSUER"],
    )


@auth_bp.route("/register", methods=["POST"])
@rate_limit(
    "register",
    "REGISTER_RATE_LIMIT",
    "REGISTER_RATE_WINDOW_MS",
    "Too many registration attempts. Please try again later.",
)
def register() -> tuple[Response, int]:
    """
    Register a new account and log it in.

    Returns:
        201 with ``{user, token}``.
        400 on validation failure, 409 if the email is taken, 429 when
        rate-limited.
    """
    data = validate_registration(require_json_object(request.get_json(silent=True)))

    if db.session.scalar(select(User).where(User.email == data["email"])):
        raise ConflictError("User with this email already exists")

    user = User(name=data["name"], email=data["email"], role=UserRole.USER.value)
    user.set_password(data["password"], method=current_app.config["PASSWORD_HASH_METHOD"])
    db.session.add(user)
    db.session.commit()

    logger.info("Registered user_id=%s", user.id)
    return success_response({"user": user.to_dict(), "token": _token_for(user)}, 201)


@auth_bp.route("/login", methods=["POST"])
@rate_limit(
    "login",
    "LOGIN_RATE_LIMIT",
    "LOGIN_RATE_WINDOW_MS",
    "Too many login attempts. Please try again later.",
)
def login() -> tuple[Response, int]:
    """
    Authenticate with email and password.

    Returns:
        200 with ``{user, token}``.
        400 if the body is malformed, 401 for bad credentials, 429 when
        rate-limited.
    """
    data = validate_login(require_json_object(request.get_json(silent=True)))
    user = db.session.scalar(select(User).where(User.email == data["email"]))

    if user is None or not user.check_password(data["password"]):
        logger.info("Failed login attempt")
        raise AuthenticationError(INVALID_CREDENTIALS)

    logger.info("User logged in: user_id=%s", user.id)
    return success_response({"user": user.to_dict(), "token": _token_for(user)})


@auth_bp.route("/me", methods=["GET"])
@require_auth
def me() -> tuple[Response, int]:
    """Return the profile of the authenticated user."""
    user = db.session.get(User, g.user_id)
    if user is None:
        raise NotFoundError("User not found")
    return success_response(user.to_dict())
