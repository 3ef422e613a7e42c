"""
JWT session tokens.

Issues and verifies the bearer tokens handed out at registration and
login.  Tokens are signed with RS256: only this server holds the private
key, and verification needs nothing but the public key.

Token claims:
    - ``user_id`` -- integer primary key of the user.
    - ``email``   -- the user's normalised email address.
    - ``role``    -- ``user`` or ``admin``.
    - ``iat`` / ``exp`` -- issued-at and expiry, epoch seconds (UTC).
    - ``iss``     -- issuer tag; tokens from any other issuer are rejected.

There is no refresh mechanism: a token is valid until ``exp`` and then
the holder has to log in again.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from .models import UserRole

logger = logging.getLogger(__name__)

ALGORITHM = "RS256"
DEFAULT_ISSUER = "task-manager-app"
DEFAULT_EXPIRY_DAYS = 7
REQUIRED_TOKEN_CLAIMS = ["user_id", "email", "role", "iat", "exp", "iss"]

_VALID_ROLES = {role.value for role in UserRole}


def issue_token(
    user_id: int,
    email: str,
    role: str,
    private_key: str,
    expiry_days: int = DEFAULT_EXPIRY_DAYS,
    issuer: str = DEFAULT_ISSUER,
) -> str:
    """
    Create an RS256-signed session token for a user.

    Args:
        user_id: Primary key of the user.  Must be positive.
        email: The user's email address.  Must be non-blank.
        role: One of the ``UserRole`` values.
        private_key: RSA private key in PEM format.
        expiry_days: Days from now until the token expires.
        issuer: Value for the ``iss`` claim.

    Returns:
        A compact JWS string suitable for an ``Authorization: Bearer``
        header.

    Raises:
        ValueError: If any identity value is nonsensical.
    """
    if int(user_id) <= 0:
        raise ValueError("user_id must be a positive integer")
    if not isinstance(email, str) or not email.strip():
        raise ValueError("email must be a non-empty string")
    if role not in _VALID_ROLES:
        raise ValueError(f"role must be one of: {sorted(_VALID_ROLES)}")

    now = datetime.now(timezone.utc)
    expires_at = now + timedelta(days=int(expiry_days))

    payload: dict[str, Any] = {
        "user_id": int(user_id),
        "email": email,
        "role": str(role),
        "iat": int(now.timestamp()),
        "exp": int(expires_at.timestamp()),
        "iss": issuer,
    }
    return jwt.encode(payload, private_key, algorithm=ALGORITHM)


def verify_token(
    token: str,
    public_key: str,
    issuer: str = DEFAULT_ISSUER,
    leeway: int = 0,
) -> dict[str, Any] | None:
    """
    Decode and validate a session token.

    Checks the signature (RS256 only), expiry, issuer, the presence of
    every required claim and the shape of the identity claims.

    Returns:
        The decoded claims, or ``None`` if verification fails for any
        reason.  Callers must treat every ``None`` the same way.
    """
    try:
        claims = jwt.decode(
            token,
            public_key,
            algorithms=[ALGORITHM],
            issuer=issuer,
            options={"require": REQUIRED_TOKEN_CLAIMS},
            leeway=leeway,
        )
    except jwt.InvalidTokenError as exc:
        logger.debug("Token rejected: %s", exc)
        return None

    user_id = claims.get("user_id")
    email = claims.get("email")
    # bool is an int subclass; a literal true is not a user id
    if isinstance(user_id, bool) or not isinstance(user_id, int) or user_id <= 0:
        return None
    if not isinstance(email, str) or not email.strip():
        return None
    if claims.get("role") not in _VALID_ROLES:
        return None
    return claims
