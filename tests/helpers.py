"""Test helper functions shared across the test suites."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

TEST_ISSUER = "task-manager-app"


def _generate_rsa_key_pair() -> tuple[str, str]:
    """Generate an in-memory RSA private/public key pair as PEM strings."""
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("utf-8")
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("utf-8")
    return private_pem, public_pem


# Stable for one Python process: generated once on import, reused everywhere in tests.
TEST_PRIVATE_KEY, TEST_PUBLIC_KEY = _generate_rsa_key_pair()


def generate_throwaway_key_pair() -> tuple[str, str]:
    """Generate a fresh RSA key pair for negative-path tests."""
    return _generate_rsa_key_pair()


def token_claims(
    *,
    user_id: int = 1,
    email: str = "user_one@example.com",
    role: str = "user",
    expires_in: timedelta = timedelta(hours=1),
    issuer: str = TEST_ISSUER,
) -> dict[str, Any]:
    """Build a complete claim set; a negative ``expires_in`` yields an expired token."""
    now = datetime.now(timezone.utc)
    return {
        "user_id": user_id,
        "email": email,
        "role": role,
        "iat": int(now.timestamp()),
        "exp": int((now + expires_in).timestamp()),
        "iss": issuer,
    }


def encode_token(
    claims: dict[str, Any],
    private_key: str = TEST_PRIVATE_KEY,
    algorithm: str = "RS256",
) -> str:
    """Sign an arbitrary claim set."""
    return jwt.encode(claims, private_key, algorithm=algorithm)


def auth_headers(token: str) -> dict[str, str]:
    """Build common JSON API headers with bearer token auth."""
    return {
        "Authorization": f"Bearer {token}",
        "Content-Type": "application/json",
        "Accept": "application/json",
    }
