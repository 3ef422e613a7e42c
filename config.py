"""
Application configuration module.

Defines configuration classes for the development, testing and production
environments.  Every value can be overridden from an environment variable
so the same build can be promoted between environments unchanged.

JWT signing keys are resolved separately by :func:`load_jwt_keys` because
they are secrets that must never have a usable default.
"""

from __future__ import annotations

import os
from pathlib import Path

# Base directory of the project
BASE_DIR = Path(__file__).resolve().parent


def _env_bool(name: str, default: bool) -> bool:
    """Read a boolean flag from the environment ("1", "true", "yes", "on")."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _load_key(raw_env_var: str, path_env_var: str) -> str:
    """
    Load a PEM key from a raw environment variable or a file-path variable.

    The raw PEM variable takes precedence over the path variable so
    orchestrators can inject secrets directly without mounting files.
    """
    raw_key = os.environ.get(raw_env_var, "").strip()
    if raw_key:
        return raw_key

    key_path = os.environ.get(path_env_var, "").strip()
    if key_path:
        try:
            return Path(key_path).read_text(encoding="utf-8")
        except OSError as exc:
            raise RuntimeError(
                f"Unable to read JWT key file at '{key_path}' from {path_env_var}."
            ) from exc

    raise RuntimeError(
        f"Missing JWT key configuration: set {raw_env_var} or {path_env_var}."
    )


def _has_key_source(raw_env_var: str, path_env_var: str) -> bool:
    """Return True when at least one key source variable is configured."""
    return bool(
        os.environ.get(raw_env_var, "").strip()
        or os.environ.get(path_env_var, "").strip()
    )


def load_jwt_keys(*, testing: bool) -> tuple[str, str]:
    """
    Resolve the JWT private/public key pair for the selected environment.

    In testing mode the ``TEST_*`` variables win when configured; otherwise
    the standard ``JWT_*`` variables are used.  When neither is set, the
    development key pair written by ``keys/generate.py`` is picked up if
    it exists.

    Returns:
        A ``(private_key_pem, public_key_pem)`` tuple.
    """
    if testing and (
        _has_key_source("TEST_JWT_PRIVATE_KEY", "TEST_JWT_PRIVATE_KEY_PATH")
        or _has_key_source("TEST_JWT_PUBLIC_KEY", "TEST_JWT_PUBLIC_KEY_PATH")
    ):
        return (
            _load_key("TEST_JWT_PRIVATE_KEY", "TEST_JWT_PRIVATE_KEY_PATH"),
            _load_key("TEST_JWT_PUBLIC_KEY", "TEST_JWT_PUBLIC_KEY_PATH"),
        )

    dev_private = BASE_DIR / "keys" / "dev.private.pem"
    dev_public = BASE_DIR / "keys" / "dev.public.pem"
    if (
        not _has_key_source("JWT_PRIVATE_KEY", "JWT_PRIVATE_KEY_PATH")
        and dev_private.exists()
        and dev_public.exists()
    ):
        return (
            dev_private.read_text(encoding="utf-8"),
            dev_public.read_text(encoding="utf-8"),
        )

    return (
        _load_key("JWT_PRIVATE_KEY", "JWT_PRIVATE_KEY_PATH"),
        _load_key("JWT_PUBLIC_KEY", "JWT_PUBLIC_KEY_PATH"),
    )


class Config:
    """Base configuration with default settings."""

    SECRET_KEY: str = os.environ.get("SECRET_KEY", "dev-secret-key-change-in-production")
    SQLALCHEMY_TRACK_MODIFICATIONS: bool = False

    # Default database location
    SQLALCHEMY_DATABASE_URI: str = os.environ.get(
        "DATABASE_URL",
        f"sqlite:///{BASE_DIR / 'instance' / 'tasks.db'}",
    )

    # Tokens are valid for a fixed window and cannot be refreshed
    JWT_EXPIRY_DAYS: int = int(os.environ.get("JWT_EXPIRY_DAYS", "7"))
    JWT_ISSUER: str = os.environ.get("JWT_ISSUER", "task-manager-app")
    JWT_CLOCK_SKEW_SECONDS: int = int(os.environ.get("JWT_CLOCK_SKEW_SECONDS", "0"))

    # Werkzeug hash method string; the cost parameters are part of it,
    # e.g. "scrypt:32768:8:1" or "pbkdf2:sha256:600000".
    PASSWORD_HASH_METHOD: str = os.environ.get("PASSWORD_HASH_METHOD", "scrypt")

    RATE_LIMIT_ENABLED: bool = _env_bool("RATE_LIMIT_ENABLED", True)
    LOGIN_RATE_LIMIT: int = int(os.environ.get("LOGIN_RATE_LIMIT", "10"))
    LOGIN_RATE_WINDOW_MS: int = int(os.environ.get("LOGIN_RATE_WINDOW_MS", str(15 * 60 * 1000)))
    REGISTER_RATE_LIMIT: int = int(os.environ.get("REGISTER_RATE_LIMIT", "5"))
    REGISTER_RATE_WINDOW_MS: int = int(
        os.environ.get("REGISTER_RATE_WINDOW_MS", str(60 * 60 * 1000))
    )

    # Unexpected 500s carry the exception text only when this is enabled
    EXPOSE_ERROR_DETAILS: bool = _env_bool("EXPOSE_ERROR_DETAILS", False)


class DevelopmentConfig(Config):
    """Development environment configuration."""

    DEBUG: bool = True
    TESTING: bool = False
    EXPOSE_ERROR_DETAILS: bool = _env_bool("EXPOSE_ERROR_DETAILS", True)


class TestingConfig(Config):
    """Testing environment configuration."""

    DEBUG: bool = True
    TESTING: bool = True

    # Separate database file so test runs never touch development data.
    # check_same_thread=False lets the test client share the connection.
    SQLALCHEMY_DATABASE_URI: str = os.environ.get(
        "TEST_DATABASE_URL",
        f"sqlite:///{BASE_DIR / 'instance' / 'test_tasks.db'}?check_same_thread=False",
    )
    SQLALCHEMY_ENGINE_OPTIONS: dict = {"pool_pre_ping": True}

    # Cheap hashing keeps the suite fast; production cost is set above
    PASSWORD_HASH_METHOD: str = os.environ.get("TEST_PASSWORD_HASH_METHOD", "pbkdf2:sha256:1000")
    EXPOSE_ERROR_DETAILS: bool = True


class ProductionConfig(Config):
    """Production environment configuration."""

    DEBUG: bool = False
    TESTING: bool = False


# Configuration mapping for easy access
config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}


def get_config(env: str | None = None) -> type[Config]:
    """
    Get the configuration class for the specified environment.

    Args:
        env: Environment name (development, testing, production).
             If None, uses FLASK_ENV environment variable.

    Returns:
        Configuration class for the specified environment.
    """
    if env is None:
        env = os.environ.get("FLASK_ENV", "development")
    return config.get(env, config["default"])
