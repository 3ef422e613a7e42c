"""
Flask application factory for the Task Manager API.

Builds the JSON API that serves registration, login and per-user task
management.  The factory pattern lets the WSGI entry point and the test
suite build independently configured application instances.

Blueprints:
  * **health_bp** -- public liveness probe at ``/api/health``.
  * **auth_bp** -- registration, login and profile under ``/api/auth``.
  * **tasks_bp** -- owner-scoped task CRUD under ``/api/tasks``.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from flask import Flask
from flask_sqlalchemy import SQLAlchemy

from config import get_config, load_jwt_keys

# Shared SQLAlchemy instance, bound to an app inside create_app()
db = SQLAlchemy()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def _ensure_sqlite_db_parent_exists(database_uri: str) -> None:
    """Create parent directories for file-based SQLite URIs when missing."""
    sqlite_prefix = "sqlite:///"
    if not database_uri.startswith(sqlite_prefix):
        return

    sqlite_path = database_uri[len(sqlite_prefix) :].split("?", 1)[0]
    if sqlite_path == ":memory:":
        return

    Path(sqlite_path).parent.mkdir(parents=True, exist_ok=True)


def create_app(config_name: str | None = None) -> Flask:
    """
    Create and configure the Task Manager application.

    Loads the configuration class, resolves the JWT key pair, initialises
    SQLAlchemy and the rate limiter, registers blueprints and error
    handlers, and creates any missing tables.

    Args:
        config_name: Configuration environment name (``"development"``,
            ``"testing"``, ``"production"``).  When ``None``, the value is
            read from ``FLASK_ENV``, defaulting to ``"development"``.

    Returns:
        A fully configured Flask application instance.
    """
    app = Flask(__name__, instance_relative_config=True)
    config_class = get_config(config_name)
    app.config.from_object(config_class)
    private_key, public_key = load_jwt_keys(testing=bool(app.config.get("TESTING")))
    app.config["JWT_PRIVATE_KEY"] = private_key
    app.config["JWT_PUBLIC_KEY"] = public_key

    logger.info("Creating task manager app with config: %s", config_class.__name__)

    os.makedirs(app.instance_path, exist_ok=True)
    _ensure_sqlite_db_parent_exists(app.config.get("SQLALCHEMY_DATABASE_URI", ""))

    db.init_app(app)

    from .errors import register_error_handlers
    from .rate_limit import RateLimiter

    # One limiter per application; state lives only in this process
    app.extensions["rate_limiter"] = RateLimiter()

    from .routes.auth_api import auth_bp
    from .routes.health import health_bp
    from .routes.tasks_api import tasks_bp

    app.register_blueprint(health_bp, url_prefix="/api")
    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(tasks_bp, url_prefix="/api/tasks")

    register_error_handlers(app)

    with app.app_context():
        db.create_all()
        logger.info("Database tables created")

    return app
