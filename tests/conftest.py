"""
Shared pytest fixtures for the Task Manager test suite.

Provides the Flask application, test client, database lifecycle, user and
task factories, and ready-made auth headers for two distinct users so
tests can check owner scoping.

Key Concepts Demonstrated:
- Session-scoped app, function-scoped client and database for isolation
- Factory fixtures (user_factory, task_factory) backed by Faker
- RSA test keys generated in-process and injected through the environment
"""

from __future__ import annotations

import os
from collections.abc import Callable
from datetime import datetime
from typing import Any

import pytest
from faker import Faker

from tests.helpers import TEST_PRIVATE_KEY, TEST_PUBLIC_KEY, auth_headers

# Set testing environment before the app reads its configuration
os.environ["FLASK_ENV"] = "testing"
os.environ["TEST_JWT_PRIVATE_KEY"] = TEST_PRIVATE_KEY
os.environ["TEST_JWT_PUBLIC_KEY"] = TEST_PUBLIC_KEY

from task_manager import create_app, db
from task_manager.models import Task, TaskPriority, TaskStatus, User, UserRole
from task_manager.tokens import issue_token

fake = Faker()

DEFAULT_PASSWORD = "StrongPass123"


# -----------------------------------------------------------------------------
# Application Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture(scope="session")
def app():
    """
    Provide the Flask application for the whole test session.

    Built once with the 'testing' configuration to avoid repeated
    start-up cost.
    """
    application = create_app("testing")
    yield application


@pytest.fixture(scope="function")
def client(app):
    """Provide a fresh test client per test so no request state leaks."""
    with app.test_client() as test_client:
        yield test_client


@pytest.fixture(scope="function")
def db_session(app):
    """
    Provide a clean database and rate limiter for each test.

    Tables are created before the test and dropped afterwards; the rate
    limiter is cleared so earlier tests never exhaust a window.
    """
    app.extensions["rate_limiter"].reset()
    with app.app_context():
        db.create_all()
        yield db
        db.session.rollback()
        db.drop_all()


# -----------------------------------------------------------------------------
# Data Factories
# -----------------------------------------------------------------------------


@pytest.fixture
def user_factory(app, db_session) -> Callable[..., User]:
    """
    Factory that persists ``User`` rows.

    Defaults come from Faker; pass ``email``/``password``/``role`` to pin
    specific values.
    """

    def _create_user(
        *,
        name: str | None = None,
        email: str | None = None,
        password: str = DEFAULT_PASSWORD,
        role: str = UserRole.USER.value,
    ) -> User:
        user = User(
            name=name or fake.name()[:50],
            email=(email or fake.unique.email()).lower(),
            role=role,
        )
        user.set_password(password, method=app.config["PASSWORD_HASH_METHOD"])
        db_session.session.add(user)
        db_session.session.commit()
        return user

    return _create_user


@pytest.fixture
def task_factory(db_session) -> Callable[..., Task]:
    """Factory that persists ``Task`` rows for a given owner."""

    def _create_task(
        *,
        user_id: int,
        title: str | None = None,
        description: str | None = None,
        status: str = TaskStatus.TODO.value,
        priority: str = TaskPriority.MEDIUM.value,
        due_date: datetime | None = None,
        tags: list[str] | None = None,
    ) -> Task:
        task = Task(
            user_id=user_id,
            title=title or fake.sentence(nb_words=4)[:100],
            description=description if description is not None else fake.paragraph()[:1000],
            status=status,
            priority=priority,
            due_date=due_date,
            tags=tags or [],
        )
        db_session.session.add(task)
        db_session.session.commit()
        return task

    return _create_task


# -----------------------------------------------------------------------------
# Identities
# -----------------------------------------------------------------------------


def _token_for(app, user: User) -> str:
    return issue_token(
        user_id=user.id,
        email=user.email,
        role=user.role,
        private_key=app.config["JWT_PRIVATE_KEY"],
        expiry_days=app.config["JWT_EXPIRY_DAYS"],
        issuer=app.config["JWT_ISSUER"],
    )


@pytest.fixture
def user_one(user_factory) -> User:
    return user_factory(name="User One", email="user_one@example.com")


@pytest.fixture
def user_two(user_factory) -> User:
    return user_factory(name="User Two", email="user_two@example.com")


@pytest.fixture
def api_headers(app, user_one) -> dict[str, str]:
    """Authorization + JSON headers for ``user_one``."""
    return auth_headers(_token_for(app, user_one))


@pytest.fixture
def second_user_headers(app, user_two) -> dict[str, str]:
    """Authorization + JSON headers for ``user_two``, used in isolation tests."""
    return auth_headers(_token_for(app, user_two))


@pytest.fixture
def multiple_tasks(task_factory, user_one) -> list[Task]:
    """
    Four tasks for ``user_one`` covering different statuses, priorities
    and tags, so filter and search tests need no extra setup.
    """
    return [
        task_factory(
            user_id=user_one.id,
            title="Write quarterly report",
            description="Numbers for Q3",
            status=TaskStatus.TODO.value,
            priority=TaskPriority.HIGH.value,
            tags=["work"],
        ),
        task_factory(
            user_id=user_one.id,
            title="Buy groceries",
            description="Milk, eggs, bread",
            status=TaskStatus.IN_PROGRESS.value,
            priority=TaskPriority.LOW.value,
            tags=["home", "errand"],
        ),
        task_factory(
            user_id=user_one.id,
            title="Fix login bug",
            description="Users see a blank page",
            status=TaskStatus.COMPLETED.value,
            priority=TaskPriority.URGENT.value,
            tags=["work", "Bugfix"],
        ),
        task_factory(
            user_id=user_one.id,
            title="Plan holiday",
            description="",
            status=TaskStatus.TODO.value,
            priority=TaskPriority.MEDIUM.value,
        ),
    ]


@pytest.fixture
def valid_task_data() -> dict[str, Any]:
    """A complete, valid task payload."""
    return {
        "title": "Test Task",
        "description": "This is a test task description",
        "status": TaskStatus.IN_PROGRESS.value,
        "priority": TaskPriority.HIGH.value,
        "tags": ["alpha", "beta"],
    }
