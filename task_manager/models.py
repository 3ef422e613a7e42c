"""
Database models for the Task Manager application.

Defines the SQLAlchemy ORM models for users, their tasks and task tags,
along with the enumerations used for roles, task status and priority.
Every task belongs to exactly one user via ``user_id``; the API layer
filters every query by that column, which is the only authorisation
mechanism in the system.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from sqlalchemy.ext.associationproxy import association_proxy
from sqlalchemy.orm import validates
from werkzeug.security import check_password_hash, generate_password_hash

from . import db


class UserRole(str, Enum):
    """Roles carried in session tokens."""

    USER = "user"
    ADMIN = "admin"


class TaskStatus(str, Enum):
    """
    Enumeration of task lifecycle statuses.

    Inherits from ``str`` so members compare equal to the raw strings
    stored in the database and serialise directly to JSON.
    """

    TODO = "todo"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TaskPriority(str, Enum):
    """Enumeration of task priority levels, lowest first."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _to_utc_iso(value: datetime | None) -> str | None:
    """
    Convert a datetime to a UTC ISO-8601 string.

    SQLite does not store timezone information, so values read back from
    the database may be naive even though they were written in UTC.
    Naive values are assumed UTC; aware values are converted.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    else:
        value = value.astimezone(timezone.utc)
    return value.isoformat()


class User(db.Model):
    """
    Registered account.

    Passwords are never stored in plain text; only a salted one-way hash
    is persisted, and ``to_dict`` leaves it out so the output can be
    returned directly from API handlers.

    Attributes:
        id: Auto-incrementing primary key.
        name: Display name.
        email: Unique, lower-cased address used to log in.
        password_hash: Werkzeug hash string (method and cost included).
        role: One of ``UserRole``; always ``user`` at registration.
        created_at: Account creation time (UTC).
        updated_at: Last modification time (UTC).
    """

    __tablename__ = "users"

    id: int = db.Column(db.Integer, primary_key=True)
    name: str = db.Column(db.String(50), nullable=False)
    # Indexed because every login and registration looks up by email
    email: str = db.Column(db.String(254), unique=True, nullable=False, index=True)
    password_hash: str = db.Column(db.String(256), nullable=False)
    role: str = db.Column(db.String(20), nullable=False, default=UserRole.USER.value)
    created_at: datetime = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )
    updated_at: datetime = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    def set_password(self, password: str, method: str = "scrypt") -> None:
        """
        Hash and store a plain-text password.

        Args:
            password: The plain-text password.
            method: Werkzeug hash method string, including any cost
                parameters (for example ``"pbkdf2:sha256:600000"``).
        """
        self.password_hash = generate_password_hash(password, method=method)

    def check_password(self, password: str) -> bool:
        """Return ``True`` if *password* matches the stored hash."""
        return check_password_hash(self.password_hash, password)

    def to_dict(self) -> dict[str, Any]:
        """Return the public profile; ``password_hash`` is never included."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "created_at": _to_utc_iso(self.created_at),
        }

    def __repr__(self) -> str:
        return f"<User {self.id}: {self.email}>"


class TaskTag(db.Model):
    """A single free-text tag attached to a task."""

    __tablename__ = "task_tags"

    id: int = db.Column(db.Integer, primary_key=True)
    task_id: int = db.Column(
        db.Integer,
        db.ForeignKey("tasks.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: str = db.Column(db.String(50), nullable=False)

    def __repr__(self) -> str:
        return f"<TaskTag {self.task_id}: {self.name}>"


class Task(db.Model):
    """
    Task owned by a single user.

    ``completed_at`` is maintained by the ``status`` validator: it is
    stamped when the status moves into ``completed`` and cleared when it
    moves anywhere else.

    Attributes:
        id: Auto-incrementing primary key.
        user_id: Owning user.  Immutable after creation.
        title: Short summary (3-100 characters).
        description: Optional detail text (up to 1000 characters).
        status: Lifecycle status (see ``TaskStatus``).
        priority: Importance level (see ``TaskPriority``).
        due_date: Optional timezone-aware deadline.
        tags: Up to ten free-text labels, in insertion order.
        completed_at: When the task was last moved into ``completed``.
        created_at: Creation time (UTC).
        updated_at: Last modification time (UTC).
    """

    __tablename__ = "tasks"

    id: int = db.Column(db.Integer, primary_key=True)
    # Every query in the API layer filters by this value, sourced from the
    # verified token, so users never reach each other's rows.
    user_id: int = db.Column(
        db.Integer,
        db.ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    title: str = db.Column(db.String(100), nullable=False)
    description: str = db.Column(db.Text, nullable=False, default="")
    status: str = db.Column(
        db.String(20),
        nullable=False,
        default=TaskStatus.TODO.value,
        index=True,
    )
    priority: str = db.Column(
        db.String(20),
        nullable=False,
        default=TaskPriority.MEDIUM.value,
        index=True,
    )
    due_date: datetime | None = db.Column(db.DateTime(timezone=True), nullable=True)
    completed_at: datetime | None = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at: datetime = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )
    updated_at: datetime = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    tag_rows = db.relationship(
        TaskTag,
        cascade="all, delete-orphan",
        order_by=TaskTag.id,
        lazy="selectin",
    )
    tags = association_proxy("tag_rows", "name", creator=lambda name: TaskTag(name=name))

    @validates("status")
    def _track_completion(self, _key: str, value: str) -> str:
        status = TaskStatus(value).value
        if status == TaskStatus.COMPLETED.value:
            if self.completed_at is None:
                self.completed_at = _utcnow()
        else:
            self.completed_at = None
        return status

    def to_dict(self) -> dict[str, Any]:
        """
        Serialise the task to a JSON-safe dictionary.

        Returns:
            All task fields with datetimes as UTC ISO-8601 strings.
        """
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "priority": self.priority,
            "due_date": _to_utc_iso(self.due_date),
            "tags": list(self.tags),
            "completed_at": _to_utc_iso(self.completed_at),
            "created_at": _to_utc_iso(self.created_at),
            "updated_at": _to_utc_iso(self.updated_at),
        }

    def __repr__(self) -> str:
        return f"<Task {self.id}: {self.title}>"
