"""
Request payload validation and sanitisation.

Each ``validate_*`` function takes the decoded JSON body (or query
arguments), checks every field, and either returns a cleaned dictionary
containing only the fields the handler may use, or raises
``ValidationError`` listing every problem as ``{"field", "message"}``.
Fields that are not part of a payload's contract are dropped, so clients
can never set ``id``, ``user_id``, ``role`` or timestamps.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from .errors import ValidationError
from .models import TaskPriority, TaskStatus

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)")

NAME_MIN, NAME_MAX = 2, 50
PASSWORD_MIN = 8
TITLE_MIN, TITLE_MAX = 3, 100
DESCRIPTION_MAX = 1000
TAGS_MAX = 10
TAG_LENGTH_MAX = 50

SORT_FIELDS = ("created_at", "updated_at", "due_date", "priority", "title")
SORT_ORDERS = ("asc", "desc")
PAGE_SIZE_DEFAULT, PAGE_SIZE_MAX = 10, 100
OFFSET_MAX = 2**63 - 1

_STATUSES = [s.value for s in TaskStatus]
_PRIORITIES = [p.value for p in TaskPriority]

_ANGLE_BRACKETS = re.compile(r"[<>]")
_JS_PROTOCOL = re.compile(r"javascript:", re.IGNORECASE)
_EVENT_HANDLER = re.compile(r"on\w+\s*=", re.IGNORECASE)


def sanitize_input(value: str) -> str:
    """Strip angle brackets, ``javascript:`` and inline ``on*=`` handlers, then trim."""
    value = _ANGLE_BRACKETS.sub("", value)
    value = _JS_PROTOCOL.sub("", value)
    value = _EVENT_HANDLER.sub("", value)
    return value.strip()


def require_json_object(data: Any) -> dict[str, Any]:
    """Reject request bodies that are missing or not a JSON object."""
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


class _Errors:
    """Collects per-field messages; only the first message per field is kept."""

    def __init__(self) -> None:
        self.items: list[dict[str, str]] = []

    def add(self, field: str, message: str) -> None:
        if not any(item["field"] == field for item in self.items):
            self.items.append({"field": field, "message": message})

    def raise_if_any(self) -> None:
        if self.items:
            raise ValidationError("Validation failed", errors=self.items)


# ---------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------


def _clean_email(data: Mapping[str, Any], errors: _Errors) -> str | None:
    email = data.get("email")
    if not isinstance(email, str) or not email.strip():
        errors.add("email", "Email is required")
        return None
    email = email.strip().lower()
    if not EMAIL_PATTERN.match(email):
        errors.add("email", "Invalid email address")
        return None
    return email


def validate_registration(data: Mapping[str, Any]) -> dict[str, str]:
    """
    Validate a registration body.

    Returns:
        ``{"name", "email", "password"}`` with the name trimmed and
        sanitised and the email trimmed and lower-cased.
    """
    errors = _Errors()

    name = data.get("name")
    if not isinstance(name, str) or not name.strip():
        errors.add("name", "Name is required")
    else:
        # Length rules apply to what will actually be stored
        name = sanitize_input(name)
        if len(name) < NAME_MIN:
            errors.add("name", f"Name must be at least {NAME_MIN} characters")
        elif len(name) > NAME_MAX:
            errors.add("name", f"Name cannot exceed {NAME_MAX} characters")

    email = _clean_email(data, errors)

    password = data.get("password")
    if not isinstance(password, str) or not password:
        errors.add("password", "Password is required")
    elif len(password) < PASSWORD_MIN:
        errors.add("password", f"Password must be at least {PASSWORD_MIN} characters")
    elif not PASSWORD_PATTERN.match(password):
        errors.add(
            "password",
            "Password must contain at least one uppercase letter, "
            "one lowercase letter, and one number",
        )

    errors.raise_if_any()
    return {"name": name, "email": email, "password": password}


def validate_login(data: Mapping[str, Any]) -> dict[str, str]:
    """Validate a login body; only the shape is checked, never the password rules."""
    errors = _Errors()
    email = _clean_email(data, errors)
    password = data.get("password")
    if not isinstance(password, str) or not password:
        errors.add("password", "Password is required")
    errors.raise_if_any()
    return {"email": email, "password": password}


# ---------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes and convert aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _clean_due_date(value: Any, errors: _Errors) -> datetime | None:
    if not isinstance(value, str):
        errors.add("due_date", "Invalid due_date format. Use ISO 8601")
        return None
    try:
        parsed = ensure_utc(datetime.fromisoformat(value.strip().replace("Z", "+00:00")))
    except (ValueError, OverflowError):
        # OverflowError: converting to UTC leaves the datetime range
        errors.add("due_date", "Invalid due_date format. Use ISO 8601")
        return None
    # Whole UTC days are compared, so any time today is still acceptable
    if parsed.date() < datetime.now(timezone.utc).date():
        errors.add("due_date", "Due date cannot be in the past")
        return None
    return parsed


def _clean_tags(value: Any, errors: _Errors) -> list[str] | None:
    if not isinstance(value, list) or not all(isinstance(tag, str) for tag in value):
        errors.add("tags", "Tags must be a list of strings")
        return None
    if len(value) > TAGS_MAX:
        errors.add("tags", f"Cannot have more than {TAGS_MAX} tags")
        return None
    # Tags that sanitise down to nothing are dropped
    tags = [tag for tag in (sanitize_input(tag) for tag in value) if tag]
    if any(len(tag) > TAG_LENGTH_MAX for tag in tags):
        errors.add("tags", f"Tags cannot exceed {TAG_LENGTH_MAX} characters")
        return None
    return tags


def _validate_task_fields(data: Mapping[str, Any], *, partial: bool) -> dict[str, Any]:
    errors = _Errors()
    cleaned: dict[str, Any] = {}

    if "title" in data or not partial:
        title = data.get("title")
        if not isinstance(title, str) or not title.strip():
            errors.add("title", "Title is required")
        else:
            title = sanitize_input(title)
            if len(title) < TITLE_MIN:
                errors.add("title", f"Title must be at least {TITLE_MIN} characters")
            elif len(title) > TITLE_MAX:
                errors.add("title", f"Title cannot exceed {TITLE_MAX} characters")
            else:
                cleaned["title"] = title

    if "description" in data:
        description = data["description"]
        if description is None:
            cleaned["description"] = ""
        elif not isinstance(description, str):
            errors.add("description", "Description must be a string")
        elif len(description.strip()) > DESCRIPTION_MAX:
            errors.add("description", f"Description cannot exceed {DESCRIPTION_MAX} characters")
        else:
            cleaned["description"] = sanitize_input(description)
    elif not partial:
        cleaned["description"] = ""

    if "status" in data:
        if data["status"] not in _STATUSES:
            errors.add("status", f"Invalid status. Must be one of: {_STATUSES}")
        else:
            cleaned["status"] = data["status"]
    elif not partial:
        cleaned["status"] = TaskStatus.TODO.value

    if "priority" in data:
        if data["priority"] not in _PRIORITIES:
            errors.add("priority", f"Invalid priority. Must be one of: {_PRIORITIES}")
        else:
            cleaned["priority"] = data["priority"]
    elif not partial:
        cleaned["priority"] = TaskPriority.MEDIUM.value

    if "due_date" in data:
        if data["due_date"] is None:
            # Explicit null clears the due date on update; on create it is just absent
            cleaned["due_date"] = None
        else:
            due_date = _clean_due_date(data["due_date"], errors)
            if due_date is not None:
                cleaned["due_date"] = due_date

    if "tags" in data:
        tags = _clean_tags(data["tags"], errors)
        if tags is not None:
            cleaned["tags"] = tags
    elif not partial:
        cleaned["tags"] = []

    errors.raise_if_any()
    return cleaned


def validate_task_create(data: Mapping[str, Any]) -> dict[str, Any]:
    """Validate a new task; defaults are filled in for omitted optional fields."""
    return _validate_task_fields(data, partial=False)


def validate_task_update(data: Mapping[str, Any]) -> dict[str, Any]:
    """Validate a partial update; only the supplied fields are returned."""
    return _validate_task_fields(data, partial=True)


@dataclass(frozen=True)
class TaskQuery:
    """Validated listing parameters for ``GET /api/tasks``."""

    status: str | None = None
    priority: str | None = None
    search: str | None = None
    sort_by: str = "created_at"
    sort_order: str = "desc"
    page: int = 1
    limit: int = PAGE_SIZE_DEFAULT


def _parse_int(args: Mapping[str, str], name: str, default: int, errors: _Errors) -> int:
    raw = args.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        errors.add(name, f"{name} must be an integer")
        return default


def parse_task_query(args: Mapping[str, str]) -> TaskQuery:
    """
    Validate listing query-string arguments.

    Raises:
        ValidationError: For unknown enum values, a sort field outside
            the allow-list, or out-of-range paging values.
    """
    errors = _Errors()

    status = args.get("status") or None
    if status is not None and status not in _STATUSES:
        errors.add("status", f"Invalid status. Must be one of: {_STATUSES}")

    priority = args.get("priority") or None
    if priority is not None and priority not in _PRIORITIES:
        errors.add("priority", f"Invalid priority. Must be one of: {_PRIORITIES}")

    search = (args.get("search") or "").strip() or None

    sort_by = args.get("sortBy") or "created_at"
    if sort_by not in SORT_FIELDS:
        errors.add("sortBy", f"sortBy must be one of: {list(SORT_FIELDS)}")

    sort_order = args.get("sortOrder") or "desc"
    if sort_order not in SORT_ORDERS:
        errors.add("sortOrder", "sortOrder must be 'asc' or 'desc'")

    page = _parse_int(args, "page", 1, errors)
    if page < 1:
        errors.add("page", "page must be at least 1")

    limit = _parse_int(args, "limit", PAGE_SIZE_DEFAULT, errors)
    if not 1 <= limit <= PAGE_SIZE_MAX:
        errors.add("limit", f"limit must be between 1 and {PAGE_SIZE_MAX}")
    elif (page - 1) * limit > OFFSET_MAX:
        # The row offset must fit a signed 64-bit SQL integer
        errors.add("page", "page is out of range")

    errors.raise_if_any()
    return TaskQuery(
        status=status,
        priority=priority,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )
