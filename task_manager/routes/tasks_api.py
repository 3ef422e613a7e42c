"""
Task API endpoints.

Every endpoint requires a bearer token, and every query is scoped to the
token holder's ``user_id``.  A task owned by someone else is reported
exactly like one that does not exist.

Endpoints:
    GET    /api/tasks          - List tasks (filter, search, sort, paginate)
    POST   /api/tasks          - Create a task
    GET    /api/tasks/<id>     - Retrieve a single task
    PATCH  /api/tasks/<id>     - Partially update a task
    DELETE /api/tasks/<id>     - Delete a task
"""

from __future__ import annotations

import logging

from flask import Blueprint, Response, g, request

from .. import db
from ..auth import require_auth
from ..errors import NotFoundError
from ..models import Task
from ..queries import get_owned_task, list_tasks
from ..responses import success_response
from ..validation import (
    parse_task_query,
    require_json_object,
    validate_task_create,
    validate_task_update,
)

logger = logging.getLogger(__name__)

tasks_bp = Blueprint("tasks_api", __name__)


def _owned_task_or_404(task_id: int) -> Task:
    task = get_owned_task(g.user_id, task_id)
    if task is None:
        raise NotFoundError("Task not found")
    return task


@tasks_bp.route("", methods=["GET"])
@require_auth
def get_tasks() -> tuple[Response, int]:
    """
    List the authenticated user's tasks.

    Query parameters: ``status``, ``priority``, ``search``, ``sortBy``,
    ``sortOrder``, ``page``, ``limit``.

    Returns:
        200 with the page of tasks as ``data`` and
        ``{page, limit, total, totalPages}`` as ``metadata``.
    """
    query = parse_task_query(request.args)
    logger.info("Listing tasks for user_id=%s", g.user_id)
    page = list_tasks(g.user_id, query)
    return success_response([task.to_dict() for task in page.tasks], 200, page.metadata())


@tasks_bp.route("", methods=["POST"])
@require_auth
def create_task() -> tuple[Response, int]:
    """
    Create a task for the authenticated user.

    Only ``title`` is required; ``status`` defaults to ``todo`` and
    ``priority`` to ``medium``.
    """
    data = validate_task_create(require_json_object(request.get_json(silent=True)))

    task = Task(user_id=g.user_id, **data)
    db.session.add(task)
    db.session.commit()

    logger.info("Created task_id=%s for user_id=%s", task.id, g.user_id)
    return success_response(task.to_dict(), 201)


@tasks_bp.route("/<int:task_id>", methods=["GET"])
@require_auth
def get_task(task_id: int) -> tuple[Response, int]:
    """Return one task, or 404 if it is missing or not owned by the caller."""
    return success_response(_owned_task_or_404(task_id).to_dict())


@tasks_bp.route("/<int:task_id>", methods=["PATCH"])
@require_auth
def update_task(task_id: int) -> tuple[Response, int]:
    """
    Partially update a task.

    Only the fields present in the body change.  Moving the status into
    ``completed`` stamps ``completed_at``; moving it out clears it.
    """
    data = validate_task_update(require_json_object(request.get_json(silent=True)))
    task = _owned_task_or_404(task_id)

    for field, value in data.items():
        setattr(task, field, value)
    db.session.commit()

    logger.info("Updated task_id=%s fields=%s", task.id, sorted(data))
    return success_response(task.to_dict())


@tasks_bp.route("/<int:task_id>", methods=["DELETE"])
@require_auth
def delete_task(task_id: int) -> tuple[Response, int]:
    """Hard-delete a task and echo it back."""
    task = _owned_task_or_404(task_id)
    deleted = task.to_dict()

    db.session.delete(task)
    db.session.commit()

    logger.info("Deleted task_id=%s", task_id)
    return success_response({"message": "Task deleted successfully", "task": deleted})
