"""
Owner-scoped task queries.

Every statement built here starts from ``owned_tasks(user_id)``, so a
caller can only ever see or touch rows whose ``user_id`` matches the
identity taken from its verified token.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from sqlalchemy import Select, case, func, or_, select

from . import db
from .models import Task, TaskPriority, TaskTag
from .validation import TaskQuery

# Priorities sort by severity rather than alphabetically
PRIORITY_RANK = case(
    {priority.value: rank for rank, priority in enumerate(TaskPriority)},
    value=Task.priority,
    else_=len(TaskPriority),
)

_SORT_COLUMNS = {
    "created_at": Task.created_at,
    "updated_at": Task.updated_at,
    "due_date": Task.due_date,
    "priority": PRIORITY_RANK,
    "title": Task.title,
}


@dataclass
class TaskPage:
    """One page of listing results plus the paging metadata."""

    tasks: list[Task]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit)

    def metadata(self) -> dict[str, int]:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "totalPages": self.total_pages,
        }


def owned_tasks(user_id: int) -> Select:
    """Base ``select`` restricted to tasks owned by *user_id*."""
    return select(Task).where(Task.user_id == user_id)


def get_owned_task(user_id: int, task_id: int) -> Task | None:
    """Fetch one task, or ``None`` when it does not exist or belongs to someone else."""
    return db.session.scalar(owned_tasks(user_id).where(Task.id == task_id))


def list_tasks(user_id: int, query: TaskQuery) -> TaskPage:
    """
    Run a filtered, sorted, paginated listing for one user.

    ``search`` is a case-insensitive substring match against the title,
    the description, or any tag.  LIKE wildcards in the search text are
    escaped, so ``%`` and ``_`` match literally.
    """
    stmt = owned_tasks(user_id)

    if query.status:
        stmt = stmt.where(Task.status == query.status)
    if query.priority:
        stmt = stmt.where(Task.priority == query.priority)
    if query.search:
        stmt = stmt.where(
            or_(
                Task.title.icontains(query.search, autoescape=True),
                Task.description.icontains(query.search, autoescape=True),
                Task.tag_rows.any(TaskTag.name.icontains(query.search, autoescape=True)),
            )
        )

    total = db.session.scalar(select(func.count()).select_from(stmt.subquery())) or 0

    column = _SORT_COLUMNS[query.sort_by]
    ordering = column.asc() if query.sort_order == "asc" else column.desc()
    # id keeps ordering stable between pages when the sort key ties
    tie_breaker = Task.id.asc() if query.sort_order == "asc" else Task.id.desc()
    stmt = (
        stmt.order_by(ordering, tie_breaker)
        .offset((query.page - 1) * query.limit)
        .limit(query.limit)
    )

    tasks = list(db.session.scalars(stmt).all())
    return TaskPage(tasks=tasks, page=query.page, limit=query.limit, total=total)
