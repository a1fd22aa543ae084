"""
Task service layer: owner-scoped queries, statistics, and mutations.

Handles:
- List queries with filter / sort / pagination (page fetch + count in parallel)
- Per-owner statistics (five independent counts, in parallel)
- Create / partial update / toggle / delete with ownership checks
- Derived status on completion

Multi-query reads are not transactional. Each sub-query sees the store at the
moment it runs, so e.g. ``total`` and ``sum(by_status)`` can disagree while a
concurrent write lands.
"""

from __future__ import annotations

import asyncio
import math
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

import structlog

from app.core.errors import NotFoundError, ValidationError
from app.models.task import Task
from app.services.task_store import TaskFilter, TaskStore
from taskapp_shared.schemas.common import Pagination, TaskPriority, TaskStatus
from taskapp_shared.schemas.tasks import (
    DeleteResult,
    TaskCreate,
    TaskPage,
    TaskQuery,
    TaskRead,
    TaskStats,
    TaskUpdate,
)

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def get_task_or_404(store: TaskStore, task_id: uuid.UUID, owner_id: uuid.UUID) -> Task:
    task = await store.find_first(TaskFilter(owner_id=owner_id, task_id=task_id))
    if task is None:
        raise NotFoundError("Task not found")
    return task


def to_task_read(task: Task) -> TaskRead:
    return TaskRead.model_validate(task, from_attributes=True)


def parse_due_date(value: str) -> datetime:
    """Parse an ISO-8601 date or datetime; values without an offset are UTC."""
    try:
        parsed = datetime.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid due date: {value!r}") from None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _clean_title(title: Optional[str]) -> str:
    if title is None or not title.strip():
        raise ValidationError("Task title cannot be empty")
    return title.strip()


def build_filter(owner_id: uuid.UUID, query: TaskQuery) -> TaskFilter:
    return TaskFilter(
        owner_id=owner_id,
        priority=query.priority,
        status=query.status,
        completed=query.completed,
        search=query.search or None,
    )


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


class TaskQueryEngine:
    """Read side: lists, single lookups, and statistics for one owner."""

    def __init__(self, store: TaskStore):
        self.store = store

    async def find_all(self, owner_id: uuid.UUID, query: TaskQuery) -> TaskPage:
        where = build_filter(owner_id, query)
        offset = (query.page - 1) * query.limit

        tasks, total = await asyncio.gather(
            self.store.find_many(
                where,
                offset=offset,
                limit=query.limit,
                sort_by=query.sort_by,
                sort_order=query.sort_order,
            ),
            self.store.count(where),
        )

        return TaskPage(
            data=[to_task_read(t) for t in tasks],
            meta=Pagination(
                total=total,
                page=query.page,
                limit=query.limit,
                total_pages=math.ceil(total / query.limit),
            ),
        )

    async def find_one(self, task_id: uuid.UUID, owner_id: uuid.UUID) -> Task:
        return await get_task_or_404(self.store, task_id, owner_id)

    async def get_stats(self, owner_id: uuid.UUID) -> TaskStats:
        everything = TaskFilter(owner_id=owner_id)
        now = datetime.now(timezone.utc)

        total, completed, overdue, by_priority, by_status = await asyncio.gather(
            self.store.count(everything),
            self.store.count(TaskFilter(owner_id=owner_id, completed=True)),
            self.store.count(TaskFilter(owner_id=owner_id, completed=False, due_before=now)),
            self.store.count_by("priority", everything),
            self.store.count_by("status", everything),
        )

        return TaskStats(
            total=total,
            completed=completed,
            pending=total - completed,
            overdue=overdue,
            by_priority={k: v for k, v in by_priority.items() if v > 0},
            by_status={k: v for k, v in by_status.items() if v > 0},
        )


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


class TaskMutator:
    """Write side. Every mutation checks ownership before touching the task.

    ``update`` only forces ``status=COMPLETED`` when ``completed`` is set to
    true without an explicit status; setting ``completed=False`` leaves the
    status alone. ``toggle_complete`` always writes a matching status
    (COMPLETED / TODO).
    """

    # TODO: decide whether update(completed=False) should reset status to TODO
    # the way toggle_complete does; clients currently rely on it not doing so.

    def __init__(self, store: TaskStore):
        self.store = store

    async def create(self, owner_id: uuid.UUID, task_in: TaskCreate) -> Task:
        values: dict[str, Any] = {
            "user_id": owner_id,
            "title": _clean_title(task_in.title),
            "description": task_in.description,
            "due_date": parse_due_date(task_in.due_date) if task_in.due_date else None,
            "priority": (task_in.priority or TaskPriority.MEDIUM).value,
            "status": (task_in.status or TaskStatus.TODO).value,
            "completed": False,
        }
        task = await self.store.create(values)
        log.info("task.created", task_id=str(task.id), user_id=str(owner_id))
        return task

    async def update(
        self, task_id: uuid.UUID, owner_id: uuid.UUID, task_in: TaskUpdate
    ) -> Task:
        task = await get_task_or_404(self.store, task_id, owner_id)
        data = self._update_values(task_in)
        if not data:
            return task

        updated = await self.store.update(task_id, owner_id, data)
        if updated is None:
            raise NotFoundError("Task not found")
        log.info(
            "task.updated", task_id=str(task_id), user_id=str(owner_id), fields=sorted(data)
        )
        return updated

    async def toggle_complete(self, task_id: uuid.UUID, owner_id: uuid.UUID) -> Task:
        task = await get_task_or_404(self.store, task_id, owner_id)
        completed = not task.completed
        status = TaskStatus.COMPLETED if completed else TaskStatus.TODO

        updated = await self.store.update(
            task_id, owner_id, {"completed": completed, "status": status.value}
        )
        if updated is None:
            raise NotFoundError("Task not found")
        log.info("task.toggled", task_id=str(task_id), completed=completed)
        return updated

    async def remove(self, task_id: uuid.UUID, owner_id: uuid.UUID) -> DeleteResult:
        await get_task_or_404(self.store, task_id, owner_id)
        if not await self.store.delete(task_id, owner_id):
            raise NotFoundError("Task not found")
        log.info("task.deleted", task_id=str(task_id), user_id=str(owner_id))
        return DeleteResult(success=True)

    @staticmethod
    def _update_values(task_in: TaskUpdate) -> dict[str, Any]:
        data = task_in.model_dump(exclude_unset=True)

        for key in ("priority", "status", "completed"):
            if key in data and data[key] is None:
                raise ValidationError(f"'{key}' cannot be null")

        if "title" in data:
            data["title"] = _clean_title(data["title"])

        if "due_date" in data:
            data["due_date"] = parse_due_date(data["due_date"]) if data["due_date"] else None

        for key in ("priority", "status"):
            if key in data:
                data[key] = data[key].value

        if data.get("completed") is True and "status" not in data:
            data["status"] = TaskStatus.COMPLETED.value

        return data
