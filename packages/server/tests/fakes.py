# tests/fakes.py

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from app.core.errors import InvalidQueryError, StoreError
from app.models.task import Task
from app.services.task_store import TaskFilter, to_column_name
from taskapp_shared.schemas.common import SortOrder


class InMemoryTaskStore:
    """
    Dict-backed TaskStore for unit tests.

    - Same filter semantics as SqlTaskStore (owner scoping, case-insensitive search)
    - Deterministic clock: every write advances ``now`` by one second
    - Records the filters it was queried with
    """

    def __init__(self, now: Optional[datetime] = None) -> None:
        self.tasks: dict[uuid.UUID, Task] = {}
        self.now = now or datetime(2024, 1, 1, tzinfo=timezone.utc)
        self.count_calls: list[TaskFilter] = []
        self.find_calls: list[TaskFilter] = []

    def _tick(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now

    @staticmethod
    def _matches(task: Task, where: TaskFilter) -> bool:
        if task.user_id != where.owner_id:
            return False
        if where.task_id is not None and task.id != where.task_id:
            return False
        if where.priority is not None and task.priority != where.priority.value:
            return False
        if where.status is not None and task.status != where.status.value:
            return False
        if where.completed is not None and task.completed != where.completed:
            return False
        if where.search:
            needle = where.search.lower()
            haystacks = [task.title or "", task.description or ""]
            if not any(needle in h.lower() for h in haystacks):
                return False
        if where.due_before is not None:
            if task.due_date is None or task.due_date >= where.due_before:
                return False
        return True

    def _select(self, where: TaskFilter) -> list[Task]:
        return [t for t in self.tasks.values() if self._matches(t, where)]

    @staticmethod
    def _attr(field: str) -> str:
        name = to_column_name(field)
        if name not in Task.__table__.columns:
            raise InvalidQueryError(f"Unknown task field '{field}'")
        return name

    async def find_many(
        self,
        where: TaskFilter,
        *,
        offset: int,
        limit: int,
        sort_by: str,
        sort_order: SortOrder,
    ) -> list[Task]:
        self.find_calls.append(where)
        attr = self._attr(sort_by)
        rows = sorted(
            self._select(where),
            key=lambda t: (getattr(t, attr) is None, getattr(t, attr), str(t.id)),
            reverse=sort_order == SortOrder.DESC,
        )
        return rows[offset : offset + limit]

    async def find_first(self, where: TaskFilter) -> Optional[Task]:
        rows = self._select(where)
        return rows[0] if rows else None

    async def count(self, where: TaskFilter) -> int:
        self.count_calls.append(where)
        return len(self._select(where))

    async def count_by(self, field: str, where: TaskFilter) -> dict[str, int]:
        attr = self._attr(field)
        counts: dict[str, int] = {}
        for task in self._select(where):
            key = getattr(task, attr)
            counts[key] = counts.get(key, 0) + 1
        return counts

    async def create(self, values: dict[str, Any]) -> Task:
        now = self._tick()
        task = Task(**values, created_at=now, updated_at=now)
        self.tasks[task.id] = task
        return task

    async def update(
        self, task_id: uuid.UUID, owner_id: uuid.UUID, values: dict[str, Any]
    ) -> Optional[Task]:
        task = self.tasks.get(task_id)
        if task is None or task.user_id != owner_id:
            return None
        for key, value in values.items():
            setattr(task, key, value)
        task.updated_at = self._tick()
        return task

    async def delete(self, task_id: uuid.UUID, owner_id: uuid.UUID) -> bool:
        task = self.tasks.get(task_id)
        if task is None or task.user_id != owner_id:
            return False
        del self.tasks[task_id]
        return True


class BrokenCountStore(InMemoryTaskStore):
    """Store whose count query always fails, like a dropped connection."""

    async def count(self, where: TaskFilter) -> int:
        raise StoreError("connection lost")
