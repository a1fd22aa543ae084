"""
Task persistence: the store interface the task services depend on, and its
SQLAlchemy implementation.

Every store operation is keyed by the owner; nothing looks up, updates or
deletes a task by id alone.

``SqlTaskStore`` opens one short-lived session per operation from a shared
session factory, so independent reads (page + count, the stats counts) can
run concurrently. Nothing here runs inside a shared transaction: a combined
result built from several calls is not a consistent snapshot.
"""

from __future__ import annotations

import re
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any, AsyncIterator, Optional, Protocol

import structlog
from sqlalchemy import delete, func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlmodel import select

from app.core.errors import InvalidQueryError, StoreError
from app.models.task import Task
from taskapp_shared.schemas.common import SortOrder, TaskPriority, TaskStatus

log = structlog.get_logger()


@dataclass(frozen=True)
class TaskFilter:
    """Conjunction of predicates; ``None`` fields do not narrow."""

    owner_id: uuid.UUID
    task_id: Optional[uuid.UUID] = None
    priority: Optional[TaskPriority] = None
    status: Optional[TaskStatus] = None
    completed: Optional[bool] = None
    search: Optional[str] = None
    due_before: Optional[datetime] = None


class TaskStore(Protocol):
    async def find_many(
        self,
        where: TaskFilter,
        *,
        offset: int,
        limit: int,
        sort_by: str,
        sort_order: SortOrder,
    ) -> list[Task]: ...

    async def find_first(self, where: TaskFilter) -> Optional[Task]: ...

    async def count(self, where: TaskFilter) -> int: ...

    async def count_by(self, field: str, where: TaskFilter) -> dict[str, int]: ...

    async def create(self, values: dict[str, Any]) -> Task: ...

    async def update(
        self, task_id: uuid.UUID, owner_id: uuid.UUID, values: dict[str, Any]
    ) -> Optional[Task]: ...

    async def delete(self, task_id: uuid.UUID, owner_id: uuid.UUID) -> bool: ...


def to_column_name(field: str) -> str:
    """Map an API field name (``dueDate``) to its column name (``due_date``)."""
    return re.sub(r"(?<!^)(?=[A-Z])", "_", field).lower()


# ---------------------------------------------------------------------------
# SQLAlchemy implementation
# ---------------------------------------------------------------------------


def _conditions(where: TaskFilter) -> list:
    conds = [Task.user_id == where.owner_id]
    if where.task_id is not None:
        conds.append(Task.id == where.task_id)
    if where.priority is not None:
        conds.append(Task.priority == where.priority.value)
    if where.status is not None:
        conds.append(Task.status == where.status.value)
    if where.completed is not None:
        conds.append(Task.completed == where.completed)
    if where.search:
        conds.append(
            or_(
                Task.title.icontains(where.search, autoescape=True),
                Task.description.icontains(where.search, autoescape=True),
            )
        )
    if where.due_before is not None:
        conds.append(Task.due_date < where.due_before)
    return conds


def _column(field: str):
    column = Task.__table__.columns.get(to_column_name(field))
    if column is None:
        raise InvalidQueryError(f"Unknown task field '{field}'")
    return column


class SqlTaskStore:
    """TaskStore backed by an async SQLAlchemy session factory."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as session:
                yield session
        except SQLAlchemyError as exc:
            log.error("store.error", error=str(exc))
            raise StoreError("Task store operation failed") from exc
        except OverflowError as exc:
            raise InvalidQueryError("Query value out of range") from exc

    async def find_many(
        self,
        where: TaskFilter,
        *,
        offset: int,
        limit: int,
        sort_by: str,
        sort_order: SortOrder,
    ) -> list[Task]:
        column = _column(sort_by)
        order = column.asc() if sort_order == SortOrder.ASC else column.desc()
        stmt = (
            select(Task)
            .where(*_conditions(where))
            .order_by(order, Task.id)
            .offset(offset)
            .limit(limit)
        )
        async with self._session() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def find_first(self, where: TaskFilter) -> Optional[Task]:
        async with self._session() as session:
            result = await session.execute(select(Task).where(*_conditions(where)).limit(1))
            return result.scalars().first()

    async def count(self, where: TaskFilter) -> int:
        stmt = select(func.count()).select_from(Task).where(*_conditions(where))
        async with self._session() as session:
            result = await session.execute(stmt)
            return result.scalar_one()

    async def count_by(self, field: str, where: TaskFilter) -> dict[str, int]:
        column = _column(field)
        stmt = (
            select(column, func.count())
            .select_from(Task)
            .where(*_conditions(where))
            .group_by(column)
        )
        async with self._session() as session:
            result = await session.execute(stmt)
            return {key: count for key, count in result.all()}

    async def create(self, values: dict[str, Any]) -> Task:
        task = Task(**values)
        async with self._session() as session:
            session.add(task)
            await session.commit()
            await session.refresh(task)
        return task

    async def update(
        self, task_id: uuid.UUID, owner_id: uuid.UUID, values: dict[str, Any]
    ) -> Optional[Task]:
        stmt = select(Task).where(Task.id == task_id, Task.user_id == owner_id)
        async with self._session() as session:
            result = await session.execute(stmt)
            task = result.scalar_one_or_none()
            if task is None:
                return None
            for key, value in values.items():
                setattr(task, key, value)
            session.add(task)
            await session.commit()
            await session.refresh(task)
        return task

    async def delete(self, task_id: uuid.UUID, owner_id: uuid.UUID) -> bool:
        stmt = delete(Task).where(Task.id == task_id, Task.user_id == owner_id)
        async with self._session() as session:
            result = await session.execute(stmt)
            await session.commit()
        return result.rowcount > 0
