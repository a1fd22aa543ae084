"""
Task endpoints: list, stats, CRUD, completion toggle.

Every route is scoped to the authenticated user; a task owned by someone else
is reported as 404, exactly like a task that does not exist.
"""

from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.auth import AuthenticatedUser, get_current_user
from app.core.config import get_settings
from app.core.database import get_session_factory
from app.services.task_store import SqlTaskStore, TaskStore
from app.services.tasks import TaskMutator, TaskQueryEngine, to_task_read
from taskapp_shared.schemas.common import SortOrder, TaskPriority, TaskStatus
from taskapp_shared.schemas.tasks import (
    MAX_QUERY_INT,
    DeleteResult,
    TaskCreate,
    TaskPage,
    TaskQuery,
    TaskRead,
    TaskStats,
    TaskUpdate,
)

router = APIRouter()


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def get_task_store(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> TaskStore:
    return SqlTaskStore(session_factory)


def get_query_engine(store: TaskStore = Depends(get_task_store)) -> TaskQueryEngine:
    return TaskQueryEngine(store)


def get_mutator(store: TaskStore = Depends(get_task_store)) -> TaskMutator:
    return TaskMutator(store)


def task_query_params(
    priority: Optional[TaskPriority] = None,
    status: Optional[TaskStatus] = None,
    completed: Optional[bool] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1, le=MAX_QUERY_INT),
    limit: Optional[int] = Query(None, ge=1, le=MAX_QUERY_INT),
    sort_by: str = Query("createdAt", alias="sortBy"),
    sort_order: SortOrder = Query(SortOrder.DESC, alias="sortOrder"),
) -> TaskQuery:
    """Validate the list query string into a typed TaskQuery."""
    return TaskQuery(
        priority=priority,
        status=status,
        completed=completed,
        search=search,
        page=page,
        limit=limit or get_settings().default_page_size,
        sort_by=sort_by,
        sort_order=sort_order,
    )


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


@router.get("", response_model=TaskPage)
async def list_tasks_endpoint(
    query: TaskQuery = Depends(task_query_params),
    auth: AuthenticatedUser = Depends(get_current_user),
    engine: TaskQueryEngine = Depends(get_query_engine),
):
    """List the caller's tasks with optional filters, sorting and pagination."""
    return await engine.find_all(auth.user_id, query)


@router.get("/stats", response_model=TaskStats)
async def task_stats_endpoint(
    auth: AuthenticatedUser = Depends(get_current_user),
    engine: TaskQueryEngine = Depends(get_query_engine),
):
    """Counts by completion, overdue, priority and status."""
    return await engine.get_stats(auth.user_id)


@router.get("/{task_id}", response_model=TaskRead)
async def get_task_endpoint(
    task_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(get_current_user),
    engine: TaskQueryEngine = Depends(get_query_engine),
):
    task = await engine.find_one(task_id, auth.user_id)
    return to_task_read(task)


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


@router.post("", response_model=TaskRead, status_code=201)
async def create_task_endpoint(
    task_in: TaskCreate,
    auth: AuthenticatedUser = Depends(get_current_user),
    mutator: TaskMutator = Depends(get_mutator),
):
    task = await mutator.create(auth.user_id, task_in)
    return to_task_read(task)


@router.patch("/{task_id}", response_model=TaskRead)
async def update_task_endpoint(
    task_id: uuid.UUID,
    task_in: TaskUpdate,
    auth: AuthenticatedUser = Depends(get_current_user),
    mutator: TaskMutator = Depends(get_mutator),
):
    """Partial update. Setting ``completed`` to true also completes the status."""
    task = await mutator.update(task_id, auth.user_id, task_in)
    return to_task_read(task)


@router.patch("/{task_id}/toggle", response_model=TaskRead)
async def toggle_task_endpoint(
    task_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(get_current_user),
    mutator: TaskMutator = Depends(get_mutator),
):
    task = await mutator.toggle_complete(task_id, auth.user_id)
    return to_task_read(task)


@router.delete("/{task_id}", response_model=DeleteResult)
async def delete_task_endpoint(
    task_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(get_current_user),
    mutator: TaskMutator = Depends(get_mutator),
):
    return await mutator.remove(task_id, auth.user_id)
