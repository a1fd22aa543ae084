"""Task-related Pydantic schemas shared by the server and client codegen."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import UUID4, Field, field_validator

from .common import CamelModel, Pagination, SortOrder, TaskPriority, TaskStatus


# Largest page or limit accepted in a list query (signed 32-bit).
MAX_QUERY_INT = 2**31 - 1


# ---------------------------------------------------------------------------
# Task CRUD
# ---------------------------------------------------------------------------

class TaskCreate(CamelModel):
    """Request body for POST /tasks. ``due_date`` is parsed by the service."""
    title: str = Field(min_length=1)
    description: Optional[str] = None
    due_date: Optional[str] = None
    priority: Optional[TaskPriority] = None
    status: Optional[TaskStatus] = None


class TaskUpdate(CamelModel):
    """Request body for PATCH /tasks/{taskId}. Only set fields are applied."""
    title: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[str] = None
    priority: Optional[TaskPriority] = None
    status: Optional[TaskStatus] = None
    completed: Optional[bool] = None


class TaskRead(CamelModel):
    id: UUID4
    title: str
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    priority: TaskPriority
    status: TaskStatus
    completed: bool
    user_id: UUID4
    created_at: datetime
    updated_at: datetime

    @field_validator("due_date", "created_at", "updated_at")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # Stored timestamps are UTC; some backends drop the offset on read.
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

class TaskQuery(CamelModel):
    """Validated query for GET /tasks."""
    priority: Optional[TaskPriority] = None
    status: Optional[TaskStatus] = None
    completed: Optional[bool] = None
    search: Optional[str] = None
    page: int = Field(default=1, ge=1, le=MAX_QUERY_INT)
    limit: int = Field(default=20, ge=1, le=MAX_QUERY_INT)
    sort_by: str = "createdAt"
    sort_order: SortOrder = SortOrder.DESC


class TaskPage(CamelModel):
    data: List[TaskRead]
    meta: Pagination


class TaskStats(CamelModel):
    total: int
    completed: int
    pending: int
    overdue: int
    by_priority: Dict[TaskPriority, int] = Field(default_factory=dict)
    by_status: Dict[TaskStatus, int] = Field(default_factory=dict)


class DeleteResult(CamelModel):
    success: bool = True
