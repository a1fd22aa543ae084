"""Task model."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Task(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "tasks"

    user_id: uuid.UUID = Field(
        sa_column=sa.Column(
            sa.Uuid, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
        )
    )
    title: str = Field(nullable=False)
    description: Optional[str] = None
    due_date: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))
    priority: str = Field(nullable=False, default="MEDIUM")  # LOW | MEDIUM | HIGH
    status: str = Field(nullable=False, default="TODO")  # TODO | IN_PROGRESS | COMPLETED
    completed: bool = Field(nullable=False, default=False)
