"""
Ticket Model Module

This module defines the Ticket (task) table. Tickets belong to a project and may
reference a parent ticket; deleting a parent clears the reference on its
children instead of deleting them.
"""
from enum import Enum
from typing import List, Optional

from sqlalchemy import Column, ForeignKey, JSON, String
from sqlmodel import Field, SQLModel

from nulltasker.models.base import generate_id, utc_now


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TaskStatus(str, Enum):
    """Ticket status. Any status may move to any other."""
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    DONE = "done"


class Ticket(SQLModel, table=True):
    """
    Ticket table model.

    Attributes:
        id: Opaque identifier ("task_<hex>")
        project: Id of the owning project
        title: Unique within its project
        description, category: Free text
        assignee: User id, or "" when unassigned
        priority: One of TaskPriority values
        status: One of TaskStatus values
        progress: Integer percentage 0-100
        start_date, due_date: ISO dates or None
        estimated_hours, actual_hours: Non-negative numbers
        tags: Distinct strings (JSON column)
        parent_task: Id of the parent ticket, set to NULL when the parent is deleted
        created_at, updated_at: ISO timestamps
    """
    __tablename__ = "tickets"

    id: str = Field(default_factory=lambda: generate_id("task"), primary_key=True)
    project: str = Field(nullable=False, index=True)
    title: str = Field(nullable=False)
    description: str = ""
    assignee: str = Field(default="", index=True)
    category: str = ""

    # Values are validated at the API boundary; stored as plain strings
    priority: str = Field(default=TaskPriority.MEDIUM.value, index=True)
    status: str = Field(default=TaskStatus.TODO.value, index=True)
    progress: int = 0

    # Dates stored as ISO format strings (YYYY-MM-DD)
    start_date: Optional[str] = None
    due_date: Optional[str] = Field(default=None, index=True)

    estimated_hours: float = 0
    actual_hours: float = 0

    tags: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))

    # Self reference; SQLite clears it when the parent row goes away
    parent_task: Optional[str] = Field(
        default=None,
        sa_column=Column(
            String,
            ForeignKey("tickets.id", ondelete="SET NULL"),
            nullable=True,
            index=True,
        ),
    )

    created_at: Optional[str] = Field(default_factory=utc_now, index=True)
    updated_at: Optional[str] = Field(default_factory=utc_now)
