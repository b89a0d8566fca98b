from datetime import date
from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator

from nulltasker.core.constants import PROGRESS_MAX, PROGRESS_MIN
from nulltasker.models.ticket import TaskPriority, TaskStatus

Title = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]
Hours = Annotated[float, Field(ge=0)]
Progress = Annotated[int, Field(ge=PROGRESS_MIN, le=PROGRESS_MAX)]


def _normalize_tags(tags: Optional[List[str]]) -> Optional[List[str]]:
    if tags is None:
        return None
    seen: List[str] = []
    for tag in tags:
        tag = tag.strip()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


class TicketBase(BaseModel):
    model_config = ConfigDict(extra="ignore")

    # Cleared form inputs arrive as ""
    @field_validator("start_date", "due_date", "parent_task", mode="before", check_fields=False)
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class TicketCreate(TicketBase):
    project: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
    title: Title
    description: str = ""
    assignee: str = ""
    category: str = ""
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.TODO
    progress: Progress = 0
    start_date: Optional[date] = None
    due_date: Optional[date] = None
    estimated_hours: Hours = 0
    actual_hours: Hours = 0
    tags: List[str] = []
    parent_task: Optional[str] = None

    @field_validator("tags")
    @classmethod
    def dedupe_tags(cls, v):
        return _normalize_tags(v)


class TicketUpdate(TicketBase):
    """
    Partial update. Only the fields present in the request body are applied;
    ``null`` clears the nullable ones (dates, parent) and is ignored elsewhere.
    """
    project: Optional[Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]] = None
    title: Optional[Title] = None
    description: Optional[str] = None
    assignee: Optional[str] = None
    category: Optional[str] = None
    priority: Optional[TaskPriority] = None
    status: Optional[TaskStatus] = None
    progress: Optional[Progress] = None
    start_date: Optional[date] = None
    due_date: Optional[date] = None
    estimated_hours: Optional[Hours] = None
    actual_hours: Optional[Hours] = None
    tags: Optional[List[str]] = None
    parent_task: Optional[str] = None

    @field_validator("tags")
    @classmethod
    def dedupe_tags(cls, v):
        return _normalize_tags(v)


# Fields that may be explicitly cleared with null
NULLABLE_TICKET_FIELDS = {"start_date", "due_date", "parent_task"}


class TicketRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    project: str
    title: str
    description: str = ""
    assignee: str = ""
    category: str = ""
    priority: str
    status: str
    progress: int = 0
    start_date: Optional[str] = None
    due_date: Optional[str] = None
    estimated_hours: float = 0
    actual_hours: float = 0
    tags: List[str] = []
    parent_task: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
