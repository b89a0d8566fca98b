"""
Task Endpoints Module

This module provides CRUD endpoints for tickets (tasks). Any authenticated user
may read and modify tickets. Updates are partial: fields missing from the body
keep their stored value.
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Request, Response, status

from nulltasker.api import deps
from nulltasker.core.errors import ConflictError, NotFoundError, ValidationFailedError
from nulltasker.db.session import Storage, get_storage
from nulltasker.models import TaskPriority, TaskStatus, Ticket
from nulltasker.schemas.auth import TokenPayload
from nulltasker.schemas.ticket import (
    NULLABLE_TICKET_FIELDS,
    TicketCreate,
    TicketRead,
    TicketUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_ticket_or_404(storage: Storage, task_id: str) -> Ticket:
    ticket = storage.tickets.get_by_id(task_id)
    if not ticket:
        raise NotFoundError("Task not found", code="TASK_NOT_FOUND")
    return ticket


def _check_project(storage: Storage, project_id: str) -> None:
    if not storage.projects.get_by_id(project_id):
        raise ValidationFailedError(f"Project '{project_id}' does not exist",
                                    code="PROJECT_NOT_FOUND")


def _check_parent(storage: Storage, parent_id: str, task_id: Optional[str] = None) -> None:
    if task_id is not None and parent_id == task_id:
        raise ValidationFailedError("A task cannot be its own parent", code="INVALID_PARENT")
    if not storage.tickets.get_by_id(parent_id):
        raise ValidationFailedError(f"Parent task '{parent_id}' does not exist",
                                    code="PARENT_NOT_FOUND")


def _check_title(storage: Storage, project_id: str, title: str,
                 task_id: Optional[str] = None) -> None:
    existing = storage.tickets.find_by_title(project_id, title)
    if existing and existing.id != task_id:
        raise ConflictError("A task with the same title already exists in this project",
                            code="TASK_EXISTS")


@router.get("", response_model=List[TicketRead])
def list_tasks(
    project: Optional[str] = None,
    assignee: Optional[str] = None,
    status: Optional[TaskStatus] = None,
    priority: Optional[TaskPriority] = None,
    parent_task: Optional[str] = None,
    storage: Storage = Depends(get_storage),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """
    Retrieve tickets, newest first, optionally filtered.
    """
    return storage.tickets.list(
        project=project,
        assignee=assignee,
        status=status.value if status else None,
        priority=priority.value if priority else None,
        parent_task=parent_task,
    )


@router.get("/{task_id}", response_model=TicketRead)
def read_task(
    task_id: str,
    storage: Storage = Depends(get_storage),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    return _get_ticket_or_404(storage, task_id)


@router.get("/{task_id}/children", response_model=List[TicketRead])
def read_task_children(
    task_id: str,
    storage: Storage = Depends(get_storage),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """Direct sub-tasks of a ticket, oldest first."""
    _get_ticket_or_404(storage, task_id)
    return storage.tickets.children_of(task_id)


@router.post("", response_model=TicketRead, status_code=status.HTTP_201_CREATED)
def create_task(
    request: Request,
    response: Response,
    task_in: TicketCreate,
    storage: Storage = Depends(get_storage),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """
    Create a new ticket.

    Raises:
        ValidationFailedError 400: unknown project or parent ticket
        ConflictError 409: a ticket with the same title exists in the project
    """
    _check_project(storage, task_in.project)
    if task_in.parent_task is not None:
        _check_parent(storage, task_in.parent_task)
    _check_title(storage, task_in.project, task_in.title)

    ticket = storage.tickets.create(Ticket(**task_in.model_dump(mode="json")))
    response.headers["Location"] = (
        f"{request.app.state.settings.API_V1_STR}/tasks/{ticket.id}"
    )
    logger.info("User %s created task %s in %s", current_user.id, ticket.id, ticket.project)
    return ticket


@router.put("/{task_id}", response_model=TicketRead)
def update_task(
    task_id: str,
    task_in: TicketUpdate,
    storage: Storage = Depends(get_storage),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """
    Update an existing ticket.

    Only the fields present in the body are changed. ``null`` clears
    start_date, due_date and parent_task; for every other field it is ignored.
    """
    ticket = _get_ticket_or_404(storage, task_id)

    changes: Dict[str, Any] = {
        key: value
        for key, value in task_in.model_dump(mode="json", exclude_unset=True).items()
        if value is not None or key in NULLABLE_TICKET_FIELDS
    }

    project_id = changes.get("project", ticket.project)
    if project_id != ticket.project:
        _check_project(storage, project_id)
    if changes.get("parent_task") is not None:
        _check_parent(storage, changes["parent_task"], task_id)
    if "title" in changes or "project" in changes:
        _check_title(storage, project_id, changes.get("title", ticket.title), task_id)

    updated = storage.tickets.update(task_id, changes)
    if updated is None:
        raise NotFoundError("Task not found", code="TASK_NOT_FOUND")
    logger.info("User %s updated task %s", current_user.id, task_id)
    return updated


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(
    task_id: str,
    storage: Storage = Depends(get_storage),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """
    Delete a ticket. Its sub-tasks are kept and lose their parent reference.
    """
    if not storage.tickets.delete(task_id):
        raise NotFoundError("Task not found", code="TASK_NOT_FOUND")
    logger.info("User %s deleted task %s", current_user.id, task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
