"""
Project administration endpoints. Restricted to system administrators.

Project membership is recorded on both sides: the project's ``members`` list
and each user's ``projects`` list. Every endpoint here keeps the two in step.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, Request, Response, status

from nulltasker.api import deps
from nulltasker.core.constants import default_project_settings
from nulltasker.core.errors import NotFoundError, ValidationFailedError
from nulltasker.db.session import Storage, get_storage
from nulltasker.models import Project, User
from nulltasker.schemas.auth import TokenPayload
from nulltasker.schemas.project import MembershipRequest, ProjectCreate, ProjectRead, ProjectUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_project_or_404(storage: Storage, project_id: str) -> Project:
    project = storage.projects.get_by_id(project_id)
    if not project:
        raise NotFoundError("Project not found", code="PROJECT_NOT_FOUND")
    return project


def _get_owner(storage: Storage, owner_id: str) -> User:
    owner = storage.users.get_by_id(owner_id)
    if not owner:
        raise ValidationFailedError("The specified owner does not exist", code="OWNER_NOT_FOUND")
    return owner


def _get_user_or_404(storage: Storage, user_id: str) -> User:
    user = storage.users.get_by_id(user_id)
    if not user:
        raise NotFoundError("User not found", code="USER_NOT_FOUND")
    return user


@router.get("", response_model=List[ProjectRead])
def list_all_projects(
    storage: Storage = Depends(get_storage),
    admin: TokenPayload = Depends(deps.require_system_admin),
):
    return storage.projects.list()


@router.post("", response_model=ProjectRead, status_code=status.HTTP_201_CREATED)
def create_project(
    request: Request,
    response: Response,
    project_in: ProjectCreate,
    storage: Storage = Depends(get_storage),
    admin: TokenPayload = Depends(deps.require_system_admin),
):
    """
    Create a project. The owner becomes its first member and admin.
    """
    owner = _get_owner(storage, project_in.owner)
    project = storage.projects.create(
        Project(
            name=project_in.name,
            description=project_in.description,
            owner=owner.id,
            members=[owner.id],
            admins=[owner.id],
            settings=project_in.settings or default_project_settings(),
        )
    )
    storage.users.add_project(owner.id, project.id)
    response.headers["Location"] = (
        f"{request.app.state.settings.API_V1_STR}/projects/{project.id}"
    )
    logger.info("Admin %s created project %s", admin.id, project.id)
    return project


@router.put("/{project_id}", response_model=ProjectRead)
def update_project(
    project_id: str,
    project_in: ProjectUpdate,
    storage: Storage = Depends(get_storage),
    admin: TokenPayload = Depends(deps.require_system_admin),
):
    """
    Update name, description, owner or settings. Unset fields are kept.
    """
    project = _get_project_or_404(storage, project_id)
    changes = {k: v for k, v in project_in.model_dump(exclude_unset=True).items() if v is not None}

    new_owner = changes.get("owner")
    if new_owner and new_owner != project.owner:
        _get_owner(storage, new_owner)
        if new_owner not in project.members:
            changes["members"] = [*project.members, new_owner]
        if new_owner not in project.admins:
            changes["admins"] = [*project.admins, new_owner]
        storage.users.add_project(new_owner, project_id)

    updated = storage.projects.update(project_id, changes)
    logger.info("Admin %s updated project %s", admin.id, project_id)
    return updated


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_project(
    request: Request,
    project_id: str,
    storage: Storage = Depends(get_storage),
    admin: TokenPayload = Depends(deps.require_system_admin),
):
    """
    Delete a project together with its tickets, and drop it from every user's
    membership list. The default project can never be deleted.
    """
    if project_id == request.app.state.settings.DEFAULT_PROJECT_ID:
        raise ValidationFailedError("The default project cannot be deleted",
                                    code="DEFAULT_PROJECT_PROTECTED")
    _get_project_or_404(storage, project_id)

    removed_tickets = storage.tickets.delete_by_project(project_id)
    storage.projects.delete(project_id)
    storage.users.remove_project_from_all(project_id)
    logger.info("Admin %s deleted project %s (%d tasks)", admin.id, project_id, removed_tickets)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{project_id}/members", response_model=ProjectRead)
def add_project_member(
    project_id: str,
    membership: MembershipRequest,
    storage: Storage = Depends(get_storage),
    admin: TokenPayload = Depends(deps.require_system_admin),
):
    _get_project_or_404(storage, project_id)
    user = _get_user_or_404(storage, membership.user_id)
    project = storage.projects.add_member(project_id, user.id)
    storage.users.add_project(user.id, project_id)
    logger.info("Admin %s added %s to project %s", admin.id, user.id, project_id)
    return project


@router.delete("/{project_id}/members/{user_id}", response_model=ProjectRead)
def remove_project_member(
    project_id: str,
    user_id: str,
    storage: Storage = Depends(get_storage),
    admin: TokenPayload = Depends(deps.require_system_admin),
):
    """Remove a member (and their admin right). The owner cannot be removed."""
    project = _get_project_or_404(storage, project_id)
    if user_id == project.owner:
        raise ValidationFailedError("The project owner cannot be removed", code="OWNER_REQUIRED")
    if user_id not in project.members:
        raise NotFoundError("User is not a member of this project", code="MEMBER_NOT_FOUND")
    project = storage.projects.remove_member(project_id, user_id)
    storage.users.remove_project(user_id, project_id)
    logger.info("Admin %s removed %s from project %s", admin.id, user_id, project_id)
    return project


@router.post("/{project_id}/admins", response_model=ProjectRead)
def add_project_admin(
    project_id: str,
    membership: MembershipRequest,
    storage: Storage = Depends(get_storage),
    admin: TokenPayload = Depends(deps.require_system_admin),
):
    """Grant project-admin rights; the user is made a member if needed."""
    _get_project_or_404(storage, project_id)
    user = _get_user_or_404(storage, membership.user_id)
    storage.projects.add_member(project_id, user.id)
    project = storage.projects.add_admin(project_id, user.id)
    storage.users.add_project(user.id, project_id)
    logger.info("Admin %s made %s an admin of project %s", admin.id, user.id, project_id)
    return project


@router.delete("/{project_id}/admins/{user_id}", response_model=ProjectRead)
def remove_project_admin(
    project_id: str,
    user_id: str,
    storage: Storage = Depends(get_storage),
    admin: TokenPayload = Depends(deps.require_system_admin),
):
    project = _get_project_or_404(storage, project_id)
    if user_id == project.owner:
        raise ValidationFailedError("The project owner cannot be removed", code="OWNER_REQUIRED")
    project = storage.projects.remove_admin(project_id, user_id)
    logger.info("Admin %s revoked admin rights of %s on project %s", admin.id, user_id, project_id)
    return project
