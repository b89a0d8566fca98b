"""
Project Endpoints Module

Read-only project access for regular users. System admins see every project;
everyone else only sees projects whose member list contains them.
"""
from typing import List

from fastapi import APIRouter, Depends

from nulltasker.api import deps
from nulltasker.core.errors import NotFoundError
from nulltasker.db.session import Storage, get_storage
from nulltasker.schemas.auth import TokenPayload
from nulltasker.schemas.project import ProjectRead

router = APIRouter()


@router.get("", response_model=List[ProjectRead])
def list_projects(
    storage: Storage = Depends(get_storage),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """
    Retrieve the projects visible to the caller.
    """
    if current_user.is_system_admin:
        return storage.projects.list()
    return storage.projects.list_for_member(current_user.id)


@router.get("/{project_id}", response_model=ProjectRead)
def read_project(
    project_id: str,
    storage: Storage = Depends(get_storage),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """
    Get a specific project by ID.

    Projects the caller is not a member of are reported as missing.
    """
    project = storage.projects.get_by_id(project_id)
    if not project or (
        not current_user.is_system_admin and current_user.id not in project.members
    ):
        raise NotFoundError("Project not found", code="PROJECT_NOT_FOUND")
    return project
