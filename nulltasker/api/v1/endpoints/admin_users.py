import logging
from typing import List

from fastapi import APIRouter, Depends, Request, Response, status

from nulltasker.api import deps
from nulltasker.api.v1.endpoints.auth import enroll_in_default_project, ensure_identity_available
from nulltasker.core.errors import NotFoundError, ValidationFailedError
from nulltasker.core.security import get_password_hash
from nulltasker.db.session import Storage, get_storage
from nulltasker.models import User
from nulltasker.schemas.auth import TokenPayload
from nulltasker.schemas.user import AdminUserCreate, AdminUserUpdate, UserRead

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=List[UserRead])
def list_users(
    storage: Storage = Depends(get_storage),
    admin: TokenPayload = Depends(deps.require_system_admin),
):
    """
    Retrieve every user (password hashes excluded).
    """
    return storage.users.list()


@router.post("", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def create_user_admin(
    *,
    request: Request,
    response: Response,
    user_in: AdminUserCreate,
    storage: Storage = Depends(get_storage),
    admin: TokenPayload = Depends(deps.require_system_admin),
):
    """
    Create new user with an explicit role. The user joins the default project.
    """
    ensure_identity_available(storage, user_in.email, user_in.display_name)

    default_project = request.app.state.settings.DEFAULT_PROJECT_ID
    user = storage.users.create(
        User(
            display_name=user_in.display_name,
            email=user_in.email,
            password=get_password_hash(user_in.password),
            role=user_in.role,
            projects=[default_project],
        )
    )
    enroll_in_default_project(storage, user, default_project)
    response.headers["Location"] = (
        f"{request.app.state.settings.API_V1_STR}/admin/users/{user.id}"
    )
    logger.info("Admin %s created user %s (%s)", admin.id, user.id, user.role.value)
    return user


@router.put("/{user_id}", response_model=UserRead)
def update_user_admin(
    *,
    user_id: str,
    user_in: AdminUserUpdate,
    storage: Storage = Depends(get_storage),
    admin: TokenPayload = Depends(deps.require_system_admin),
):
    """
    Update a user. Only the given fields change; a new password is re-hashed.
    """
    if not storage.users.get_by_id(user_id):
        raise NotFoundError("User not found", code="USER_NOT_FOUND")

    update_data = {k: v for k, v in user_in.model_dump(exclude_unset=True).items() if v is not None}
    ensure_identity_available(storage, update_data.get("email"), update_data.get("display_name"),
                              exclude_id=user_id)
    if "password" in update_data:
        update_data["password"] = get_password_hash(update_data["password"])

    user = storage.users.update(user_id, update_data)
    logger.info("Admin %s updated user %s", admin.id, user_id)
    return user


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user_admin(
    user_id: str,
    storage: Storage = Depends(get_storage),
    admin: TokenPayload = Depends(deps.require_system_admin),
):
    """
    Delete a user and strip them from every project. Admins cannot delete themselves.
    """
    if user_id == admin.id:
        raise ValidationFailedError("You cannot delete your own account", code="SELF_DELETE")
    if not storage.users.delete(user_id):
        raise NotFoundError("User not found", code="USER_NOT_FOUND")
    storage.projects.remove_user_everywhere(user_id)
    logger.info("Admin %s deleted user %s", admin.id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
