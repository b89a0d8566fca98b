"""
Self-service user endpoints: the caller's own profile and password, and the
directory of users sharing a project with the caller.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, Response, status

from nulltasker.api import deps
from nulltasker.api.v1.endpoints.auth import ensure_identity_available
from nulltasker.core.errors import ValidationFailedError
from nulltasker.core.security import get_password_hash, verify_password
from nulltasker.db.session import Storage, get_storage
from nulltasker.models import User
from nulltasker.schemas.user import PasswordChange, ProfileUpdate, UserRead

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/user", response_model=UserRead)
def read_user_me(current_user: User = Depends(deps.get_current_db_user)):
    """
    Get current user.
    """
    return current_user


@router.put("/user/profile", response_model=UserRead)
def update_user_me(
    profile_in: ProfileUpdate,
    current_user: User = Depends(deps.get_current_db_user),
    storage: Storage = Depends(get_storage),
):
    """Update own display name and email (both must stay unique)."""
    ensure_identity_available(storage, profile_in.email, profile_in.display_name,
                              exclude_id=current_user.id)
    user = storage.users.update(current_user.id, {
        "display_name": profile_in.display_name,
        "email": profile_in.email,
    })
    logger.info("User %s updated their profile", current_user.id)
    return user


@router.put("/user/password", status_code=status.HTTP_204_NO_CONTENT)
def change_password(
    password_in: PasswordChange,
    current_user: User = Depends(deps.get_current_db_user),
    storage: Storage = Depends(get_storage),
):
    """Change own password after re-verifying the current one."""
    if not verify_password(password_in.current_password, current_user.password):
        raise ValidationFailedError("Current password is incorrect", code="INVALID_PASSWORD")
    storage.users.update(current_user.id, {"password": get_password_hash(password_in.new_password)})
    logger.info("User %s changed their password", current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/users", response_model=List[UserRead])
def list_project_users(
    current_user: User = Depends(deps.get_current_db_user),
    storage: Storage = Depends(get_storage),
):
    """Users that share at least one project with the caller."""
    mine = set(current_user.projects)
    return [u for u in storage.users.list() if mine.intersection(u.projects)]
