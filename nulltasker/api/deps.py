"""
API Dependencies Module

This module provides FastAPI dependency functions for storage access,
authentication and role-based authorization.

Tokens are read from the ``Authorization: Bearer`` header only. Verified claims
are returned as a TokenPayload and also attached to ``request.state.user``.
"""
from typing import List, Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer

from nulltasker.core.config import settings
from nulltasker.core.errors import ForbiddenError, InvalidTokenError, NotFoundError
from nulltasker.core.security import REFRESH_TOKEN_TYPE, TokenService
from nulltasker.db.session import Storage, get_storage
from nulltasker.models.user import User, UserRole
from nulltasker.schemas.auth import TokenPayload

# auto_error=False so a missing header is reported with our own error body
reusable_oauth2 = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_V1_STR}/login",
    auto_error=False,
)


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_current_user(
    request: Request,
    token: Optional[str] = Depends(reusable_oauth2),
    tokens: TokenService = Depends(get_token_service),
) -> TokenPayload:
    """
    Dependency that validates the bearer token of the current request.

    Raises:
        InvalidTokenError 401 (TOKEN_REQUIRED): no token was sent
        InvalidTokenError 401 (INVALID_TOKEN): token malformed, expired or mis-signed
    """
    if not token:
        raise InvalidTokenError("Access token required", code="TOKEN_REQUIRED")

    claims = TokenPayload.model_validate(tokens.verify(token))
    # Refresh tokens only mint access tokens; they never authorize a call
    if claims.type == REFRESH_TOKEN_TYPE:
        raise InvalidTokenError()
    request.state.user = claims
    return claims


def get_current_db_user(
    current_user: TokenPayload = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> User:
    """Load the stored record of the token's user (404 if it was deleted)."""
    user = storage.users.get_by_id(current_user.id)
    if not user:
        raise NotFoundError("User not found", code="USER_NOT_FOUND")
    return user


class RoleChecker:
    """
    Dependency factory for checking user roles.

    Usage: Depends(RoleChecker([UserRole.SYSTEM_ADMIN]))
    """
    def __init__(self, allowed_roles: List[UserRole]):
        self.allowed_roles = allowed_roles

    def __call__(self, current_user: TokenPayload = Depends(get_current_user)) -> TokenPayload:
        if current_user.role not in self.allowed_roles:
            raise ForbiddenError("Administrator privileges required")
        return current_user


require_system_admin = RoleChecker([UserRole.SYSTEM_ADMIN])
