"""
Authentication Endpoints Module

This module provides registration, login, token refresh/verification and
logout. Tokens are stateless JWTs: logout only acknowledges, the client is
expected to discard its tokens.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, status

from nulltasker.api import deps
from nulltasker.core.errors import (
    AuthenticationError,
    ConflictError,
    ForbiddenError,
    InvalidTokenError,
    NotFoundError,
)
from nulltasker.core.security import TokenService, dummy_verify, get_password_hash, verify_password
from nulltasker.db.session import Storage, get_storage
from nulltasker.models import User, UserRole, utc_now
from nulltasker.schemas.auth import (
    AccessTokenResponse,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RefreshRequest,
    TokenPayload,
    UserRegister,
    ValidateTokenResponse,
)
from nulltasker.schemas.user import UserRead

logger = logging.getLogger(__name__)

router = APIRouter()

INVALID_CREDENTIALS_MESSAGE = "Incorrect email or password"


def ensure_identity_available(storage: Storage, email: Optional[str],
                              display_name: Optional[str] = None,
                              exclude_id: Optional[str] = None) -> None:
    """Raise ConflictError if the email (or display name) belongs to another user."""
    if email is not None:
        existing = storage.users.get_by_email(email)
        if existing and existing.id != exclude_id:
            raise ConflictError("A user with this email already exists.", code="EMAIL_EXISTS")
    if display_name is not None:
        existing = storage.users.get_by_display_name(display_name)
        if existing and existing.id != exclude_id:
            raise ConflictError("A user with this display name already exists.",
                                code="DISPLAY_NAME_EXISTS")


def enroll_in_default_project(storage: Storage, user: User, project_id: str) -> None:
    if storage.projects.get_by_id(project_id):
        storage.projects.add_member(project_id, user.id)


@router.post("/register", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def register_user(
    request: Request,
    user_in: UserRegister,
    storage: Storage = Depends(get_storage),
):
    """
    Register a new user account.

    The password is hashed before storage. New users get the USER role and are
    enrolled in the default project.

    Raises:
        ConflictError 409: email or display name already in use
    """
    ensure_identity_available(storage, user_in.email, user_in.display_name)

    default_project = request.app.state.settings.DEFAULT_PROJECT_ID
    user = storage.users.create(
        User(
            display_name=user_in.display_name,
            email=user_in.email,
            password=get_password_hash(user_in.password),
            role=UserRole.USER,
            projects=[default_project],
        )
    )
    enroll_in_default_project(storage, user, default_project)
    logger.info("Registered user %s", user.id)
    return user


@router.post("/login", response_model=LoginResponse)
def login(
    credentials: LoginRequest,
    storage: Storage = Depends(get_storage),
    tokens: TokenService = Depends(deps.get_token_service),
):
    """
    Authenticate a user and issue an access/refresh token pair.

    Unknown email and wrong password produce the same 401 response.
    """
    user = storage.users.get_by_email(credentials.email)
    if user is None:
        # Keep the response time of unknown users in line with real checks
        dummy_verify()
        logger.info("Failed login attempt")
        raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)
    if not verify_password(credentials.password, user.password):
        logger.info("Failed login attempt")
        raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)

    user = storage.users.update(user.id, {"last_login": utc_now()}) or user
    access_token = tokens.issue_access_token(user)
    refresh_token = tokens.issue_refresh_token(user.id, remember_me=credentials.remember_me)
    logger.info("User %s logged in", user.id)
    return LoginResponse(access_token=access_token, refresh_token=refresh_token,
                         user=UserRead.model_validate(user))


@router.post("/refresh", response_model=AccessTokenResponse)
def refresh_access_token(
    body: Optional[RefreshRequest] = None,
    storage: Storage = Depends(get_storage),
    tokens: TokenService = Depends(deps.get_token_service),
):
    """
    Issue a new access token from a refresh token.

    The access token reflects the user's current stored state; the refresh
    token itself is not rotated.
    """
    if body is None or not body.refresh_token:
        raise InvalidTokenError("Refresh token required", code="TOKEN_REQUIRED")
    try:
        claims = tokens.verify_refresh(body.refresh_token)
    except InvalidTokenError:
        raise ForbiddenError("Invalid refresh token", code="INVALID_TOKEN")

    user = storage.users.get_by_id(claims["id"])
    if user is None:
        raise NotFoundError("User not found", code="USER_NOT_FOUND")
    logger.info("Refreshed access token for user %s", user.id)
    return AccessTokenResponse(access_token=tokens.issue_access_token(user))


@router.post("/verify-token", response_model=ValidateTokenResponse)
def verify_token(
    token: Optional[str] = Depends(deps.reusable_oauth2),
    tokens: TokenService = Depends(deps.get_token_service),
):
    """Decode the bearer token. Missing token is 401, an invalid one 403."""
    if not token:
        raise InvalidTokenError("Access token required", code="TOKEN_REQUIRED")
    try:
        claims = tokens.verify(token)
    except InvalidTokenError:
        raise ForbiddenError("Invalid or expired token", code="INVALID_TOKEN")
    return ValidateTokenResponse(user=TokenPayload.model_validate(claims))


@router.post("/validate-token", response_model=ValidateTokenResponse)
def validate_token(current_user: TokenPayload = Depends(deps.get_current_user)):
    return ValidateTokenResponse(user=current_user)


@router.post("/logout", response_model=MessageResponse)
def logout(current_user: TokenPayload = Depends(deps.get_current_user)):
    """Acknowledge logout. Nothing is revoked server side."""
    logger.info("User %s logged out", current_user.id)
    return MessageResponse(message="Logged out")
