from typing import Annotated, List, Optional

from pydantic import EmailStr, StringConstraints

from nulltasker.models.user import UserRole
from nulltasker.schemas.user import CamelModel, DisplayName, Password, UserRead


class UserRegister(CamelModel):
    display_name: DisplayName
    email: EmailStr
    password: Password


class LoginRequest(CamelModel):
    email: EmailStr
    password: Annotated[str, StringConstraints(min_length=1)]
    remember_me: bool = False


class LoginResponse(CamelModel):
    success: bool = True
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: UserRead


class RefreshRequest(CamelModel):
    # Optional so a missing token is reported as 401 rather than a body error
    refresh_token: Optional[str] = None


class AccessTokenResponse(CamelModel):
    success: bool = True
    access_token: str
    token_type: str = "bearer"


class TokenPayload(CamelModel):
    """Claims carried by an access token."""
    id: str
    display_name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[UserRole] = None
    projects: List[str] = []
    type: Optional[str] = None
    iat: Optional[int] = None
    exp: Optional[int] = None

    @property
    def is_system_admin(self) -> bool:
        return self.role == UserRole.SYSTEM_ADMIN


class ValidateTokenResponse(CamelModel):
    success: bool = True
    user: TokenPayload


class MessageResponse(CamelModel):
    success: bool = True
    message: str
