from typing import Annotated, List, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr, StringConstraints
from pydantic.alias_generators import to_camel

from nulltasker.core.constants import (
    DISPLAY_NAME_MAX_LENGTH,
    DISPLAY_NAME_MIN_LENGTH,
    validate_password_rules,
)
from nulltasker.models.user import UserRole

DisplayName = Annotated[
    str,
    StringConstraints(
        strip_whitespace=True,
        min_length=DISPLAY_NAME_MIN_LENGTH,
        max_length=DISPLAY_NAME_MAX_LENGTH,
    ),
]

# Password complexity is checked at the boundary, before anything is hashed
Password = Annotated[str, AfterValidator(validate_password_rules)]


class CamelModel(BaseModel):
    """Accepts and emits camelCase keys (displayName, lastLogin, ...)."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# Properties to return to client (never includes the password hash)
class UserRead(CamelModel):
    id: str
    display_name: str
    email: str
    role: UserRole
    projects: List[str] = []
    created_at: Optional[str] = None
    last_login: Optional[str] = None


# Admin: create a user with an explicit role
class AdminUserCreate(CamelModel):
    display_name: DisplayName
    email: EmailStr
    role: UserRole = UserRole.USER
    password: Password


# Admin: partial update, unset fields keep their value
class AdminUserUpdate(CamelModel):
    display_name: Optional[DisplayName] = None
    email: Optional[EmailStr] = None
    role: Optional[UserRole] = None
    password: Optional[Password] = None


class ProfileUpdate(CamelModel):
    display_name: DisplayName
    email: EmailStr


class PasswordChange(CamelModel):
    current_password: Annotated[str, StringConstraints(min_length=1)]
    new_password: Password
