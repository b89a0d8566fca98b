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
from nulltasker.schemas.project import MembershipRequest, ProjectCreate, ProjectRead, ProjectUpdate
from nulltasker.schemas.ticket import TicketCreate, TicketRead, TicketUpdate
from nulltasker.schemas.user import (
    AdminUserCreate,
    AdminUserUpdate,
    PasswordChange,
    ProfileUpdate,
    UserRead,
)
