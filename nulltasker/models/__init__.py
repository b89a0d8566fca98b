from .base import generate_id, utc_now
from .user import User, UserRole
from .project import Project, DEFAULT_PROJECT_ID
from .ticket import Ticket, TaskPriority, TaskStatus

__all__ = [
    "User", "UserRole",
    "Project", "DEFAULT_PROJECT_ID",
    "Ticket", "TaskPriority", "TaskStatus",
    "generate_id", "utc_now",
]
