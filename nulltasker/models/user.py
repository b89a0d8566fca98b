"""
User Model Module

This module defines the User model and UserRole enumeration for authentication
and authorization throughout the application.
"""
from enum import Enum
from typing import List, Optional

from sqlmodel import Field, SQLModel

from nulltasker.models.base import generate_id, utc_now


class UserRole(str, Enum):
    """
    Enumeration of user roles.

    - USER: regular member of one or more projects (default for registrations)
    - PROJECT_ADMIN: administers projects it is listed on
    - SYSTEM_ADMIN: manages users, projects, settings and backups
    """
    USER = "user"
    PROJECT_ADMIN = "project_admin"
    SYSTEM_ADMIN = "system_admin"


class User(SQLModel):
    """
    User record as persisted in the credential store (users.json).

    Users are identified by an opaque id and authenticate with email/password.
    The id never changes after creation; email is unique across all users.

    Attributes:
        id: Opaque identifier ("user_<hex>"; the bootstrap administrator is "admin")
        display_name: Name shown in the UI, unique among users
        email: Login identity
        password: bcrypt hash, never returned by the API
        role: UserRole value
        projects: Ids of the projects this user belongs to
        created_at: ISO timestamp of account creation
        last_login: ISO timestamp of the last successful login, None until then
    """
    id: str = Field(default_factory=lambda: generate_id("user"))
    display_name: str
    email: str
    password: str
    role: UserRole = UserRole.USER
    projects: List[str] = Field(default_factory=list)
    created_at: str = Field(default_factory=utc_now)
    last_login: Optional[str] = None

    @property
    def is_system_admin(self) -> bool:
        return self.role == UserRole.SYSTEM_ADMIN
