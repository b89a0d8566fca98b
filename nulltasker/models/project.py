"""
Project Model Module

This module defines the Project table. A project groups tickets and carries its
own membership lists and category/priority/status vocabulary.
"""
from typing import Any, Dict, List, Optional

from sqlalchemy import Column, JSON
from sqlmodel import Field, SQLModel

from nulltasker.models.base import generate_id, utc_now

# The distinguished project every user is enrolled in. It can never be deleted.
DEFAULT_PROJECT_ID = "default"


class Project(SQLModel, table=True):
    """
    Project model.

    Visibility:
    - System admins can see and manage every project
    - Other users only see projects whose member list contains their id

    Attributes:
        id: Opaque identifier ("project_<hex>", or "default")
        name: Project name (required)
        description: Free text description
        owner: User id of the owner; the owner is always a member
        members: Ordered list of unique member user ids (JSON column)
        admins: User ids with project-admin rights (JSON column)
        settings: Categories, priority and status definitions, notification flags (JSON column)
        created_at: ISO timestamp when the project was created
        updated_at: ISO timestamp of the last modification
    """
    __tablename__ = "projects"

    id: str = Field(default_factory=lambda: generate_id("project"), primary_key=True)
    name: str = Field(nullable=False, index=True)
    description: str = ""
    owner: str = Field(nullable=False, index=True)

    # Lists and settings are stored as JSON documents
    members: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    admins: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    settings: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))

    # Audit timestamps - updated_at is also maintained by a trigger on SQLite
    created_at: Optional[str] = Field(default_factory=utc_now)
    updated_at: Optional[str] = Field(default_factory=utc_now)
