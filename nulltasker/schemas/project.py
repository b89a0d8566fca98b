from typing import Annotated, Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

ProjectName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]


class ProjectCreate(BaseModel):
    name: ProjectName
    description: str = ""
    owner: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
    settings: Optional[Dict[str, Any]] = None


class ProjectUpdate(BaseModel):
    name: Optional[ProjectName] = None
    description: Optional[str] = None
    owner: Optional[str] = None
    settings: Optional[Dict[str, Any]] = None


class ProjectRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str = ""
    owner: str
    members: List[str] = []
    admins: List[str] = []
    settings: Dict[str, Any] = {}
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class MembershipRequest(BaseModel):
    """Body of the add-member / add-admin calls."""
    model_config = ConfigDict(populate_by_name=True)

    user_id: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)] = Field(
        alias="userId"
    )
