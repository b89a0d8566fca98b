"""
Repository interfaces.

Endpoints talk to these abstractions only, so the JSON-document and the
SQL-table implementations can be swapped through configuration.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from nulltasker.models import Project, Ticket, User


class UserRepository(ABC):
    @abstractmethod
    def list(self) -> List[User]:
        ...

    @abstractmethod
    def get_by_id(self, user_id: str) -> Optional[User]:
        ...

    @abstractmethod
    def get_by_email(self, email: str) -> Optional[User]:
        ...

    @abstractmethod
    def get_by_display_name(self, display_name: str) -> Optional[User]:
        ...

    @abstractmethod
    def create(self, user: User) -> User:
        ...

    @abstractmethod
    def update(self, user_id: str, changes: Dict[str, Any]) -> Optional[User]:
        """Overwrite only the given fields. Returns None if the user is missing."""

    @abstractmethod
    def delete(self, user_id: str) -> bool:
        ...

    @abstractmethod
    def remove_project_from_all(self, project_id: str) -> int:
        """Drop a project id from every user's membership list."""

    def add_project(self, user_id: str, project_id: str) -> Optional[User]:
        user = self.get_by_id(user_id)
        if user is None:
            return None
        if project_id in user.projects:
            return user
        return self.update(user_id, {"projects": [*user.projects, project_id]})

    def remove_project(self, user_id: str, project_id: str) -> Optional[User]:
        user = self.get_by_id(user_id)
        if user is None:
            return None
        if project_id not in user.projects:
            return user
        return self.update(user_id, {"projects": [p for p in user.projects if p != project_id]})


class TicketRepository(ABC):
    @abstractmethod
    def list(
        self,
        project: Optional[str] = None,
        assignee: Optional[str] = None,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        parent_task: Optional[str] = None,
    ) -> List[Ticket]:
        """Tickets matching every given filter, newest first."""

    @abstractmethod
    def get_by_id(self, ticket_id: str) -> Optional[Ticket]:
        ...

    @abstractmethod
    def find_by_title(self, project: str, title: str) -> Optional[Ticket]:
        ...

    @abstractmethod
    def create(self, ticket: Ticket) -> Ticket:
        ...

    @abstractmethod
    def update(self, ticket_id: str, changes: Dict[str, Any]) -> Optional[Ticket]:
        """Coalesce update: fields absent from ``changes`` keep their value."""

    @abstractmethod
    def delete(self, ticket_id: str) -> bool:
        """Delete one ticket; children get ``parent_task = None``, never deleted."""

    @abstractmethod
    def delete_by_project(self, project_id: str) -> int:
        ...

    def children_of(self, ticket_id: str) -> List[Ticket]:
        children = self.list(parent_task=ticket_id)
        return sorted(children, key=lambda t: t.created_at or "")


class ProjectRepository(ABC):
    @abstractmethod
    def list(self) -> List[Project]:
        ...

    @abstractmethod
    def get_by_id(self, project_id: str) -> Optional[Project]:
        ...

    @abstractmethod
    def create(self, project: Project) -> Project:
        ...

    @abstractmethod
    def update(self, project_id: str, changes: Dict[str, Any]) -> Optional[Project]:
        ...

    @abstractmethod
    def delete(self, project_id: str) -> bool:
        ...

    def list_for_member(self, user_id: str) -> List[Project]:
        return [p for p in self.list() if user_id in p.members]

    def add_member(self, project_id: str, user_id: str) -> Optional[Project]:
        project = self.get_by_id(project_id)
        if project is None:
            return None
        if user_id in project.members:
            return project
        return self.update(project_id, {"members": [*project.members, user_id]})

    def remove_member(self, project_id: str, user_id: str) -> Optional[Project]:
        project = self.get_by_id(project_id)
        if project is None:
            return None
        return self.update(project_id, {
            "members": [m for m in project.members if m != user_id],
            "admins": [a for a in project.admins if a != user_id],
        })

    def add_admin(self, project_id: str, user_id: str) -> Optional[Project]:
        project = self.get_by_id(project_id)
        if project is None:
            return None
        if user_id in project.admins:
            return project
        return self.update(project_id, {"admins": [*project.admins, user_id]})

    def remove_admin(self, project_id: str, user_id: str) -> Optional[Project]:
        project = self.get_by_id(project_id)
        if project is None:
            return None
        return self.update(project_id, {"admins": [a for a in project.admins if a != user_id]})

    def remove_user_everywhere(self, user_id: str) -> int:
        """Strip a user from every member/admin list. Returns projects touched."""
        touched = 0
        for project in self.list():
            if user_id in project.members or user_id in project.admins:
                self.remove_member(project.id, user_id)
                touched += 1
        return touched


class SettingsRepository(ABC):
    @abstractmethod
    def get(self) -> Dict[str, Any]:
        ...

    @abstractmethod
    def update(self, changes: Dict[str, Any]) -> Dict[str, Any]:
        """Shallow-merge ``changes`` into the stored settings document."""
