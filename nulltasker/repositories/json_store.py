"""
JSON document storage.

Each collection lives in one file under the data directory, wrapped with a
``lastUpdated`` timestamp::

    {"users": [...], "lastUpdated": "2026-01-01T00:00:00+00:00"}

Every operation re-reads the file; every mutation writes a temporary file next
to the target and swaps it in with ``os.replace`` so readers never observe a
half-written document. Concurrent writers are last-write-wins.
"""
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar

from sqlmodel import SQLModel

from nulltasker.core.constants import default_system_settings
from nulltasker.core.errors import StorageError
from nulltasker.models import Project, Ticket, User, utc_now
from nulltasker.repositories.base import (
    ProjectRepository,
    SettingsRepository,
    TicketRepository,
    UserRepository,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=SQLModel)

USERS_FILE = "users.json"
TICKETS_FILE = "tickets.json"
PROJECTS_FILE = "projects.json"
SETTINGS_FILE = "settings.json"


class JsonDocument:
    """A single JSON file with atomic replace-on-write."""

    def __init__(self, path: Path, default_factory: Callable[[], Dict[str, Any]]):
        self.path = Path(path)
        self.default_factory = default_factory

    def exists(self) -> bool:
        return self.path.exists()

    def read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return self.default_factory()
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError):
            logger.exception("Failed to read %s", self.path)
            raise StorageError()
        if not isinstance(data, dict):
            logger.error("Unexpected document shape in %s", self.path)
            raise StorageError()
        return data

    def write(self, data: Dict[str, Any]) -> Dict[str, Any]:
        data["lastUpdated"] = utc_now()
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.path)
        except OSError:
            logger.exception("Failed to write %s", self.path)
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StorageError()
        return data


class _JsonCollection:
    """Records of one model type stored under ``key`` in a JsonDocument."""

    model: Type[SQLModel]
    key: str

    def __init__(self, directory: Path, filename: str):
        self.document = JsonDocument(
            Path(directory) / filename, lambda: {self.key: []}
        )

    def _load(self) -> List[Dict[str, Any]]:
        records = self.document.read().get(self.key, [])
        return list(records)

    def _save(self, records: List[Dict[str, Any]]) -> None:
        data = self.document.read()
        data[self.key] = records
        self.document.write(data)

    def _to_model(self, record: Dict[str, Any]):
        return self.model.model_validate(record)

    @staticmethod
    def _to_record(item: SQLModel) -> Dict[str, Any]:
        return item.model_dump(mode="json")

    def _all(self) -> list:
        return [self._to_model(r) for r in self._load()]

    def _find(self, predicate) -> Optional[Any]:
        for record in self._load():
            if predicate(record):
                return self._to_model(record)
        return None

    def _insert(self, item: SQLModel):
        records = self._load()
        records.append(self._to_record(item))
        self._save(records)
        return self._to_model(records[-1])

    def _update(self, item_id: str, changes: Dict[str, Any], stamp: Optional[str] = None):
        records = self._load()
        for index, record in enumerate(records):
            if record.get("id") != item_id:
                continue
            merged = {**record, **changes}
            merged["id"] = record["id"]  # id is immutable
            if stamp:
                merged[stamp] = utc_now()
            # Round-trip through the model to validate and normalize the record
            model = self._to_model(merged)
            records[index] = self._to_record(model)
            self._save(records)
            return model
        return None

    def _delete(self, item_id: str) -> bool:
        records = self._load()
        remaining = [r for r in records if r.get("id") != item_id]
        if len(remaining) == len(records):
            return False
        self._save(remaining)
        return True


class JsonUserRepository(_JsonCollection, UserRepository):
    model = User
    key = "users"

    def __init__(self, directory: Path):
        super().__init__(directory, USERS_FILE)

    def list(self) -> List[User]:
        return self._all()

    def get_by_id(self, user_id: str) -> Optional[User]:
        return self._find(lambda r: r.get("id") == user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        wanted = email.lower()
        return self._find(lambda r: str(r.get("email", "")).lower() == wanted)

    def get_by_display_name(self, display_name: str) -> Optional[User]:
        return self._find(lambda r: r.get("display_name") == display_name)

    def create(self, user: User) -> User:
        return self._insert(user)

    def update(self, user_id: str, changes: Dict[str, Any]) -> Optional[User]:
        return self._update(user_id, changes)

    def delete(self, user_id: str) -> bool:
        return self._delete(user_id)

    def remove_project_from_all(self, project_id: str) -> int:
        records = self._load()
        touched = 0
        for record in records:
            projects = record.get("projects") or []
            if project_id in projects:
                record["projects"] = [p for p in projects if p != project_id]
                touched += 1
        if touched:
            self._save(records)
        return touched


class JsonTicketRepository(_JsonCollection, TicketRepository):
    model = Ticket
    key = "tickets"

    def __init__(self, directory: Path):
        super().__init__(directory, TICKETS_FILE)

    def list(self, project=None, assignee=None, status=None, priority=None,
             parent_task=None) -> List[Ticket]:
        filters = {
            "project": project,
            "assignee": assignee,
            "status": status,
            "priority": priority,
            "parent_task": parent_task,
        }
        active = {k: v for k, v in filters.items() if v is not None}
        tickets = [
            t for t in self._all()
            if all(getattr(t, k) == v for k, v in active.items())
        ]
        return sorted(tickets, key=lambda t: t.created_at or "", reverse=True)

    def get_by_id(self, ticket_id: str) -> Optional[Ticket]:
        return self._find(lambda r: r.get("id") == ticket_id)

    def find_by_title(self, project: str, title: str) -> Optional[Ticket]:
        return self._find(lambda r: r.get("project") == project and r.get("title") == title)

    def create(self, ticket: Ticket) -> Ticket:
        return self._insert(ticket)

    def update(self, ticket_id: str, changes: Dict[str, Any]) -> Optional[Ticket]:
        return self._update(ticket_id, changes, stamp="updated_at")

    def delete(self, ticket_id: str) -> bool:
        records = self._load()
        remaining = [r for r in records if r.get("id") != ticket_id]
        if len(remaining) == len(records):
            return False
        now = utc_now()
        for record in remaining:
            if record.get("parent_task") == ticket_id:
                record["parent_task"] = None
                record["updated_at"] = now
        self._save(remaining)
        return True

    def delete_by_project(self, project_id: str) -> int:
        records = self._load()
        doomed = {r.get("id") for r in records if r.get("project") == project_id}
        if not doomed:
            return 0
        remaining = [r for r in records if r.get("id") not in doomed]
        for record in remaining:
            if record.get("parent_task") in doomed:
                record["parent_task"] = None
        self._save(remaining)
        return len(doomed)


class JsonProjectRepository(_JsonCollection, ProjectRepository):
    model = Project
    key = "projects"

    def __init__(self, directory: Path):
        super().__init__(directory, PROJECTS_FILE)

    def list(self) -> List[Project]:
        return sorted(self._all(), key=lambda p: p.created_at or "", reverse=True)

    def get_by_id(self, project_id: str) -> Optional[Project]:
        return self._find(lambda r: r.get("id") == project_id)

    def create(self, project: Project) -> Project:
        return self._insert(project)

    def update(self, project_id: str, changes: Dict[str, Any]) -> Optional[Project]:
        return self._update(project_id, changes, stamp="updated_at")

    def delete(self, project_id: str) -> bool:
        return self._delete(project_id)


class JsonSettingsRepository(SettingsRepository):
    """settings.json is a single flat document rather than a collection."""

    def __init__(self, directory: Path):
        self.document = JsonDocument(Path(directory) / SETTINGS_FILE, default_system_settings)

    def ensure(self) -> None:
        if not self.document.exists():
            self.document.write(default_system_settings())

    def get(self) -> Dict[str, Any]:
        return self.document.read()

    def update(self, changes: Dict[str, Any]) -> Dict[str, Any]:
        data = self.document.read()
        data.update({k: v for k, v in changes.items() if k != "lastUpdated"})
        return self.document.write(data)
