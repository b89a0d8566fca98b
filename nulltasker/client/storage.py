"""
Client-side session persistence: access token, refresh token and the cached
user profile.
"""
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Optional

from nulltasker.core.errors import StorageError
from nulltasker.repositories.json_store import JsonDocument


class SessionStoreError(Exception):
    """The local session file could not be read or written."""


@dataclass
class SessionState:
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    user: Optional[Dict[str, Any]] = field(default=None)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.access_token)


class SessionStore(ABC):
    @abstractmethod
    def load(self) -> SessionState:
        ...

    @abstractmethod
    def save(self, state: SessionState) -> None:
        ...

    @abstractmethod
    def clear(self) -> None:
        ...

    def update(self, **changes) -> SessionState:
        state = replace(self.load(), **changes)
        self.save(state)
        return state


class MemorySessionStore(SessionStore):
    """Session that lives as long as the process."""

    def __init__(self) -> None:
        self._state = SessionState()

    def load(self) -> SessionState:
        return replace(self._state)

    def save(self, state: SessionState) -> None:
        self._state = replace(state)

    def clear(self) -> None:
        self._state = SessionState()


class FileSessionStore(SessionStore):
    """Session kept in a JSON file so it survives restarts."""

    def __init__(self, path: Path):
        self.document = JsonDocument(Path(path), lambda: {})

    def load(self) -> SessionState:
        try:
            data = self.document.read()
        except StorageError as exc:
            raise SessionStoreError(f"Cannot read session file {self.document.path}") from exc
        return SessionState(
            access_token=data.get("accessToken"),
            refresh_token=data.get("refreshToken"),
            user=data.get("user"),
        )

    def save(self, state: SessionState) -> None:
        values = asdict(state)
        try:
            self.document.write({
                "accessToken": values["access_token"],
                "refreshToken": values["refresh_token"],
                "user": values["user"],
            })
        except StorageError as exc:
            raise SessionStoreError(f"Cannot write session file {self.document.path}") from exc

    def clear(self) -> None:
        if self.document.exists():
            self.document.path.unlink()
