from .base import ProjectRepository, SettingsRepository, TicketRepository, UserRepository
from .json_store import (
    JsonDocument,
    JsonProjectRepository,
    JsonSettingsRepository,
    JsonTicketRepository,
    JsonUserRepository,
)
from .sql import SqlProjectRepository, SqlTicketRepository

__all__ = [
    "UserRepository", "TicketRepository", "ProjectRepository", "SettingsRepository",
    "JsonDocument",
    "JsonUserRepository", "JsonTicketRepository", "JsonProjectRepository", "JsonSettingsRepository",
    "SqlTicketRepository", "SqlProjectRepository",
]
