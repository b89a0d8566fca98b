"""
Storage context.

``open_storage`` builds every repository for the configured backend once, at
application startup; ``Storage.close`` releases the database engine at
shutdown. Request handlers receive the context through ``get_storage``.
"""
import logging
from pathlib import Path
from typing import Optional

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine

from nulltasker.core.config import Settings
from nulltasker.repositories.base import (
    ProjectRepository,
    SettingsRepository,
    TicketRepository,
    UserRepository,
)
from nulltasker.repositories.json_store import (
    JsonProjectRepository,
    JsonSettingsRepository,
    JsonTicketRepository,
    JsonUserRepository,
)
from nulltasker.repositories.sql import SqlProjectRepository, SqlTicketRepository

logger = logging.getLogger(__name__)

STORAGE_BACKENDS = ("sqlite", "json")

# Keep updated_at current for rows changed behind the application's back
# (e.g. parent_task cleared by ON DELETE SET NULL).
SQLITE_TRIGGERS = [
    """
    CREATE TRIGGER IF NOT EXISTS update_tickets_timestamp
    AFTER UPDATE ON tickets
    FOR EACH ROW WHEN NEW.updated_at IS OLD.updated_at
    BEGIN
        UPDATE tickets SET updated_at = strftime('%Y-%m-%dT%H:%M:%f+00:00', 'now')
        WHERE id = NEW.id;
    END
    """,
    """
    CREATE TRIGGER IF NOT EXISTS update_projects_timestamp
    AFTER UPDATE ON projects
    FOR EACH ROW WHEN NEW.updated_at IS OLD.updated_at
    BEGIN
        UPDATE projects SET updated_at = strftime('%Y-%m-%dT%H:%M:%f+00:00', 'now')
        WHERE id = NEW.id;
    END
    """,
]


def _set_sqlite_pragma(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()


def get_engine(db_url: str) -> Engine:
    """Create the SQLAlchemy engine for the ticket/project tables."""
    is_sqlite = db_url.startswith("sqlite")

    # SQLite fix for multithreading
    connect_args = {"check_same_thread": False} if is_sqlite else {}
    engine = create_engine(db_url, connect_args=connect_args)

    if is_sqlite:
        event.listen(engine, "connect", _set_sqlite_pragma)
    return engine


def create_tables(engine: Engine) -> None:
    SQLModel.metadata.create_all(engine)
    if engine.dialect.name == "sqlite":
        with engine.begin() as connection:
            for statement in SQLITE_TRIGGERS:
                connection.exec_driver_sql(statement)


class Storage:
    """Every repository the API needs, plus the engine lifecycle."""

    def __init__(
        self,
        users: UserRepository,
        tickets: TicketRepository,
        projects: ProjectRepository,
        settings: SettingsRepository,
        engine: Optional[Engine] = None,
        backend: str = "json",
    ):
        self.users = users
        self.tickets = tickets
        self.projects = projects
        self.settings = settings
        self.engine = engine
        self.backend = backend

    def close(self) -> None:
        if self.engine is not None:
            self.engine.dispose()
            logger.info("Database engine disposed")


def open_storage(config: Settings) -> Storage:
    """Build the storage context for ``config.STORAGE_BACKEND`` and seed it."""
    from nulltasker.db.init_db import init_storage

    backend = config.STORAGE_BACKEND.lower()
    if backend not in STORAGE_BACKENDS:
        raise ValueError(f"Unknown STORAGE_BACKEND '{config.STORAGE_BACKEND}'")

    data_dir: Path = config.data_path
    data_dir.mkdir(parents=True, exist_ok=True)

    # Users and settings are JSON documents in both variants
    users = JsonUserRepository(data_dir)
    settings_repo = JsonSettingsRepository(data_dir)

    engine = None
    if backend == "sqlite":
        engine = get_engine(config.database_url)
        create_tables(engine)
        tickets: TicketRepository = SqlTicketRepository(engine)
        projects: ProjectRepository = SqlProjectRepository(engine)
    else:
        tickets = JsonTicketRepository(data_dir)
        projects = JsonProjectRepository(data_dir)

    storage = Storage(users, tickets, projects, settings_repo, engine=engine, backend=backend)
    init_storage(storage, config)
    logger.info("Storage ready (backend=%s, data_dir=%s)", backend, data_dir)
    return storage


def get_storage(request: Request) -> Storage:
    return request.app.state.storage
