"""
SQL table storage for tickets and projects (SQLModel over SQLite).

Each operation runs in its own short-lived Session. Returned objects are
detached from the session but fully loaded.
"""
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from nulltasker.core.errors import StorageError
from nulltasker.models import Project, Ticket, utc_now
from nulltasker.repositories.base import ProjectRepository, TicketRepository

logger = logging.getLogger(__name__)

TICKET_FIELDS = set(Ticket.model_fields) - {"id", "created_at"}
PROJECT_FIELDS = set(Project.model_fields) - {"id", "created_at"}


class _SqlRepository:
    def __init__(self, engine: Engine):
        self.engine = engine

    @contextmanager
    def _session(self) -> Iterator[Session]:
        try:
            with Session(self.engine) as session:
                yield session
        except SQLAlchemyError:
            logger.exception("Database operation failed")
            raise StorageError()


class SqlTicketRepository(_SqlRepository, TicketRepository):

    def list(self, project=None, assignee=None, status=None, priority=None,
             parent_task=None) -> List[Ticket]:
        statement = select(Ticket)
        if project is not None:
            statement = statement.where(Ticket.project == project)
        if assignee is not None:
            statement = statement.where(Ticket.assignee == assignee)
        if status is not None:
            statement = statement.where(Ticket.status == status)
        if priority is not None:
            statement = statement.where(Ticket.priority == priority)
        if parent_task is not None:
            statement = statement.where(Ticket.parent_task == parent_task)
        statement = statement.order_by(Ticket.created_at.desc())
        with self._session() as session:
            return list(session.exec(statement).all())

    def get_by_id(self, ticket_id: str) -> Optional[Ticket]:
        with self._session() as session:
            return session.get(Ticket, ticket_id)

    def find_by_title(self, project: str, title: str) -> Optional[Ticket]:
        with self._session() as session:
            statement = select(Ticket).where(Ticket.project == project, Ticket.title == title)
            return session.exec(statement).first()

    def create(self, ticket: Ticket) -> Ticket:
        with self._session() as session:
            session.add(ticket)
            session.commit()
            session.refresh(ticket)
            return ticket

    def update(self, ticket_id: str, changes: Dict[str, Any]) -> Optional[Ticket]:
        with self._session() as session:
            ticket = session.get(Ticket, ticket_id)
            if not ticket:
                return None
            for key, value in changes.items():
                if key in TICKET_FIELDS:
                    setattr(ticket, key, value)
            ticket.updated_at = utc_now()
            session.add(ticket)
            session.commit()
            session.refresh(ticket)
            return ticket

    def delete(self, ticket_id: str) -> bool:
        with self._session() as session:
            ticket = session.get(Ticket, ticket_id)
            if not ticket:
                return False
            # The foreign key does the same; doing it explicitly keeps the
            # behaviour when foreign keys are not enforced by the connection
            children = session.exec(select(Ticket).where(Ticket.parent_task == ticket_id)).all()
            for child in children:
                child.parent_task = None
                child.updated_at = utc_now()
                session.add(child)
            session.flush()
            session.delete(ticket)
            session.commit()
            return True

    def delete_by_project(self, project_id: str) -> int:
        with self._session() as session:
            tickets = session.exec(select(Ticket).where(Ticket.project == project_id)).all()
            for ticket in tickets:
                session.delete(ticket)
            session.commit()
            return len(tickets)


class SqlProjectRepository(_SqlRepository, ProjectRepository):

    def list(self) -> List[Project]:
        with self._session() as session:
            statement = select(Project).order_by(Project.created_at.desc())
            return list(session.exec(statement).all())

    def get_by_id(self, project_id: str) -> Optional[Project]:
        with self._session() as session:
            return session.get(Project, project_id)

    def create(self, project: Project) -> Project:
        with self._session() as session:
            session.add(project)
            session.commit()
            session.refresh(project)
            return project

    def update(self, project_id: str, changes: Dict[str, Any]) -> Optional[Project]:
        with self._session() as session:
            project = session.get(Project, project_id)
            if not project:
                return None
            for key, value in changes.items():
                if key in PROJECT_FIELDS:
                    # Assign fresh containers so JSON columns are flagged dirty
                    if isinstance(value, list):
                        value = list(value)
                    elif isinstance(value, dict):
                        value = dict(value)
                    setattr(project, key, value)
            project.updated_at = utc_now()
            session.add(project)
            session.commit()
            session.refresh(project)
            return project

    def delete(self, project_id: str) -> bool:
        with self._session() as session:
            project = session.get(Project, project_id)
            if not project:
                return False
            session.delete(project)
            session.commit()
            return True
