from __future__ import annotations

from typing import Iterator

import pytest
from sqlmodel import SQLModel

from nulltasker.db.session import create_tables, get_engine
from nulltasker.models import Project, Ticket
from nulltasker.repositories import SqlProjectRepository, SqlTicketRepository


@pytest.fixture
def engine(tmp_path) -> Iterator:
    engine = get_engine(f"sqlite:///{tmp_path / 'test.db'}")
    create_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def tickets(engine) -> SqlTicketRepository:
    return SqlTicketRepository(engine)


@pytest.fixture
def projects(engine) -> SqlProjectRepository:
    return SqlProjectRepository(engine)


def _scalar(engine, sql: str, *params):
    with engine.connect() as connection:
        return connection.exec_driver_sql(sql, params).scalar()


def test_schema_has_expected_tables_and_indexes(engine) -> None:
    assert {"tickets", "projects"} <= set(SQLModel.metadata.tables)
    with engine.connect() as connection:
        indexes = {row[1] for row in connection.exec_driver_sql("PRAGMA index_list('tickets')")}
        triggers = {
            row[0]
            for row in connection.exec_driver_sql(
                "SELECT name FROM sqlite_master WHERE type = 'trigger'"
            )
        }
    for column in ("project", "assignee", "status", "priority", "parent_task", "due_date",
                   "created_at"):
        assert f"ix_tickets_{column}" in indexes
    assert triggers == {"update_tickets_timestamp", "update_projects_timestamp"}


def test_foreign_keys_are_enforced_per_connection(engine) -> None:
    assert _scalar(engine, "PRAGMA foreign_keys") == 1


def test_deleting_parent_row_sets_children_to_null(engine, tickets) -> None:
    parent = tickets.create(Ticket(project="default", title="Parent"))
    child = tickets.create(Ticket(project="default", title="Child", parent_task=parent.id))

    # Bypass the repository: the foreign key alone must clear the reference
    with engine.begin() as connection:
        connection.exec_driver_sql("DELETE FROM tickets WHERE id = ?", (parent.id,))

    stored = tickets.get_by_id(child.id)
    assert stored is not None
    assert stored.parent_task is None


def test_trigger_refreshes_updated_at_on_raw_update(engine, tickets) -> None:
    ticket = tickets.create(Ticket(project="default", title="Raw", updated_at="2000-01-01T00:00:00+00:00"))

    with engine.begin() as connection:
        connection.exec_driver_sql("UPDATE tickets SET title = 'Changed' WHERE id = ?", (ticket.id,))

    stored = tickets.get_by_id(ticket.id)
    assert stored.title == "Changed"
    assert stored.updated_at > "2000-01-01T00:00:00+00:00"


def test_repository_update_is_partial(tickets) -> None:
    ticket = tickets.create(Ticket(project="default", title="T", tags=["a", "b"], progress=10))

    updated = tickets.update(ticket.id, {"progress": 50, "unknown_field": "ignored"})

    assert updated.progress == 50
    assert updated.tags == ["a", "b"]
    assert updated.title == "T"
    assert tickets.update("task_missing", {"progress": 1}) is None


def test_repository_delete_and_children(tickets) -> None:
    parent = tickets.create(Ticket(project="default", title="Parent"))
    first = tickets.create(Ticket(project="default", title="C1", parent_task=parent.id))
    second = tickets.create(Ticket(project="default", title="C2", parent_task=parent.id))

    assert [t.id for t in tickets.children_of(parent.id)] == [first.id, second.id]
    assert tickets.delete(parent.id) is True
    assert tickets.children_of(parent.id) == []
    assert tickets.get_by_id(first.id).parent_task is None
    assert tickets.delete(parent.id) is False


def test_find_by_title_is_scoped_to_project(tickets) -> None:
    tickets.create(Ticket(project="a", title="Same"))

    assert tickets.find_by_title("a", "Same") is not None
    assert tickets.find_by_title("b", "Same") is None


def test_project_json_columns_roundtrip(projects) -> None:
    project = projects.create(
        Project(name="P", owner="u1", members=["u1"], admins=["u1"], settings={"notifications": True})
    )

    projects.add_member(project.id, "u2")
    projects.add_admin(project.id, "u2")
    projects.update(project.id, {"settings": {"notifications": False, "categories": ["Ops"]}})

    stored = projects.get_by_id(project.id)
    assert stored.members == ["u1", "u2"]
    assert stored.admins == ["u1", "u2"]
    assert stored.settings == {"notifications": False, "categories": ["Ops"]}

    projects.remove_member(project.id, "u2")
    stored = projects.get_by_id(project.id)
    assert stored.members == ["u1"]
    assert stored.admins == ["u1"]

    assert projects.delete(project.id) is True
    assert projects.get_by_id(project.id) is None
