# tests/test_sqlite_remote.py
# Store + SyncService against the real SQLite schema and repositories.

from __future__ import annotations

import dataclasses
from pathlib import Path

import pytest

from trackhub.app_context import AppContext
from trackhub.errors import SyncError
from trackhub.models.entities import Project
from trackhub.repositories.sqlite_project_repository import SQLiteProjectRepository
from trackhub.repositories.sqlite_reference_repository import SQLiteUserRepository
from trackhub.repositories.sqlite_subtask_repository import SQLiteSubtaskRepository
from trackhub.repositories.sqlite_task_repository import SQLiteTaskRepository
from trackhub.repositories.sqlite_updates_repository import SQLiteUpdatesRepository
from trackhub.services.entity_store import EntityStore
from trackhub.services.remote import SQLiteRemoteService
from trackhub.services.sync_service import Session, SyncService
from trackhub.tools.dev_seed import SEED_USER, seed_store
from trackhub.utils.config import load_settings


@pytest.fixture()
def sqlite_store(db):
    sync = SyncService(SQLiteRemoteService(db), timeout=5.0, refresh_timeout=5.0)
    store = EntityStore(sync, session=Session(user_id="u1"))
    yield store
    store.close()


def _by_id(items):
    return {x.id: x for x in items}


def test_migrations_are_tracked(db):
    assert set(db.applied()) == {"0001_init.sql", "0002_vocabularies.sql"}
    assert db.pending() == []
    assert db.run_migrations() == []


def test_state_survives_a_restart(tmp_path: Path):
    settings = load_settings(tmp_path / "missing-settings.json")
    path = tmp_path / "trackhub.db"

    ctx = AppContext.create(settings=settings, db_path=path, session=Session(user_id="u1"))
    try:
        store = ctx.store
        p = store.add_project(name="Website", tags=["web"], multi_assignee_ids=["u1", "u2"], progress=40)
        t = store.add_task(project_id=p.id, name="Checkout", priority="Very Low", deadline="2024-06-01")
        store.update_task(dataclasses.replace(t, status="done"))
        s = store.add_subtask(task_id=t.id, name="Address form")
        first = store.add_update(entity_type="subtask", entity_id=s.id, message="Started", tagged_user_ids=["u2"])
        store.add_update(entity_type="subtask", entity_id=s.id, message="Reply", comment_to=first.id)
        research = store.add_category("Research")
        assert store.flush() == []
        expected = {
            "projects": _by_id(store.projects),
            "tasks": _by_id(store.tasks),
            "subtasks": _by_id(store.subtasks),
            "updates": _by_id(store.updates),
        }
    finally:
        ctx.close()

    ctx = AppContext.create(settings=settings, db_path=path, session=Session(user_id="u1"))
    try:
        store = ctx.store
        assert store.refresh_data().ok
        assert _by_id(store.projects) == expected["projects"]
        assert _by_id(store.tasks) == expected["tasks"]
        assert _by_id(store.subtasks) == expected["subtasks"]
        assert _by_id(store.updates) == expected["updates"]
        assert research in store.categories
        assert {c.name for c in store.categories} >= {"Live Website", "Admin Portal", "Research"}
        assert store.get_related_updates("project", p.id)[0].message == "Reply"
    finally:
        ctx.close()


def test_cascade_reaches_the_database(db, sqlite_store):
    store = sqlite_store
    p = store.add_project(name="P")
    t = store.add_task(project_id=p.id, name="T")
    s = store.add_subtask(task_id=t.id, name="S")
    store.add_update(entity_type="subtask", entity_id=s.id, message="on s")
    store.add_update(entity_type="project", entity_id=p.id, message="on p")
    keep = store.add_project(name="Keep")
    store.add_update(entity_type="project", entity_id=keep.id, message="stays")
    store.flush()

    tasks = SQLiteTaskRepository(db)
    subtasks = SQLiteSubtaskRepository(db)
    assert [r["id"] for r in tasks.list_tasks()] == [t.id]
    assert [r["id"] for r in subtasks.list_subtasks()] == [s.id]

    store.delete_project(p.id)
    assert store.flush() == []

    assert [r["id"] for r in SQLiteProjectRepository(db).list_projects()] == [keep.id]
    assert tasks.list_tasks() == []
    assert subtasks.list_subtasks() == []
    updates = SQLiteUpdatesRepository(db).list_updates()
    assert [u["message"] for u in updates] == ["stays"]


def test_rows_come_back_in_creation_order(db, sqlite_store):
    store = sqlite_store
    p = store.add_project(name="P")
    t1 = store.add_task(project_id=p.id, name="T1")
    t2 = store.add_task(project_id=p.id, name="T2")
    for i in range(3):
        store.add_update(entity_type="task", entity_id=t1.id, message=f"note {i}")
    store.flush()

    assert [r["id"] for r in SQLiteTaskRepository(db).list_tasks()] == [t1.id, t2.id]
    updates = SQLiteUpdatesRepository(db)
    assert [r["message"] for r in updates.list_updates()] == ["note 2", "note 1", "note 0"]
    assert [r["message"] for r in updates.list_updates(order_desc=False)][0] == "note 0"
    assert SQLiteProjectRepository(db).list_projects()[0]["name"] == "P"


def test_update_of_unpersisted_row_fails(db):
    remote = SQLiteRemoteService(db)
    ghost = Project(id="ghost", name="Ghost", created_at="x", updated_at="x")
    with pytest.raises(LookupError):
        remote.update_project(ghost)

    sync = SyncService(remote)
    try:
        fut = sync.call("update_project", ghost)
        assert isinstance(fut.exception(timeout=5), SyncError)
    finally:
        sync.close()


def test_users_are_read_from_the_database(db, sqlite_store):
    SQLiteUserRepository(db).upsert_user(SEED_USER)
    SQLiteUserRepository(db).upsert_user({"id": "u9", "email": "sales@example.com", "department": "Sales"})
    assert sqlite_store.refresh_data().ok
    devs = sqlite_store.get_users(department="Product Development")
    assert [u.display_name for u in devs] == ["Dev User"]
    assert len(sqlite_store.get_users()) == 2


def test_dev_seed_populates_through_the_store(db, sqlite_store):
    seed_store(sqlite_store)
    assert sqlite_store.flush() == []
    assert sqlite_store.refresh_data().ok
    assert len(sqlite_store.projects) == 2
    site = next(p for p in sqlite_store.projects if p.name == "Website refresh")
    assert len(sqlite_store.get_related_updates("project", site.id)) == 2
