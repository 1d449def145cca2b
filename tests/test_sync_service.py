# tests/test_sync_service.py
# Remote persistence: ordering, failure reporting, refresh semantics.

from __future__ import annotations

import threading
import time

import pytest

from trackhub.errors import SyncError
from trackhub.models.entities import Project, Task, User
from trackhub.services.entity_store import EntityStore
from trackhub.services.sync_service import Session, SyncService


def test_mutations_reach_remote_in_order(store, remote):
    p = store.add_project(name="Website")
    t = store.add_task(project_id=p.id, name="Checkout")
    u = store.add_update(entity_type="task", entity_id=t.id, message="Started")
    assert store.flush() == []
    assert remote.write_calls() == [("insert_project", p.id), ("insert_task", t.id), ("insert_update", u.id)]
    assert remote.data["tasks"][t.id] == t


def test_failed_remote_call_keeps_local_change(store, remote):
    p = store.add_project(name="Website")
    remote.fail_on["insert_task"] = ConnectionError("offline")
    t = store.add_task(project_id=p.id, name="Checkout")

    failures = store.flush()

    assert store.get_task(t.id) == t
    assert len(failures) == 1
    assert isinstance(failures[0], SyncError)
    assert failures[0].failed == [f"insert_task:{t.id}"]
    assert isinstance(failures[0].__cause__, ConnectionError)
    assert store.last_sync_error is failures[0]
    assert t.id not in remote.data["tasks"]


def test_submit_future_carries_sync_error(sync, remote):
    remote.fail_on["delete_project"] = RuntimeError("500")
    fut = sync.call("delete_project", "p1")
    assert isinstance(fut.exception(timeout=5), SyncError)
    assert sync.failures() == [fut.exception()]
    sync.clear_failures()
    assert sync.failures() == []


def test_delete_runs_bottom_up_as_one_job(store, remote):
    p = store.add_project(name="P")
    t = store.add_task(project_id=p.id, name="T")
    s = store.add_subtask(task_id=t.id, name="S")
    us = store.add_update(entity_type="subtask", entity_id=s.id, message="on s")
    ut = store.add_update(entity_type="task", entity_id=t.id, message="on t")
    up = store.add_update(entity_type="project", entity_id=p.id, message="on p")
    store.flush()
    remote.calls.clear()

    store.delete_project(p.id)
    store.flush()

    assert remote.write_calls() == [
        ("delete_update", us.id),
        ("delete_subtask", s.id),
        ("delete_update", ut.id),
        ("delete_task", t.id),
        ("delete_update", up.id),
        ("delete_project", p.id),
    ]
    assert all(not remote.data[c] for c in ("projects", "tasks", "subtasks", "updates"))


def test_delete_job_stops_at_first_failure(store, remote):
    p = store.add_project(name="P")
    t = store.add_task(project_id=p.id, name="T")
    store.flush()
    remote.calls.clear()
    remote.fail_on["delete_task"] = ConnectionError("offline")

    store.delete_project(p.id)
    failures = store.flush()

    assert remote.write_calls() == [("delete_task", t.id)]
    assert p.id in remote.data["projects"]
    assert len(failures) == 1
    assert store.get_project(p.id) is None


def test_refresh_loads_remote_state(store, remote):
    p = Project(id="p1", name="Remote", created_at="2024-01-01T00:00:00+00:00", updated_at="2024-01-01T00:00:00+00:00")
    remote.data["projects"][p.id] = p
    remote.data["users"]["u1"] = User(id="u1", email="a@x.io", first_name="Ada", department="Product Development")
    remote.data["users"]["u2"] = User(id="u2", email="b@x.io", department="Sales")

    loading = []
    refreshed = []
    store.loadingChanged.connect(loading.append)
    store.refreshed.connect(lambda: refreshed.append(True))

    result = store.refresh_data()

    assert result.ok and result.code == "refreshed" and result.error is None
    assert store.projects == (p,)
    assert store.has_loaded
    assert loading == [True, False]
    assert refreshed == [True]
    assert [u.id for u in store.get_users(department="Product Development")] == ["u1"]
    assert len(store.get_users()) == 2
    # empty remote vocabularies leave the current lists alone
    assert [t.name for t in store.task_types] == ["Bug", "Feature", "Discovery"]


def test_refresh_is_idempotent(store, remote):
    p = store.add_project(name="Website")
    store.add_task(project_id=p.id, name="Checkout")
    store.refresh_data()
    first = (store.projects, store.tasks, store.subtasks, store.updates, store.categories)
    store.refresh_data()
    assert (store.projects, store.tasks, store.subtasks, store.updates, store.categories) == first


def test_refresh_sees_queued_writes(store, remote):
    p = store.add_project(name="Website")
    result = store.refresh_data()
    assert result.ok
    assert store.projects == (p,)


def test_partial_refresh_failure_keeps_previous_state(store, remote):
    p = store.add_project(name="Website")
    assert store.refresh_data().ok
    before = (store.projects, store.tasks)

    remote.data["projects"]["p2"] = Project(id="p2", name="New", created_at="x", updated_at="x")
    remote.fail_fetch = {"tasks", "users"}
    failed = []
    store.syncFailed.connect(failed.append)

    result = store.refresh_data()

    assert not result.ok
    assert result.code == "failed"
    assert isinstance(result.error, SyncError)
    assert result.error.failed == ["tasks", "users"]
    assert store.error is result.error
    assert (store.projects, store.tasks) == before
    assert store.has_loaded
    assert store.loading is False
    assert failed and "tasks" in failed[0]

    remote.fail_fetch = set()
    assert store.refresh_data().ok
    assert store.error is None
    assert {x.id for x in store.projects} == {p.id, "p2"}


def test_refresh_requires_session(sync, remote):
    store = EntityStore(sync, session=Session())
    result = store.refresh_data()
    assert result.code == "not_authenticated"
    assert not result.ok
    assert remote.calls == []


def test_refresh_drops_orphaned_rows(store, remote):
    remote.data["tasks"]["t9"] = Task(id="t9", project_id="gone", name="Orphan", created_at="x", updated_at="x")
    assert store.refresh_data().ok
    assert store.tasks == ()


def test_slow_remote_times_out(remote):
    remote.gate = threading.Event()
    sync = SyncService(remote, timeout=0.05, refresh_timeout=0.05)
    try:
        sync.call("insert_project", Project(id="p1", name="Slow", created_at="x", updated_at="x"))
        with pytest.raises(SyncError):
            sync.flush()
        with pytest.raises(SyncError, match="timed out"):
            sync.fetch_snapshot()
    finally:
        remote.gate.set()
        sync.close()


def test_closed_service_rejects_work(sync):
    sync.close()
    with pytest.raises(SyncError):
        sync.call("insert_project", "p1")
    with pytest.raises(SyncError):
        sync.fetch_snapshot()


def test_stuck_write_is_reported_as_timeout(remote):
    remote.gate = threading.Event()
    sync = SyncService(remote, timeout=0.2, refresh_timeout=5.0)
    store = EntityStore(sync, session=Session("u1"))
    try:
        p = store.add_project(name="Slow")
        for _ in range(100):
            if store.last_sync_error is not None:
                break
            time.sleep(0.02)

        err = store.last_sync_error
        assert isinstance(err, SyncError)
        assert "timed out" in str(err)
        assert err.failed == [f"insert_project:{p.id}"]
        assert sync.failures() == [err]
        assert store.get_project(p.id) == p

        remote.gate.set()
        assert sync.flush(timeout=5) == [err]
        # the late completion is not reported a second time
        assert sync.failures() == [err]
    finally:
        remote.gate.set()
        store.close()


def test_flush_reports_only_new_failures(store, remote):
    remote.fail_on["insert_project"] = ConnectionError("down")
    store.add_project(name="Lost")
    first = store.flush()
    assert len(first) == 1

    remote.fail_on.clear()
    store.add_project(name="Saved")
    assert store.flush() == []
    assert store.flush() == []
    assert store.last_sync_error is first[0]


def test_empty_vocabulary_fetch_keeps_current_lists(store, remote):
    research = store.add_category("Research")
    for c in store.categories:
        if c.id != research.id:
            store.delete_category(c.id)
    store.flush()
    remote.data["categories"].clear()

    assert store.refresh_data().ok
    assert store.categories == (research,)
    assert [t.name for t in store.task_types] == ["Bug", "Feature", "Discovery"]

    store.delete_category(research.id)
    assert store.refresh_data().ok
    assert store.categories == ()
