# tests/test_updates_viewmodel.py
from __future__ import annotations

from datetime import timezone

import pytest

from trackhub.models.entities import User
from trackhub.viewmodels.updates_viewmodel import UpdatesViewModel


@pytest.fixture()
def tree(store, remote):
    remote.data["users"]["u1"] = User(id="u1", email="ada@example.com", first_name="Ada", last_name="L")
    p = store.add_project(name="Website")
    t = store.add_task(project_id=p.id, name="Checkout")
    s = store.add_subtask(task_id=t.id, name="Address form")
    store.add_update(entity_type="project", entity_id=p.id, message="Kickoff")
    store.add_update(entity_type="subtask", entity_id=s.id, message="Started", user_id="u7")
    assert store.refresh_data().ok
    return p, t, s


def test_rows_are_labelled_and_newest_first(store, tree):
    p, _t, s = tree
    vm = UpdatesViewModel(store, tz=timezone.utc)
    vm.set_entity("project", p.id)

    rows = vm.rows()

    assert [r["message"] for r in rows] == ["Started", "Kickoff"]
    assert rows[0]["level_label"] == "Subtask"
    assert rows[0]["entity_name"] == "Address form"
    assert rows[0]["author"] == "u7"
    assert rows[1]["author"] == "Ada L"
    assert " at " in rows[1]["when"]
    assert [r["message"] for r in vm.rows(include_descendants=False)] == ["Kickoff"]


def test_grouped_by_level(store, tree):
    p, _t, _s = tree
    vm = UpdatesViewModel(store)
    vm.set_entity("project", p.id)
    groups = vm.grouped()
    assert [r["message"] for r in groups["project"]] == ["Kickoff"]
    assert groups["task"] == []
    assert [r["message"] for r in groups["subtask"]] == ["Started"]


def test_post_notifies_and_uses_selected_entity(store, tree):
    _p, t, _s = tree
    vm = UpdatesViewModel(store)
    hits = []
    vm.changed.connect(lambda: hits.append(1))
    vm.set_entity("task", t.id)
    update = vm.post("Review booked")
    assert update.entity_id == t.id
    assert update.user_id == "u1"
    assert len(hits) == 2
    assert vm.rows()[0]["message"] == "Review booked"


def test_no_selection(store):
    vm = UpdatesViewModel(store)
    assert vm.rows() == []
    with pytest.raises(ValueError):
        vm.post("hello")
