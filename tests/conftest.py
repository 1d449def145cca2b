# Rev 0.1.0

"""Pytest fixtures for trackhub (Rev 0.1.0)"""
from __future__ import annotations
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple

import pytest
from PySide6.QtCore import QCoreApplication

from trackhub.repositories.db import Database
from trackhub.services.entity_store import EntityStore
from trackhub.services.sync_service import Session, SyncService


_PLURAL = {
    "project": "projects",
    "task": "tasks",
    "subtask": "subtasks",
    "update": "updates",
    "category": "categories",
    "task_type": "task_types",
}


class StubRemote:
    """
    In-memory RemoteService. Records every call, can be told to fail a
    method (fail_on) or a fetch (fail_fetch), and can hold the worker on a
    gate Event to simulate a slow backend.
    """

    def __init__(self) -> None:
        self.data: Dict[str, Dict[str, Any]] = {
            name: {} for name in ("projects", "tasks", "subtasks", "updates", "users", "categories", "task_types")
        }
        self.calls: List[Tuple[str, Any]] = []
        self.fail_on: Dict[str, Exception] = {}
        self.fail_fetch: Set[str] = set()
        self.gate: Optional[threading.Event] = None

    def __getattr__(self, name: str):
        if name.startswith("_") or name == "data":
            raise AttributeError(name)
        verb, _, noun = name.partition("_")
        if verb == "fetch" and noun in self.data:
            return lambda: self._fetch(noun)
        if verb in ("insert", "update", "delete") and noun in _PLURAL:
            return lambda arg: self._write(name, verb, _PLURAL[noun], arg)
        raise AttributeError(name)

    def _wait(self) -> None:
        if self.gate is not None:
            self.gate.wait(5)

    def _fetch(self, collection: str) -> List[Any]:
        self._wait()
        self.calls.append((f"fetch_{collection}", None))
        if collection in self.fail_fetch:
            raise ConnectionError(f"{collection} unavailable")
        return list(self.data[collection].values())

    def _write(self, method: str, verb: str, collection: str, arg: Any) -> None:
        self._wait()
        self.calls.append((method, getattr(arg, "id", arg)))
        if method in self.fail_on:
            raise self.fail_on[method]
        if verb == "delete":
            self.data[collection].pop(arg, None)
        else:
            self.data[collection][arg.id] = arg

    def write_calls(self) -> List[Tuple[str, Any]]:
        return [c for c in self.calls if not c[0].startswith("fetch_")]


@pytest.fixture(scope="session", autouse=True)
def qapp():
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


@pytest.fixture()
def db(tmp_path: Path):
    database = Database(path=tmp_path / "test.db")
    try:
        database.run_migrations()
        yield database
    finally:
        database.close()


@pytest.fixture()
def remote() -> StubRemote:
    return StubRemote()


@pytest.fixture()
def sync(remote: StubRemote):
    service = SyncService(remote, timeout=5.0, refresh_timeout=5.0)
    yield service
    if remote.gate is not None:
        remote.gate.set()
    service.close()


@pytest.fixture()
def store(sync: SyncService) -> EntityStore:
    return EntityStore(sync, session=Session(user_id="u1"))
