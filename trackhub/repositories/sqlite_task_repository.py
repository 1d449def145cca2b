# Rev 0.1.0
from __future__ import annotations

from typing import Any, Dict, List

from ..models.entities import Task
from .base import SQLiteRepository


class SQLiteTaskRepository(SQLiteRepository):
    """
    Task rows.
    project_id carries ON DELETE CASCADE, but callers delete children first.
    """

    table = "tasks"

    def list_tasks(self) -> List[Dict[str, Any]]:
        return self._fetch_all("SELECT * FROM tasks ORDER BY created_at, id")

    def insert_task(self, task: Task) -> None:
        self._insert(task.to_row())

    def update_task(self, task: Task) -> bool:
        return self._update(task.to_row())

    def delete_task(self, task_id: str) -> bool:
        return self._delete(task_id)
