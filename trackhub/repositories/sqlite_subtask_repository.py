# Rev 0.1.0
from __future__ import annotations
from typing import Any, Dict, List

from ..models.entities import SubTask
from .base import SQLiteRepository


class SQLiteSubtaskRepository(SQLiteRepository):
    """Subtask rows; task_id cascades from tasks."""

    table = "subtasks"

    def list_subtasks(self) -> List[Dict[str, Any]]:
        return self._fetch_all("SELECT * FROM subtasks ORDER BY created_at, id")

    def insert_subtask(self, subtask: SubTask) -> None:
        self._insert(subtask.to_row())

    def update_subtask(self, subtask: SubTask) -> bool:
        return self._update(subtask.to_row())

    def delete_subtask(self, subtask_id: str) -> bool:
        return self._delete(subtask_id)
