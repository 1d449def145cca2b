# Rev 0.1.0
# trackhub – SQLiteProjectRepository
from __future__ import annotations
from typing import Any, Dict, List

from ..models.entities import Project
from .base import SQLiteRepository


class SQLiteProjectRepository(SQLiteRepository):
    """
    Project rows. List columns (multi_assignee_ids, tags) are stored as JSON text.
    """

    table = "projects"

    def list_projects(self) -> List[Dict[str, Any]]:
        return self._fetch_all("SELECT * FROM projects ORDER BY created_at, id")

    def insert_project(self, project: Project) -> None:
        self._insert(project.to_row())

    def update_project(self, project: Project) -> bool:
        return self._update(project.to_row())

    def delete_project(self, project_id: str) -> bool:
        return self._delete(project_id)
