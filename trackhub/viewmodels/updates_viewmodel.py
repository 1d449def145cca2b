# Rev 0.1.0
from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Any, Dict, List, Optional, Union

from PySide6.QtCore import QObject, Signal

from ..models.types import EntityType
from .formatting import format_relative, format_timestamp, level_label


class UpdatesViewModel(QObject):
    """
    Timeline for one selected entity: its own updates plus those of every
    task/subtask below it, newest first, as display-ready rows.
    """

    changed = Signal()

    def __init__(self, store, *, tz: Optional[tzinfo] = None):
        super().__init__()
        self._store = store
        self._tz = tz
        self._entity_type: Optional[EntityType] = None
        self._entity_id: Optional[str] = None
        store.changed.connect(self._on_store_changed)
        store.refreshed.connect(self.changed)

    def set_entity(self, entity_type: Union[EntityType, str], entity_id: str) -> None:
        self._entity_type = EntityType(entity_type)
        self._entity_id = entity_id
        self.changed.emit()

    def clear(self) -> None:
        self._entity_type = None
        self._entity_id = None
        self.changed.emit()

    def _on_store_changed(self, collection: str) -> None:
        if self._entity_id is not None and collection in ("updates", "projects", "tasks", "subtasks", "users"):
            self.changed.emit()

    def _entity_name(self, level: EntityType, entity_id: str) -> str:
        getter = {
            EntityType.PROJECT: self._store.get_project,
            EntityType.TASK: self._store.get_task,
            EntityType.SUBTASK: self._store.get_subtask,
        }[level]
        entity = getter(entity_id)
        return entity.name if entity is not None else ""

    def rows(self, *, include_descendants: bool = True, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
        if self._entity_id is None:
            return []
        if include_descendants:
            tagged = self._store.get_tagged_related_updates(self._entity_type, self._entity_id)
            pairs = [(t.level, t.update) for t in tagged]
        else:
            pairs = [
                (self._entity_type, u)
                for u in self._store.get_updates_for_entity(self._entity_type, self._entity_id)
            ]
        users = {u.id: u for u in self._store.get_users()}
        out: List[Dict[str, Any]] = []
        for level, u in pairs:
            author = users.get(u.user_id)
            out.append(
                {
                    "id": u.id,
                    "message": u.message,
                    "author": author.display_name if author else u.user_id,
                    "level": level.value,
                    "level_label": level_label(level),
                    "entity_id": u.entity_id,
                    "entity_name": self._entity_name(level, u.entity_id),
                    "comment_to": u.comment_to,
                    "when": format_timestamp(u.created_at, self._tz),
                    "when_relative": format_relative(u.created_at, now, self._tz),
                }
            )
        return out

    def grouped(self, now: Optional[datetime] = None) -> Dict[str, List[Dict[str, Any]]]:
        """Rows bucketed by level ("project", "task", "subtask"), each newest first."""
        groups: Dict[str, List[Dict[str, Any]]] = {k.value: [] for k in EntityType}
        for row in self.rows(now=now):
            groups[row["level"]].append(row)
        return groups

    def post(self, message: str, *, tagged_user_ids=(), comment_to: Optional[str] = None):
        if self._entity_id is None:
            raise ValueError("UpdatesViewModel has no entity selected.")
        return self._store.add_update(
            entity_type=self._entity_type,
            entity_id=self._entity_id,
            message=message,
            tagged_user_ids=tagged_user_ids,
            comment_to=comment_to,
        )
