# Rev 0.1.0
"""Immutable entities for the project → task → subtask hierarchy plus updates.

Entities are frozen; change one with dataclasses.replace() and hand the copy
to the store's update_* operation. Each class knows how to map itself to and
from a flat persistence row (snake_case columns, list fields as JSON text).
"""
from __future__ import annotations
import json
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from .types import EntityType, Priority, ProjectType, Status


def _load_list(value: Any) -> Tuple[str, ...]:
    if value is None or value == "":
        return ()
    if isinstance(value, (list, tuple)):
        return tuple(str(v) for v in value)
    return tuple(str(v) for v in json.loads(value))


def _to_row(entity: Any, list_fields: Tuple[str, ...]) -> Dict[str, Any]:
    row = asdict(entity)
    for key, value in row.items():
        if isinstance(value, Enum):
            row[key] = value.value
    for key in list_fields:
        row[key] = json.dumps(list(row[key]))
    return row


@dataclass(frozen=True)
class Project:
    id: str
    name: str
    created_at: str
    updated_at: str
    description: str = ""
    category: str = ""
    status: Status = Status.TODO
    project_type: ProjectType = ProjectType.ACTIVE
    priority: Priority = Priority.MEDIUM
    assignee_id: Optional[str] = None
    multi_assignee_ids: Tuple[str, ...] = ()
    flow_chart: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    deadline: Optional[str] = None
    progress: Optional[int] = None
    tags: Tuple[str, ...] = ()

    kind = EntityType.PROJECT

    def to_row(self) -> Dict[str, Any]:
        return _to_row(self, ("multi_assignee_ids", "tags"))

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Project":
        return cls(
            id=row["id"],
            name=row["name"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            description=row.get("description") or "",
            category=row.get("category") or "",
            status=Status(row["status"]),
            project_type=ProjectType(row.get("project_type") or ProjectType.ACTIVE.value),
            priority=Priority(row.get("priority") or Priority.MEDIUM.value),
            assignee_id=row.get("assignee_id"),
            multi_assignee_ids=_load_list(row.get("multi_assignee_ids")),
            flow_chart=row.get("flow_chart"),
            start_date=row.get("start_date"),
            end_date=row.get("end_date"),
            deadline=row.get("deadline"),
            progress=row.get("progress"),
            tags=_load_list(row.get("tags")),
        )


@dataclass(frozen=True)
class Task:
    id: str
    project_id: str
    name: str
    created_at: str
    updated_at: str
    description: str = ""
    task_type: str = ""
    status: Status = Status.TODO
    priority: Optional[Priority] = None
    assignee_id: Optional[str] = None
    flow_chart: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    deadline: Optional[str] = None
    progress: Optional[int] = None
    tags: Tuple[str, ...] = ()

    kind = EntityType.TASK

    def to_row(self) -> Dict[str, Any]:
        return _to_row(self, ("tags",))

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Task":
        priority = row.get("priority")
        return cls(
            id=row["id"],
            project_id=row["project_id"],
            name=row["name"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            description=row.get("description") or "",
            task_type=row.get("task_type") or "",
            status=Status(row["status"]),
            priority=Priority(priority) if priority else None,
            assignee_id=row.get("assignee_id"),
            flow_chart=row.get("flow_chart"),
            start_date=row.get("start_date"),
            end_date=row.get("end_date"),
            deadline=row.get("deadline"),
            progress=row.get("progress"),
            tags=_load_list(row.get("tags")),
        )


@dataclass(frozen=True)
class SubTask:
    id: str
    task_id: str
    name: str
    created_at: str
    updated_at: str
    description: str = ""
    task_type: str = ""
    status: Status = Status.TODO
    assignee_id: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    deadline: Optional[str] = None
    progress: Optional[int] = None
    tags: Tuple[str, ...] = ()

    kind = EntityType.SUBTASK

    def to_row(self) -> Dict[str, Any]:
        return _to_row(self, ("tags",))

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "SubTask":
        return cls(
            id=row["id"],
            task_id=row["task_id"],
            name=row["name"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            description=row.get("description") or "",
            task_type=row.get("task_type") or "",
            status=Status(row["status"]),
            assignee_id=row.get("assignee_id"),
            start_date=row.get("start_date"),
            end_date=row.get("end_date"),
            deadline=row.get("deadline"),
            progress=row.get("progress"),
            tags=_load_list(row.get("tags")),
        )


@dataclass(frozen=True)
class Update:
    """A timeline entry. Never edited after creation."""
    id: str
    message: str
    user_id: str
    entity_type: EntityType
    entity_id: str
    created_at: str
    comment_to: Optional[str] = None
    tagged_user_ids: Tuple[str, ...] = ()

    def to_row(self) -> Dict[str, Any]:
        return _to_row(self, ("tagged_user_ids",))

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Update":
        return cls(
            id=row["id"],
            message=row["message"],
            user_id=row["user_id"],
            entity_type=EntityType(row["entity_type"]),
            entity_id=row["entity_id"],
            created_at=row["created_at"],
            comment_to=row.get("comment_to"),
            tagged_user_ids=_load_list(row.get("tagged_user_ids")),
        )


@dataclass(frozen=True)
class User:
    id: str
    email: str
    first_name: str = ""
    last_name: str = ""
    profile_color: Optional[str] = None
    department: Optional[str] = None
    flow_chart: Optional[str] = None

    @property
    def display_name(self) -> str:
        full = f"{self.first_name} {self.last_name}".strip()
        return full or self.email

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "User":
        return cls(
            id=row["id"],
            email=row["email"],
            first_name=row.get("first_name") or "",
            last_name=row.get("last_name") or "",
            profile_color=row.get("profile_color"),
            department=row.get("department"),
            flow_chart=row.get("flow_chart"),
        )


@dataclass(frozen=True)
class Category:
    id: str
    name: str


@dataclass(frozen=True)
class TaskType:
    id: str
    name: str


DEFAULT_CATEGORIES: Tuple[Category, ...] = (
    Category("1", "Live Website"),
    Category("2", "Admin Portal"),
    Category("3", "State Licensing"),
    Category("4", "Backend Development"),
)

DEFAULT_TASK_TYPES: Tuple[TaskType, ...] = (
    TaskType("1", "Bug"),
    TaskType("2", "Feature"),
    TaskType("3", "Discovery"),
)
