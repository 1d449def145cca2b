# Rev 0.1.0
"""Field checks applied by the store before any entity enters a collection.

Each validate_* returns a normalized copy (enums coerced, list fields as
tuples, optional text stripped to None) or raises ValidationError.
"""
from __future__ import annotations
from dataclasses import replace
from datetime import date, datetime
from enum import Enum
from typing import Any, Iterable, Optional, Tuple, Type

from ..errors import ValidationError
from .entities import Project, SubTask, Task, Update
from .types import (
    EntityType,
    Priority,
    PROJECT_PRIORITIES,
    ProjectType,
    Status,
    coerce_enum,
)


def require_text(value: Any, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required", field=field)
    return value.strip()


def plain_text(value: Any, field: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be text", field=field)
    return value


def optional_ref(value: Any, field: str) -> Optional[str]:
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be an id string", field=field)
    return value


def id_tuple(values: Optional[Iterable[Any]], field: str) -> Tuple[str, ...]:
    if values is None:
        return ()
    if isinstance(values, str):
        raise ValidationError(f"{field} must be a list, not a string", field=field)
    out = tuple(values)
    if not all(isinstance(v, str) for v in out):
        raise ValidationError(f"{field} must contain strings only", field=field)
    return out


def enum_value(enum_cls: Type[Enum], value: Any, field: str):
    try:
        return coerce_enum(enum_cls, value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"{field} must be one of: {allowed} (got {value!r})", field=field) from None


def progress_value(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError("progress must be an integer", field="progress")
    if not 0 <= value <= 100:
        raise ValidationError(f"progress must be within 0..100 (got {value})", field="progress")
    return value


def date_value(value: Any, field: str) -> Optional[str]:
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be an ISO date string", field=field)
    try:
        date.fromisoformat(value)
    except ValueError:
        try:
            datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            raise ValidationError(f"{field} is not an ISO date: {value!r}", field=field) from None
    return value


def validate_project(project: Project) -> Project:
    priority = enum_value(Priority, project.priority, "priority")
    if priority not in PROJECT_PRIORITIES:
        raise ValidationError(f"priority {priority.value!r} is not valid for a project", field="priority")
    return replace(
        project,
        name=require_text(project.name, "name"),
        description=plain_text(project.description, "description"),
        category=plain_text(project.category, "category"),
        status=enum_value(Status, project.status, "status"),
        project_type=enum_value(ProjectType, project.project_type, "project_type"),
        priority=priority,
        assignee_id=optional_ref(project.assignee_id, "assignee_id"),
        multi_assignee_ids=id_tuple(project.multi_assignee_ids, "multi_assignee_ids"),
        flow_chart=optional_ref(project.flow_chart, "flow_chart"),
        start_date=date_value(project.start_date, "start_date"),
        end_date=date_value(project.end_date, "end_date"),
        deadline=date_value(project.deadline, "deadline"),
        progress=progress_value(project.progress),
        tags=id_tuple(project.tags, "tags"),
    )


def validate_task(task: Task) -> Task:
    return replace(
        task,
        project_id=require_text(task.project_id, "project_id"),
        name=require_text(task.name, "name"),
        description=plain_text(task.description, "description"),
        task_type=plain_text(task.task_type, "task_type"),
        status=enum_value(Status, task.status, "status"),
        priority=None if task.priority is None else enum_value(Priority, task.priority, "priority"),
        assignee_id=optional_ref(task.assignee_id, "assignee_id"),
        flow_chart=optional_ref(task.flow_chart, "flow_chart"),
        start_date=date_value(task.start_date, "start_date"),
        end_date=date_value(task.end_date, "end_date"),
        deadline=date_value(task.deadline, "deadline"),
        progress=progress_value(task.progress),
        tags=id_tuple(task.tags, "tags"),
    )


def validate_subtask(subtask: SubTask) -> SubTask:
    return replace(
        subtask,
        task_id=require_text(subtask.task_id, "task_id"),
        name=require_text(subtask.name, "name"),
        description=plain_text(subtask.description, "description"),
        task_type=plain_text(subtask.task_type, "task_type"),
        status=enum_value(Status, subtask.status, "status"),
        assignee_id=optional_ref(subtask.assignee_id, "assignee_id"),
        start_date=date_value(subtask.start_date, "start_date"),
        end_date=date_value(subtask.end_date, "end_date"),
        deadline=date_value(subtask.deadline, "deadline"),
        progress=progress_value(subtask.progress),
        tags=id_tuple(subtask.tags, "tags"),
    )


def validate_update(update: Update) -> Update:
    return replace(
        update,
        message=require_text(update.message, "message"),
        user_id=require_text(update.user_id, "user_id"),
        entity_type=enum_value(EntityType, update.entity_type, "entity_type"),
        entity_id=require_text(update.entity_id, "entity_id"),
        comment_to=optional_ref(update.comment_to, "comment_to"),
        tagged_user_ids=id_tuple(update.tagged_user_ids, "tagged_user_ids"),
    )
