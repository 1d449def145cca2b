# Rev 0.1.0
# trackhub/viewmodels/formatting.py
"""Display helpers shared by views: badge variants, labels, dates."""
from __future__ import annotations
from datetime import datetime, timezone, tzinfo
from typing import Optional, Union

from ..models.types import EntityType, Priority, Status

_STATUS_VARIANTS = {
    Status.TODO: "default",
    Status.IN_PROGRESS: "warning",
    Status.DONE: "success",
}

_STATUS_TEXT = {
    Status.TODO: "To Do",
    Status.IN_PROGRESS: "In Progress",
    Status.DONE: "Done",
}

_TYPE_VARIANTS = {
    "Bug": "danger",
    "Feature": "primary",
    "Discovery": "secondary",
}

_PRIORITY_VARIANTS = {
    Priority.CRITICAL: "critical",
    Priority.HIGH: "high",
    Priority.MEDIUM: "medium",
    Priority.LOW: "low",
    Priority.VERY_LOW: "low",
}

_LEVEL_LABELS = {
    EntityType.PROJECT: "Project",
    EntityType.TASK: "Task",
    EntityType.SUBTASK: "Subtask",
}


def _status(value) -> Optional[Status]:
    try:
        return Status(value)
    except ValueError:
        return None


def status_variant(status: Union[Status, str]) -> str:
    return _STATUS_VARIANTS.get(_status(status), "default")


def status_text(status: Union[Status, str]) -> str:
    s = _status(status)
    return _STATUS_TEXT[s] if s is not None else str(status)


def type_variant(task_type: str) -> str:
    return _TYPE_VARIANTS.get(task_type, "default")


def priority_variant(priority: Union[Priority, str, None]) -> str:
    try:
        return _PRIORITY_VARIANTS[Priority(priority)]
    except ValueError:
        return "medium"


def level_label(level: Union[EntityType, str]) -> str:
    return _LEVEL_LABELS[EntityType(level)]


def _parse(value: str) -> Optional[datetime]:
    try:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _hour(dt: datetime) -> str:
    return f"{dt.hour % 12 or 12}:{dt.minute:02d} {'AM' if dt.hour < 12 else 'PM'}"


def format_short_date(value: Optional[str], tz: Optional[tzinfo] = None) -> str:
    """'Mar 5' (local time unless tz is given); '' for no date."""
    if not value:
        return ""
    dt = _parse(value)
    if dt is None:
        return "Invalid date"
    dt = dt.astimezone(tz)
    return f"{dt:%b} {dt.day}"


def format_timestamp(value: Optional[str], tz: Optional[tzinfo] = None) -> str:
    """'Mar 5, 2024 at 3:07 PM'."""
    dt = _parse(value) if value else None
    if dt is None:
        return "Invalid date"
    dt = dt.astimezone(tz)
    return f"{dt:%b} {dt.day}, {dt.year} at {_hour(dt)}"


def format_relative(value: Optional[str], now: Optional[datetime] = None, tz: Optional[tzinfo] = None) -> str:
    dt = _parse(value) if value else None
    if dt is None:
        return "Unknown"
    now = now or datetime.now(timezone.utc)
    seconds = (now - dt).total_seconds()
    if seconds < 3600:
        return f"{max(int(seconds // 60), 0)}m ago"
    if seconds < 24 * 3600:
        return f"{int(seconds // 3600)}h ago"
    if seconds < 48 * 3600:
        return "Yesterday"
    return format_short_date(value, tz)
