# trackhub type definitions
# Rev 0.1.0

from __future__ import annotations
from enum import Enum
from typing import Type, TypeVar, Union


class EntityType(str, Enum):
    """Entity classification hierarchy: project → task → subtask."""

    PROJECT = "project"
    TASK = "task"
    SUBTASK = "subtask"


class Status(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in-progress"
    DONE = "done"


class ProjectType(str, Enum):
    ACTIVE = "Active"
    UPCOMING = "Upcoming"
    FUTURE = "Future"
    ON_HOLD = "On Hold"


class Priority(str, Enum):
    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"
    VERY_LOW = "Very Low"


# Projects use the four-level scale; tasks may also be "Very Low".
PROJECT_PRIORITIES = frozenset({Priority.CRITICAL, Priority.HIGH, Priority.MEDIUM, Priority.LOW})


E = TypeVar("E", bound=Enum)


def coerce_enum(enum_cls: Type[E], value: Union[E, str]) -> E:
    """Accept an enum member or its value string. Raises ValueError otherwise."""
    if isinstance(value, enum_cls):
        return value
    return enum_cls(value)
