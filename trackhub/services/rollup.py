# Rev 0.1.0

"""Update rollup (Rev 0.1.0)
Answers "what conversation is attached to this entity, including its
descendants" over plain collections. Nothing is cached: every call walks the
collections it is given, so results always match the current store state.

Ordering: newest created_at first; equal timestamps keep collection order.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Iterable, List, Set, Tuple, Union

from ..models.entities import SubTask, Task, Update
from ..models.types import EntityType


@dataclass(frozen=True)
class TaggedUpdate:
    """An update paired with the hierarchy level it was posted on."""
    level: EntityType
    update: Update


def _as_type(entity_type: Union[EntityType, str]) -> EntityType:
    return entity_type if isinstance(entity_type, EntityType) else EntityType(entity_type)


def _newest_first(updates: Iterable[Update]) -> List[Update]:
    # sorted() is stable; reverse=True keeps ties in collection order
    return sorted(updates, key=lambda u: u.created_at, reverse=True)


def updates_for_entity(
    updates: Iterable[Update],
    entity_type: Union[EntityType, str],
    entity_id: str,
) -> List[Update]:
    kind = _as_type(entity_type)
    return _newest_first(u for u in updates if u.entity_type is kind and u.entity_id == entity_id)


def descendant_ids(
    tasks: Iterable[Task],
    subtasks: Iterable[SubTask],
    entity_type: Union[EntityType, str],
    entity_id: str,
) -> Dict[EntityType, Set[str]]:
    """
    Ids below the given entity, keyed by level. Never includes the entity
    itself. Project: its tasks and their subtasks; Task: its subtasks;
    SubTask: nothing.
    """
    kind = _as_type(entity_type)
    out: Dict[EntityType, Set[str]] = {EntityType.TASK: set(), EntityType.SUBTASK: set()}
    if kind is EntityType.PROJECT:
        task_ids = {t.id for t in tasks if t.project_id == entity_id}
        out[EntityType.TASK] = task_ids
        out[EntityType.SUBTASK] = {s.id for s in subtasks if s.task_id in task_ids}
    elif kind is EntityType.TASK:
        out[EntityType.SUBTASK] = {s.id for s in subtasks if s.task_id == entity_id}
    return out


def tagged_related_updates(
    updates: Iterable[Update],
    tasks: Iterable[Task],
    subtasks: Iterable[SubTask],
    entity_type: Union[EntityType, str],
    entity_id: str,
) -> List[TaggedUpdate]:
    kind = _as_type(entity_type)
    below = descendant_ids(tasks, subtasks, kind, entity_id)
    wanted: Set[Tuple[EntityType, str]] = {(kind, entity_id)}
    for level, ids in below.items():
        wanted.update((level, i) for i in ids)
    picked = [u for u in updates if (u.entity_type, u.entity_id) in wanted]
    return [TaggedUpdate(level=u.entity_type, update=u) for u in _newest_first(picked)]


def related_updates(
    updates: Iterable[Update],
    tasks: Iterable[Task],
    subtasks: Iterable[SubTask],
    entity_type: Union[EntityType, str],
    entity_id: str,
) -> List[Update]:
    return [t.update for t in tagged_related_updates(updates, tasks, subtasks, entity_type, entity_id)]
