# Rev 0.1.0

"""Entity store (Rev 0.1.0)
In-memory Project / Task / SubTask / Update collections with the hierarchy
rules applied on every write, persisted through SyncService.

Writes are optimistic: validation and referential checks run first and
raise before anything changes; then the collections are updated, `changed`
fires, and the remote call is queued. A failed remote call is reported via
`syncFailed` / `last_sync_error` and is not rolled back; the next
refresh_data() brings the collections back in line with the remote.

Deletes cascade (project → tasks → subtasks) and purge every Update attached
to a removed entity.
"""
from __future__ import annotations
from dataclasses import fields, replace
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from PySide6.QtCore import QObject, Signal

from ..errors import NotFoundError, SyncError, ValidationError
from ..models.entities import (
    Category,
    DEFAULT_CATEGORIES,
    DEFAULT_TASK_TYPES,
    Project,
    SubTask,
    Task,
    TaskType,
    Update,
    User,
)
from ..models.types import EntityType
from ..models.validation import (
    enum_value,
    require_text,
    validate_project,
    validate_subtask,
    validate_task,
    validate_update,
)
from ..utils.ids import MonotonicClock, new_id
from ..utils.logging_setup import get_logger
from . import rollup
from .remote import Snapshot
from .sync_service import Session, SyncResult, SyncService, Step

_SYSTEM_FIELDS = {"id", "created_at", "updated_at"}


def _editable(cls) -> frozenset:
    return frozenset(f.name for f in fields(cls)) - _SYSTEM_FIELDS


class EntityStore(QObject):
    changed = Signal(str)           # collection name
    refreshed = Signal()
    loadingChanged = Signal(bool)
    syncFailed = Signal(str)

    _EDITABLE = {
        Project: _editable(Project),
        Task: _editable(Task),
        SubTask: _editable(SubTask),
    }

    def __init__(
        self,
        sync: SyncService,
        *,
        session: Optional[Session] = None,
        clock: Optional[MonotonicClock] = None,
    ):
        super().__init__()
        self._log = get_logger("EntityStore")
        self._sync = sync
        self._session = session or Session()
        self._clock = clock or MonotonicClock()

        self._projects: Dict[str, Project] = {}
        self._tasks: Dict[str, Task] = {}
        self._subtasks: Dict[str, SubTask] = {}
        self._updates: Dict[str, Update] = {}
        self._users: Tuple[User, ...] = ()
        self._categories: Dict[str, Category] = {c.id: c for c in DEFAULT_CATEGORIES}
        self._task_types: Dict[str, TaskType] = {t.id: t for t in DEFAULT_TASK_TYPES}

        self._loading = False
        self._has_loaded = False
        self._error: Optional[SyncError] = None
        self._last_sync_error: Optional[SyncError] = None

        self._sync.add_failure_listener(self._on_sync_failure)

    # ------------------------------------------------------------------
    # Session / status
    # ------------------------------------------------------------------
    @property
    def session(self) -> Session:
        return self._session

    def set_session(self, session: Session) -> None:
        """Signing out (or switching user) drops everything loaded for the old session."""
        previous = self._session
        self._session = session
        if previous.user_id and previous.user_id != session.user_id:
            self.reset()

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def has_loaded(self) -> bool:
        return self._has_loaded

    @property
    def error(self) -> Optional[SyncError]:
        """Error from the most recent refresh_data(); None after a successful one."""
        return self._error

    @property
    def last_sync_error(self) -> Optional[SyncError]:
        return self._last_sync_error

    def _on_sync_failure(self, err: SyncError) -> None:
        # Runs on the sync worker or its timeout watchdog thread.
        self._last_sync_error = err
        self.syncFailed.emit(str(err))

    def _set_loading(self, value: bool) -> None:
        if self._loading != value:
            self._loading = value
            self.loadingChanged.emit(value)

    # ------------------------------------------------------------------
    # Read views
    # ------------------------------------------------------------------
    @property
    def projects(self) -> Tuple[Project, ...]:
        return tuple(self._projects.values())

    @property
    def tasks(self) -> Tuple[Task, ...]:
        return tuple(self._tasks.values())

    @property
    def subtasks(self) -> Tuple[SubTask, ...]:
        return tuple(self._subtasks.values())

    @property
    def updates(self) -> Tuple[Update, ...]:
        return tuple(self._updates.values())

    @property
    def categories(self) -> Tuple[Category, ...]:
        return tuple(self._categories.values())

    @property
    def task_types(self) -> Tuple[TaskType, ...]:
        return tuple(self._task_types.values())

    def get_project(self, project_id: str) -> Optional[Project]:
        return self._projects.get(project_id)

    def get_task(self, task_id: str) -> Optional[Task]:
        return self._tasks.get(task_id)

    def get_subtask(self, subtask_id: str) -> Optional[SubTask]:
        return self._subtasks.get(subtask_id)

    def get_update(self, update_id: str) -> Optional[Update]:
        return self._updates.get(update_id)

    def tasks_for_project(self, project_id: str) -> List[Task]:
        return [t for t in self._tasks.values() if t.project_id == project_id]

    def subtasks_for_task(self, task_id: str) -> List[SubTask]:
        return [s for s in self._subtasks.values() if s.task_id == task_id]

    def get_users(self, department: Optional[str] = None) -> List[User]:
        if department is None:
            return list(self._users)
        return [u for u in self._users if u.department == department]

    # ------------------------------------------------------------------
    # Rollup
    # ------------------------------------------------------------------
    def _table(self, kind: EntityType) -> Dict[str, Any]:
        return {
            EntityType.PROJECT: self._projects,
            EntityType.TASK: self._tasks,
            EntityType.SUBTASK: self._subtasks,
        }[kind]

    def _lookup(self, kind: EntityType, entity_id: str):
        return self._table(kind).get(entity_id)

    def get_updates_for_entity(self, entity_type: Union[EntityType, str], entity_id: str) -> List[Update]:
        kind = enum_value(EntityType, entity_type, "entity_type")
        if self._lookup(kind, entity_id) is None:
            return []
        return rollup.updates_for_entity(self._updates.values(), kind, entity_id)

    def get_related_updates(self, entity_type: Union[EntityType, str], entity_id: str) -> List[Update]:
        return [t.update for t in self.get_tagged_related_updates(entity_type, entity_id)]

    def get_tagged_related_updates(
        self, entity_type: Union[EntityType, str], entity_id: str
    ) -> List[rollup.TaggedUpdate]:
        kind = enum_value(EntityType, entity_type, "entity_type")
        if self._lookup(kind, entity_id) is None:
            return []
        return rollup.tagged_related_updates(
            self._updates.values(), self._tasks.values(), self._subtasks.values(), kind, entity_id
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _new(self, cls, values: Dict[str, Any]):
        unknown = set(values) - self._EDITABLE[cls]
        if unknown:
            raise ValidationError(
                f"unknown field(s) for {cls.kind.value}: {', '.join(sorted(unknown))}"
            )
        now = self._clock.now_iso()
        return cls(id=new_id(), created_at=now, updated_at=now, **values)

    def _touched(self, entity, existing):
        # created_at is owned by the store; updated_at strictly increases
        return replace(entity, created_at=existing.created_at, updated_at=self._clock.now_iso())

    def _require_project(self, project_id: str) -> Project:
        project = self._projects.get(project_id)
        if project is None:
            raise NotFoundError("project", project_id)
        return project

    def _require_task(self, task_id: str) -> Task:
        task = self._tasks.get(task_id)
        if task is None:
            raise NotFoundError("task", task_id)
        return task

    def _require_subtask(self, subtask_id: str) -> SubTask:
        subtask = self._subtasks.get(subtask_id)
        if subtask is None:
            raise NotFoundError("subtask", subtask_id)
        return subtask

    def _updates_on(self, kind: EntityType, ids: Iterable[str]) -> List[str]:
        wanted = set(ids)
        return [u.id for u in self._updates.values() if u.entity_type is kind and u.entity_id in wanted]

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------
    def add_project(self, *, name: Optional[str] = None, **values: Any) -> Project:
        project = validate_project(self._new(Project, dict(values, name=name)))
        self._projects[project.id] = project
        self._log.info("Project added: %s (%s)", project.id, project.name)
        self.changed.emit("projects")
        self._sync.call("insert_project", project)
        return project

    def update_project(self, project: Project) -> Project:
        existing = self._require_project(project.id)
        project = validate_project(self._touched(project, existing))
        self._projects[project.id] = project
        self.changed.emit("projects")
        self._sync.call("update_project", project)
        return project

    def delete_project(self, project_id: str) -> None:
        self._require_project(project_id)
        task_ids = [t.id for t in self.tasks_for_project(project_id)]
        under = set(task_ids)
        subtask_ids = [s.id for s in self._subtasks.values() if s.task_id in under]
        self._remove(
            f"delete_project:{project_id}",
            subtask_ids=subtask_ids,
            task_ids=task_ids,
            own=(EntityType.PROJECT, project_id, "delete_project"),
        )

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------
    def add_task(self, *, project_id: Optional[str] = None, name: Optional[str] = None, **values: Any) -> Task:
        task = validate_task(self._new(Task, dict(values, project_id=project_id, name=name)))
        self._require_project(task.project_id)
        self._tasks[task.id] = task
        self._log.info("Task added: %s (project %s)", task.id, task.project_id)
        self.changed.emit("tasks")
        self._sync.call("insert_task", task)
        return task

    def update_task(self, task: Task) -> Task:
        existing = self._require_task(task.id)
        task = validate_task(self._touched(task, existing))
        self._require_project(task.project_id)
        self._tasks[task.id] = task
        self.changed.emit("tasks")
        self._sync.call("update_task", task)
        return task

    def delete_task(self, task_id: str) -> None:
        self._require_task(task_id)
        self._remove(
            f"delete_task:{task_id}",
            subtask_ids=[s.id for s in self.subtasks_for_task(task_id)],
            task_ids=[],
            own=(EntityType.TASK, task_id, "delete_task"),
        )

    # ------------------------------------------------------------------
    # Subtasks
    # ------------------------------------------------------------------
    def add_subtask(self, *, task_id: Optional[str] = None, name: Optional[str] = None, **values: Any) -> SubTask:
        subtask = validate_subtask(self._new(SubTask, dict(values, task_id=task_id, name=name)))
        self._require_task(subtask.task_id)
        self._subtasks[subtask.id] = subtask
        self._log.info("Subtask added: %s (task %s)", subtask.id, subtask.task_id)
        self.changed.emit("subtasks")
        self._sync.call("insert_subtask", subtask)
        return subtask

    def update_subtask(self, subtask: SubTask) -> SubTask:
        existing = self._require_subtask(subtask.id)
        subtask = validate_subtask(self._touched(subtask, existing))
        self._require_task(subtask.task_id)
        self._subtasks[subtask.id] = subtask
        self.changed.emit("subtasks")
        self._sync.call("update_subtask", subtask)
        return subtask

    def delete_subtask(self, subtask_id: str) -> None:
        self._require_subtask(subtask_id)
        self._remove(
            f"delete_subtask:{subtask_id}",
            subtask_ids=[],
            task_ids=[],
            own=(EntityType.SUBTASK, subtask_id, "delete_subtask"),
        )

    # ------------------------------------------------------------------
    # Cascade
    # ------------------------------------------------------------------
    def _remove(
        self,
        label: str,
        *,
        subtask_ids: List[str],
        task_ids: List[str],
        own: Tuple[EntityType, str, str],
    ) -> None:
        """
        Drop the entity, its descendants and all their updates locally, then
        queue one remote job that deletes bottom-up: updates of subtasks,
        subtasks, updates of tasks, tasks, updates of the entity, the entity.
        """
        kind, entity_id, method = own
        steps: List[Step] = []
        purged: List[str] = []

        for level, ids, delete in (
            (EntityType.SUBTASK, subtask_ids, "delete_subtask"),
            (EntityType.TASK, task_ids, "delete_task"),
        ):
            update_ids = self._updates_on(level, ids)
            purged.extend(update_ids)
            steps.extend(("delete_update", u) for u in update_ids)
            steps.extend((delete, i) for i in ids)

        own_updates = self._updates_on(kind, [entity_id])
        purged.extend(own_updates)
        steps.extend(("delete_update", u) for u in own_updates)
        steps.append((method, entity_id))

        for i in subtask_ids:
            del self._subtasks[i]
        for i in task_ids:
            del self._tasks[i]
        for u in purged:
            del self._updates[u]
        self._table(kind).pop(entity_id)

        self._log.info(
            "%s %s deleted (%d task(s), %d subtask(s), %d update(s) removed)",
            kind.value.capitalize(), entity_id, len(task_ids), len(subtask_ids), len(purged),
        )
        if purged:
            self.changed.emit("updates")
        if subtask_ids or kind is EntityType.SUBTASK:
            self.changed.emit("subtasks")
        if task_ids or kind is EntityType.TASK:
            self.changed.emit("tasks")
        if kind is EntityType.PROJECT:
            self.changed.emit("projects")
        self._sync.submit(label, steps)

    # ------------------------------------------------------------------
    # Updates (append-only)
    # ------------------------------------------------------------------
    def add_update(
        self,
        *,
        entity_type: Union[EntityType, str],
        entity_id: str,
        message: str,
        user_id: Optional[str] = None,
        comment_to: Optional[str] = None,
        tagged_user_ids: Iterable[str] = (),
    ) -> Update:
        author = user_id if user_id is not None else self._session.user_id
        update = validate_update(
            Update(
                id=new_id(),
                message=message,
                user_id=author,
                entity_type=entity_type,
                entity_id=entity_id,
                created_at=self._clock.now_iso(),
                comment_to=comment_to,
                tagged_user_ids=tagged_user_ids,
            )
        )
        if self._lookup(update.entity_type, update.entity_id) is None:
            raise NotFoundError(update.entity_type.value, update.entity_id)
        if update.comment_to is not None and update.comment_to not in self._updates:
            raise NotFoundError("update", update.comment_to)
        self._updates[update.id] = update
        self.changed.emit("updates")
        self._sync.call("insert_update", update)
        return update

    # ------------------------------------------------------------------
    # Vocabularies
    # ------------------------------------------------------------------
    def _check_unique(self, table: Dict[str, Any], name: str, field: str, skip: Optional[str] = None) -> None:
        for item in table.values():
            if item.id != skip and item.name.casefold() == name.casefold():
                raise ValidationError(f"{field} {name!r} already exists", field=field)

    def add_category(self, name: str) -> Category:
        name = require_text(name, "name")
        self._check_unique(self._categories, name, "category")
        category = Category(id=new_id(), name=name)
        self._categories[category.id] = category
        self.changed.emit("categories")
        self._sync.call("insert_category", category)
        return category

    def update_category(self, category: Category) -> Category:
        if category.id not in self._categories:
            raise NotFoundError("category", category.id)
        category = replace(category, name=require_text(category.name, "name"))
        self._check_unique(self._categories, category.name, "category", skip=category.id)
        self._categories[category.id] = category
        self.changed.emit("categories")
        self._sync.call("update_category", category)
        return category

    def delete_category(self, category_id: str) -> None:
        if self._categories.pop(category_id, None) is None:
            raise NotFoundError("category", category_id)
        self.changed.emit("categories")
        self._sync.call("delete_category", category_id)

    def add_task_type(self, name: str) -> TaskType:
        name = require_text(name, "name")
        self._check_unique(self._task_types, name, "task_type")
        task_type = TaskType(id=new_id(), name=name)
        self._task_types[task_type.id] = task_type
        self.changed.emit("task_types")
        self._sync.call("insert_task_type", task_type)
        return task_type

    def update_task_type(self, task_type: TaskType) -> TaskType:
        if task_type.id not in self._task_types:
            raise NotFoundError("task_type", task_type.id)
        task_type = replace(task_type, name=require_text(task_type.name, "name"))
        self._check_unique(self._task_types, task_type.name, "task_type", skip=task_type.id)
        self._task_types[task_type.id] = task_type
        self.changed.emit("task_types")
        self._sync.call("update_task_type", task_type)
        return task_type

    def delete_task_type(self, task_type_id: str) -> None:
        if self._task_types.pop(task_type_id, None) is None:
            raise NotFoundError("task_type", task_type_id)
        self.changed.emit("task_types")
        self._sync.call("delete_task_type", task_type_id)

    # ------------------------------------------------------------------
    # Refresh / lifecycle
    # ------------------------------------------------------------------
    def refresh_data(self) -> SyncResult:
        """
        Replace every collection with the remote's current state.

        All-or-nothing: if any collection fails to load, nothing is replaced,
        `error` is set and the previous (possibly stale) data stays readable.
        """
        if not self._session.is_authenticated:
            self._log.info("Refresh skipped: no signed-in user")
            return SyncResult(ok=False, code="not_authenticated")

        self._set_loading(True)
        try:
            snapshot = self._sync.fetch_snapshot()
        except SyncError as exc:
            self._error = exc
            self._set_loading(False)
            self._log.warning("Refresh failed, keeping previous data: %s", exc)
            self.syncFailed.emit(str(exc))
            return SyncResult(ok=False, code="failed", error=exc)

        self._apply_snapshot(snapshot)
        self._error = None
        self._has_loaded = True
        self._set_loading(False)
        self._log.info(
            "Refreshed: %d project(s), %d task(s), %d subtask(s), %d update(s)",
            len(self._projects), len(self._tasks), len(self._subtasks), len(self._updates),
        )
        self.refreshed.emit()
        return SyncResult(ok=True, code="refreshed")

    def _apply_snapshot(self, snap: Snapshot) -> None:
        projects = {p.id: p for p in snap.projects}
        tasks = {t.id: t for t in snap.tasks if t.project_id in projects}
        subtasks = {s.id: s for s in snap.subtasks if s.task_id in tasks}
        dropped = (len(snap.tasks) - len(tasks)) + (len(snap.subtasks) - len(subtasks))
        if dropped:
            self._log.warning("Refresh dropped %d orphaned task/subtask row(s)", dropped)

        self._projects = projects
        self._tasks = tasks
        self._subtasks = subtasks
        self._updates = {u.id: u for u in snap.updates}
        self._users = tuple(snap.users)
        # An empty vocabulary fetch keeps the current list
        if snap.categories:
            self._categories = {c.id: c for c in snap.categories}
        if snap.task_types:
            self._task_types = {t.id: t for t in snap.task_types}
        for name in ("projects", "tasks", "subtasks", "updates", "users", "categories", "task_types"):
            self.changed.emit(name)

    def flush(self, timeout: Optional[float] = None) -> List[SyncError]:
        return self._sync.flush(timeout)

    def reset(self) -> None:
        self._apply_snapshot(Snapshot())
        self._has_loaded = False
        self._error = None
        self._last_sync_error = None
        self._log.info("Store reset")

    def close(self) -> None:
        self._sync.close()
