# Rev 0.1.0

"""Remote persistence contract (Rev 0.1.0)
The store never talks to storage directly. Everything it needs from the
persistence side is listed in RemoteService; SQLiteRemoteService backs it
with the local SQLite repositories.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Protocol, Tuple

from ..models.entities import Category, Project, SubTask, Task, TaskType, Update, User
from ..repositories.sqlite_project_repository import SQLiteProjectRepository
from ..repositories.sqlite_reference_repository import SQLiteUserRepository, SQLiteVocabularyRepository
from ..repositories.sqlite_subtask_repository import SQLiteSubtaskRepository
from ..repositories.sqlite_task_repository import SQLiteTaskRepository
from ..repositories.sqlite_updates_repository import SQLiteUpdatesRepository


@dataclass(frozen=True)
class Snapshot:
    """Full remote state as fetched by one refresh."""
    projects: Tuple[Project, ...] = ()
    tasks: Tuple[Task, ...] = ()
    subtasks: Tuple[SubTask, ...] = ()
    updates: Tuple[Update, ...] = ()
    users: Tuple[User, ...] = ()
    categories: Tuple[Category, ...] = field(default=())
    task_types: Tuple[TaskType, ...] = field(default=())


class RemoteService(Protocol):
    # fetch-all
    def fetch_projects(self) -> List[Project]: ...
    def fetch_tasks(self) -> List[Task]: ...
    def fetch_subtasks(self) -> List[SubTask]: ...
    def fetch_updates(self) -> List[Update]: ...
    def fetch_users(self) -> List[User]: ...
    def fetch_categories(self) -> List[Category]: ...
    def fetch_task_types(self) -> List[TaskType]: ...

    # projects
    def insert_project(self, project: Project) -> None: ...
    def update_project(self, project: Project) -> None: ...
    def delete_project(self, project_id: str) -> None: ...

    # tasks
    def insert_task(self, task: Task) -> None: ...
    def update_task(self, task: Task) -> None: ...
    def delete_task(self, task_id: str) -> None: ...

    # subtasks
    def insert_subtask(self, subtask: SubTask) -> None: ...
    def update_subtask(self, subtask: SubTask) -> None: ...
    def delete_subtask(self, subtask_id: str) -> None: ...

    # updates (append-only; delete is used by cascade purges)
    def insert_update(self, update: Update) -> None: ...
    def delete_update(self, update_id: str) -> None: ...

    # vocabularies
    def insert_category(self, category: Category) -> None: ...
    def update_category(self, category: Category) -> None: ...
    def delete_category(self, category_id: str) -> None: ...
    def insert_task_type(self, task_type: TaskType) -> None: ...
    def update_task_type(self, task_type: TaskType) -> None: ...
    def delete_task_type(self, task_type_id: str) -> None: ...


class SQLiteRemoteService:
    """RemoteService over one SQLite database (repositories.db.Database or a raw connection)."""

    def __init__(self, db_or_conn):
        self._projects = SQLiteProjectRepository(db_or_conn)
        self._tasks = SQLiteTaskRepository(db_or_conn)
        self._subtasks = SQLiteSubtaskRepository(db_or_conn)
        self._updates = SQLiteUpdatesRepository(db_or_conn)
        self._users = SQLiteUserRepository(db_or_conn)
        self._categories = SQLiteVocabularyRepository(db_or_conn, "categories")
        self._task_types = SQLiteVocabularyRepository(db_or_conn, "task_types")

    # ---------- fetch ----------
    def fetch_projects(self) -> List[Project]:
        return [Project.from_row(r) for r in self._projects.list_projects()]

    def fetch_tasks(self) -> List[Task]:
        return [Task.from_row(r) for r in self._tasks.list_tasks()]

    def fetch_subtasks(self) -> List[SubTask]:
        return [SubTask.from_row(r) for r in self._subtasks.list_subtasks()]

    def fetch_updates(self) -> List[Update]:
        return [Update.from_row(r) for r in self._updates.list_updates(order_desc=True)]

    def fetch_users(self) -> List[User]:
        return [User.from_row(r) for r in self._users.list_users()]

    def fetch_categories(self) -> List[Category]:
        return [Category(id=r["id"], name=r["name"]) for r in self._categories.list_items()]

    def fetch_task_types(self) -> List[TaskType]:
        return [TaskType(id=r["id"], name=r["name"]) for r in self._task_types.list_items()]

    # ---------- projects ----------
    def insert_project(self, project: Project) -> None:
        self._projects.insert_project(project)

    def update_project(self, project: Project) -> None:
        if not self._projects.update_project(project):
            raise LookupError(f"project {project.id} is not persisted")

    def delete_project(self, project_id: str) -> None:
        self._projects.delete_project(project_id)

    # ---------- tasks ----------
    def insert_task(self, task: Task) -> None:
        self._tasks.insert_task(task)

    def update_task(self, task: Task) -> None:
        if not self._tasks.update_task(task):
            raise LookupError(f"task {task.id} is not persisted")

    def delete_task(self, task_id: str) -> None:
        self._tasks.delete_task(task_id)

    # ---------- subtasks ----------
    def insert_subtask(self, subtask: SubTask) -> None:
        self._subtasks.insert_subtask(subtask)

    def update_subtask(self, subtask: SubTask) -> None:
        if not self._subtasks.update_subtask(subtask):
            raise LookupError(f"subtask {subtask.id} is not persisted")

    def delete_subtask(self, subtask_id: str) -> None:
        self._subtasks.delete_subtask(subtask_id)

    # ---------- updates ----------
    def insert_update(self, update: Update) -> None:
        self._updates.insert_update(update)

    def delete_update(self, update_id: str) -> None:
        self._updates.delete_update(update_id)

    # ---------- vocabularies ----------
    def insert_category(self, category: Category) -> None:
        self._categories.insert_item(category.id, category.name)

    def update_category(self, category: Category) -> None:
        self._categories.upsert_item(category.id, category.name)

    def delete_category(self, category_id: str) -> None:
        self._categories.delete_item(category_id)

    def insert_task_type(self, task_type: TaskType) -> None:
        self._task_types.insert_item(task_type.id, task_type.name)

    def update_task_type(self, task_type: TaskType) -> None:
        self._task_types.upsert_item(task_type.id, task_type.name)

    def delete_task_type(self, task_type_id: str) -> None:
        self._task_types.delete_item(task_type_id)
