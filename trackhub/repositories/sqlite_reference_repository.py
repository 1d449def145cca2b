# Rev 0.1.0

# trackhub – reference data repositories (users, categories, task types)
# Users are maintained outside trackhub; this side only reads them
# (upsert_user exists for seeding and tests).

from __future__ import annotations
from typing import Any, Dict, List, Mapping

from .base import SQLiteRepository


class SQLiteUserRepository(SQLiteRepository):
    table = "users"

    def list_users(self) -> List[Dict[str, Any]]:
        return self._fetch_all("SELECT * FROM users ORDER BY last_name COLLATE NOCASE, first_name COLLATE NOCASE, id")

    def upsert_user(self, row: Mapping[str, Any]) -> None:
        cols = ", ".join(row.keys())
        placeholders = ", ".join(["?"] * len(row))
        self._conn().execute(f"INSERT OR REPLACE INTO users({cols}) VALUES ({placeholders})", tuple(row.values()))


class SQLiteVocabularyRepository(SQLiteRepository):
    """
    Thin wrapper around a two-column (id, name) table: categories or task_types.
    """

    def __init__(self, db_or_conn, table: str):
        if table not in ("categories", "task_types"):
            raise ValueError(f"unknown vocabulary table: {table}")
        super().__init__(db_or_conn)
        self.table = table

    def list_items(self) -> List[Dict[str, Any]]:
        return self._fetch_all(f"SELECT id, name FROM {self.table} ORDER BY name COLLATE NOCASE, id")

    def insert_item(self, item_id: str, name: str) -> None:
        self._insert({"id": item_id, "name": name})

    def upsert_item(self, item_id: str, name: str) -> None:
        # Also covers built-in defaults missing from the table.
        self._conn().execute(
            f"INSERT INTO {self.table}(id, name) VALUES (?, ?) "
            "ON CONFLICT(id) DO UPDATE SET name = excluded.name",
            (item_id, name),
        )

    def delete_item(self, item_id: str) -> bool:
        return self._delete(item_id)
