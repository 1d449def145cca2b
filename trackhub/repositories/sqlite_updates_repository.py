# Rev 0.1.0
from __future__ import annotations

from typing import Any, Dict, List

from ..models.entities import Update
from .base import SQLiteRepository


class SQLiteUpdatesRepository(SQLiteRepository):
    """
    Read/append timeline entries for any entity.

    Schema expectation (0001_init.sql):

      updates(
        id TEXT PRIMARY KEY,
        message TEXT NOT NULL,
        user_id TEXT NOT NULL,
        entity_type TEXT NOT NULL,   -- project | task | subtask
        entity_id TEXT NOT NULL,
        created_at TEXT NOT NULL,
        comment_to TEXT NULL,
        tagged_user_ids TEXT NOT NULL  -- JSON list
      )

    No update-in-place command exists; entries are append-only.
    """

    table = "updates"

    # -------------------------
    # Queries
    # -------------------------
    def list_updates(self, *, order_desc: bool = True) -> List[Dict[str, Any]]:
        order = "DESC" if order_desc else "ASC"
        return self._fetch_all(f"SELECT * FROM updates ORDER BY created_at {order}, id {order}")

    # -------------------------
    # Commands
    # -------------------------
    def insert_update(self, update: Update) -> None:
        self._insert(update.to_row())

    def delete_update(self, update_id: str) -> bool:
        return self._delete(update_id)

