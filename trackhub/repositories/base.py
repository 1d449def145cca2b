# Rev 0.1.0
# trackhub – shared plumbing for the SQLite repositories
from __future__ import annotations
import sqlite3
from typing import Any, Dict, List, Mapping, Union


class SQLiteRepository:
    """
    Connection resolution + row helpers shared by the table repositories.
    Accepts a raw sqlite3.Connection or a wrapper exposing `.conn` (Database).
    """

    table: str = ""

    def __init__(self, db_or_conn: Union[sqlite3.Connection, Any]):
        self._db_or_conn = db_or_conn

    # -------------------------
    # Connection handling
    # -------------------------
    def _conn(self) -> sqlite3.Connection:
        if isinstance(self._db_or_conn, sqlite3.Connection):
            return self._db_or_conn
        if hasattr(self._db_or_conn, "conn") and isinstance(self._db_or_conn.conn, sqlite3.Connection):
            return self._db_or_conn.conn
        raise RuntimeError(
            f"{type(self).__name__}: could not obtain sqlite3.Connection "
            "(expected .conn on wrapper, or a raw Connection)."
        )

    def _fetch_all(self, sql: str, params: tuple = ()) -> List[Dict[str, Any]]:
        cur = self._conn().execute(sql, params)
        cols = [d[0] for d in cur.description]
        return [{cols[i]: row[i] for i in range(len(cols))} for row in cur.fetchall()]

    # -------------------------
    # Generic row commands
    # -------------------------
    def _insert(self, row: Mapping[str, Any]) -> None:
        cols = ", ".join(row.keys())
        placeholders = ", ".join(["?"] * len(row))
        self._conn().execute(f"INSERT INTO {self.table}({cols}) VALUES ({placeholders})", tuple(row.values()))

    def _update(self, row: Mapping[str, Any]) -> bool:
        values = {k: v for k, v in row.items() if k != "id"}
        sets = ", ".join(f"{k} = ?" for k in values)
        cur = self._conn().execute(
            f"UPDATE {self.table} SET {sets} WHERE id = ?",
            (*values.values(), row["id"]),
        )
        return cur.rowcount > 0

    def _delete(self, row_id: str) -> bool:
        cur = self._conn().execute(f"DELETE FROM {self.table} WHERE id = ?", (row_id,))
        return cur.rowcount > 0
