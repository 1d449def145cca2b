# Rev 0.1.0

"""SQLite connection & migration runner (Rev 0.1.0)
- WAL mode, foreign_keys=ON, busy timeout
- Applies SQL files in trackhub/data/migrations in lexical order
- Tracks applied files in schema_migrations(filename TEXT PRIMARY KEY, sha256, applied_at UTC)
"""
from __future__ import annotations
import hashlib
import sqlite3
from pathlib import Path

from ..utils.ids import utc_now_iso
from ..utils.logging_setup import get_logger
from ..utils.paths import DB_PATH, MIGRATIONS_DIR


class Database:
    def __init__(self, path: Path | str = DB_PATH, *, timeout: float = 15.0) -> None:
        self._log = get_logger("Database")
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # The sync worker owns all calls after construction.
        self.conn = sqlite3.connect(self.path, isolation_level=None, check_same_thread=False, timeout=timeout)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA journal_mode=WAL;")
        self.conn.execute("PRAGMA foreign_keys=ON;")
        self.conn.execute(f"PRAGMA busy_timeout={int(timeout * 1000)};")
        self.conn.execute(
            "CREATE TABLE IF NOT EXISTS schema_migrations ("
            "filename TEXT PRIMARY KEY, sha256 TEXT NOT NULL, applied_at TEXT NOT NULL)"
        )
        self._log.info("SQLite open %s", self.path)

    def close(self) -> None:
        try:
            self.conn.close()
        except sqlite3.ProgrammingError:
            pass

    def applied(self) -> dict[str, tuple[str, str]]:
        rows = self.conn.execute("SELECT filename, sha256, applied_at FROM schema_migrations ORDER BY filename").fetchall()
        return {r[0]: (r[1], r[2]) for r in rows}

    def pending(self, migrations_dir: Path = MIGRATIONS_DIR) -> list[Path]:
        applied = self.applied()
        return [p for p in sorted(migrations_dir.glob("*.sql")) if p.name not in applied]

    def apply_sql(self, sql: str) -> None:
        # Migration files only use IF NOT EXISTS DDL, so a partial run can be re-applied.
        self.conn.executescript(sql)

    def run_migrations(self, migrations_dir: Path = MIGRATIONS_DIR) -> list[str]:
        to_apply = self.pending(migrations_dir)
        for p in to_apply:
            sql = p.read_text(encoding="utf-8")
            self.apply_sql(sql)
            self.conn.execute(
                "INSERT INTO schema_migrations(filename, sha256, applied_at) VALUES(?, ?, ?)",
                (p.name, hashlib.sha256(sql.encode("utf-8")).hexdigest(), utc_now_iso()),
            )
            self._log.info("Applied migration %s", p.name)
        return [p.name for p in to_apply]
