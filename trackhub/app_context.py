# Rev 0.1.0

# trackhub/app_context.py  (Rev 0.1.0)
from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from .repositories.db import Database
from .services.entity_store import EntityStore
from .services.remote import SQLiteRemoteService
from .services.sync_service import Session, SyncService
from .utils.config import load_settings
from .utils.logging_setup import get_logger

_log = get_logger("AppContext")


@dataclass
class AppContext:
    """Owns the wired-up objects for one running application."""
    db: Database
    sync: SyncService
    store: EntityStore

    @classmethod
    def create(
        cls,
        *,
        settings: Optional[Dict[str, Any]] = None,
        db_path: Optional[Path | str] = None,
        session: Optional[Session] = None,
    ) -> "AppContext":
        settings = settings or load_settings()
        sync_cfg = settings["sync"]
        path = db_path or settings["storage"]["db_path"]

        # --- DI wiring ---
        db = Database(path, timeout=float(sync_cfg["timeout_secs"]))
        applied = db.run_migrations()
        if applied:
            _log.info("Migrations applied: %s", ", ".join(applied))
        sync = SyncService(
            SQLiteRemoteService(db),
            timeout=float(sync_cfg["timeout_secs"]),
            refresh_timeout=float(sync_cfg["refresh_timeout_secs"]),
        )
        store = EntityStore(sync, session=session)
        return cls(db=db, sync=sync, store=store)

    def close(self) -> None:
        self.store.close()
        self.db.close()
        _log.info("AppContext closed")
