# Rev 0.1.0
"""
Developer seed: a couple of projects with tasks, subtasks and updates,
written through the store so every row passes the same checks as the app.

Usage:
    python -m trackhub.tools.dev_seed [--db PATH]
"""
from __future__ import annotations
import argparse
import sys
from pathlib import Path
from typing import List, Optional

from ..app_context import AppContext
from ..repositories.sqlite_reference_repository import SQLiteUserRepository
from ..services.entity_store import EntityStore
from ..services.sync_service import Session
from ..utils.config import load_settings
from ..utils.logging_setup import setup_logging

SEED_USER = {
    "id": "dev-user",
    "email": "dev@example.com",
    "first_name": "Dev",
    "last_name": "User",
    "profile_color": "#4f46e5",
    "department": "Product Development",
    "flow_chart": None,
}


def seed_store(store: EntityStore) -> None:
    site = store.add_project(
        name="Website refresh",
        description="New landing pages and checkout flow.",
        category="Live Website",
        priority="High",
    )
    checkout = store.add_task(project_id=site.id, name="Checkout flow", task_type="Feature", status="in-progress")
    store.add_subtask(task_id=checkout.id, name="Address form", task_type="Feature")
    store.add_subtask(task_id=checkout.id, name="Payment errors", task_type="Bug", status="done")
    store.add_task(project_id=site.id, name="Broken footer links", task_type="Bug")
    store.add_update(entity_type="project", entity_id=site.id, message="Kickoff done, scope agreed.")
    store.add_update(entity_type="task", entity_id=checkout.id, message="Design review scheduled.")

    licensing = store.add_project(name="State licensing renewals", category="State Licensing", project_type="Upcoming")
    store.add_task(project_id=licensing.id, name="Collect renewal dates", task_type="Discovery")
    store.add_update(entity_type="project", entity_id=licensing.id, message="Waiting on legal for the list.")


def run_seed(path: Path) -> None:
    settings = load_settings()
    ctx = AppContext.create(settings=settings, db_path=path, session=Session(user_id=SEED_USER["id"]))
    try:
        SQLiteUserRepository(ctx.db).upsert_user(SEED_USER)
        seed_store(ctx.store)
        failures = ctx.store.flush()
        if failures:
            raise SystemExit(f"seed failed: {failures[0]}")
        print(
            f"seeded {len(ctx.store.projects)} project(s), {len(ctx.store.tasks)} task(s), "
            f"{len(ctx.store.subtasks)} subtask(s), {len(ctx.store.updates)} update(s) into {path}"
        )
    finally:
        ctx.close()


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="trackhub-seed", description="Load sample data.")
    parser.add_argument("--db", help="database file (default: settings storage.db_path)")
    args = parser.parse_args(argv)
    settings = load_settings()
    setup_logging(settings["logging"]["level"])
    run_seed(Path(args.db or settings["storage"]["db_path"]))
    return 0


if __name__ == "__main__":
    sys.exit(main())
