# Rev 0.1.0
"""
Schema migration runner.

Usage:
    python -m trackhub.tools.migrate up [--db PATH]
    python -m trackhub.tools.migrate status [--db PATH]
    python -m trackhub.tools.migrate rebuild [--db PATH] [--seed]
"""
from __future__ import annotations
import argparse
import sys
from pathlib import Path
from typing import List, Optional

from ..repositories.db import Database
from ..utils.config import load_settings
from ..utils.logging_setup import get_logger, setup_logging
from ..utils.paths import MIGRATIONS_DIR

_log = get_logger("migrate")


def cmd_up(path: Path) -> int:
    db = Database(path)
    try:
        applied = db.run_migrations(MIGRATIONS_DIR)
    finally:
        db.close()
    if applied:
        for name in applied:
            print(f"applied  {name}")
    else:
        print("up to date")
    return 0


def cmd_status(path: Path) -> int:
    db = Database(path)
    try:
        applied = db.applied()
        pending = db.pending(MIGRATIONS_DIR)
    finally:
        db.close()
    for name, (_sha, when) in applied.items():
        print(f"applied  {name}  {when}")
    for p in pending:
        print(f"pending  {p.name}")
    return 0


def cmd_rebuild(path: Path, seed: bool) -> int:
    for suffix in ("", "-wal", "-shm"):
        f = Path(f"{path}{suffix}")
        if f.exists():
            f.unlink()
            _log.info("Removed %s", f)
    rc = cmd_up(path)
    if rc == 0 and seed:
        from .dev_seed import run_seed
        run_seed(path)
    return rc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="trackhub-migrate", description="Apply trackhub schema migrations.")
    sub = parser.add_subparsers(dest="command", required=True)
    for name, help_text in (
        ("up", "apply pending migrations"),
        ("status", "list applied and pending migrations"),
        ("rebuild", "delete the database and migrate from scratch"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("--db", help="database file (default: settings storage.db_path)")
        if name == "rebuild":
            p.add_argument("--seed", action="store_true", help="load sample data afterwards")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = load_settings()
    setup_logging(settings["logging"]["level"])
    path = Path(args.db or settings["storage"]["db_path"])
    if args.command == "up":
        return cmd_up(path)
    if args.command == "status":
        return cmd_status(path)
    return cmd_rebuild(path, args.seed)


if __name__ == "__main__":
    sys.exit(main())
