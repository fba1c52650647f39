from __future__ import annotations

import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path

import psycopg

from app.logging import setup_logging
from app.settings import get_settings

logger = logging.getLogger(__name__)

SCHEMA_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS schema_migrations (
  version    text PRIMARY KEY,
  applied_at timestamptz NOT NULL DEFAULT now()
);
"""
USAGE = "usage: python -m app.infrastructure.db.migrate [up|status|new <name>]"


def migrations_dir() -> Path:
    return Path(os.environ.get("MIGRATIONS_DIR", "migrations"))


def list_migrations(directory: Path) -> list[Path]:
    if not directory.exists():
        raise FileNotFoundError(f"migrations dir not found: {directory}")
    return sorted(directory.glob("*.sql"))


def pending(directory: Path, applied: set[str]) -> list[Path]:
    return [p for p in list_migrations(directory) if p.stem not in applied]


def applied_versions(conn: psycopg.Connection) -> set[str]:
    with conn.cursor() as cur:
        cur.execute(SCHEMA_TABLE_SQL)
        cur.execute("SELECT version FROM schema_migrations ORDER BY version;")
        rows = cur.fetchall()
    return {r[0] for r in rows}


def apply_one(conn: psycopg.Connection, path: Path) -> None:
    version = path.stem
    logger.info("applying migration", extra={"version": version})
    with conn.cursor() as cur:
        cur.execute(path.read_text(encoding="utf-8"))
        cur.execute(
            "INSERT INTO schema_migrations (version, applied_at) VALUES (%s, now());",
            (version,),
        )
    conn.commit()


def cmd_up(directory: Path) -> int:
    with psycopg.connect(get_settings().database_url, autocommit=False) as conn:
        to_run = pending(directory, applied_versions(conn))
        if not to_run:
            logger.info("no pending migrations")
            return 0
        for path in to_run:
            try:
                apply_one(conn, path)
            except psycopg.Error:
                conn.rollback()
                logger.exception("migration failed", extra={"version": path.stem})
                return 1
    return 0


def cmd_status(directory: Path) -> int:
    with psycopg.connect(get_settings().database_url) as conn:
        done = applied_versions(conn)
    for path in list_migrations(directory):
        state = "applied" if path.stem in done else "pending"
        print(f"{state:8} {path.stem}")
    return 0


def cmd_new(directory: Path, name: str) -> Path:
    ts = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M")
    path = directory / f"{ts}_{name}.sql"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("-- write your SQL here\n", encoding="utf-8")
    return path


def main(argv: list[str]) -> int:
    setup_logging(get_settings().log_level)
    if len(argv) < 2:
        print(USAGE, file=sys.stderr)
        return 2
    directory = migrations_dir()
    cmd = argv[1]
    if cmd == "up":
        return cmd_up(directory)
    if cmd == "status":
        return cmd_status(directory)
    if cmd == "new":
        if len(argv) < 3:
            print(USAGE, file=sys.stderr)
            return 2
        print(cmd_new(directory, argv[2]))
        return 0
    print(f"unknown command: {cmd}", file=sys.stderr)
    return 2


if __name__ == "__main__":
    raise SystemExit(main(sys.argv))
