from __future__ import annotations

import os
import sys
from pathlib import Path

import psycopg

from enrollment.settings import get_settings

MIGRATIONS_DIR = Path(os.environ.get("MIGRATIONS_DIR", "migrations"))
SCHEMA_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS schema_migrations (
  version    text PRIMARY KEY,
  applied_at timestamptz NOT NULL DEFAULT now()
);
"""


def list_migrations() -> list[Path]:
    if not MIGRATIONS_DIR.exists():
        raise SystemExit(f"ERROR: migrations dir not found: {MIGRATIONS_DIR}")
    return sorted(MIGRATIONS_DIR.glob("*.sql"))


def applied_versions(conn: psycopg.Connection) -> set[str]:
    with conn.cursor() as cur:
        cur.execute(SCHEMA_TABLE_SQL)
        cur.execute("SELECT version FROM schema_migrations;")
        return {r[0] for r in cur.fetchall()}


def cmd_up(dsn: str) -> int:
    with psycopg.connect(dsn, autocommit=False) as conn:
        done = applied_versions(conn)
        pending = [p for p in list_migrations() if p.stem not in done]
        if not pending:
            print("No pending migrations.")
            return 0
        for path in pending:
            try:
                with conn.cursor() as cur:
                    cur.execute(path.read_text(encoding="utf-8"))
                    cur.execute(
                        "INSERT INTO schema_migrations (version) VALUES (%s);",
                        (path.stem,),
                    )
                conn.commit()
            except psycopg.Error as e:
                conn.rollback()
                print(f"failed {path.stem}: {e}", file=sys.stderr)
                return 1
            print(f"applied {path.stem}")
    return 0


def cmd_status(dsn: str) -> int:
    with psycopg.connect(dsn) as conn:
        done = applied_versions(conn)
    for path in list_migrations():
        mark = "x" if path.stem in done else " "
        print(f"[{mark}] {path.stem}")
    return 0


def main(argv: list[str]) -> int:
    commands = {"up": cmd_up, "status": cmd_status}
    if len(argv) != 2 or argv[1] not in commands:
        print(
            "usage: python -m enrollment.infrastructure.db.migrate [up|status]",
            file=sys.stderr,
        )
        return 2
    return commands[argv[1]](get_settings().database_url)


if __name__ == "__main__":
    raise SystemExit(main(sys.argv))
