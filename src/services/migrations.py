import os
from typing import Dict, List

from src.services.clickhouse import ClickHouse
from src.utils.logger import logger

MIGRATIONS_TABLE = "migrations"


def ensure_migrations_table(db: ClickHouse) -> None:
    """Create the migrations tracking table if it doesn't exist."""
    db.command(f"""
        CREATE TABLE IF NOT EXISTS {MIGRATIONS_TABLE} (
            id UInt32,
            name String,
            direction String,
            executed_at DateTime DEFAULT now()
        )
        ENGINE = MergeTree()
        ORDER BY (id, name, direction)
    """)


def get_applied_migrations(db: ClickHouse) -> Dict[str, Dict[str, int]]:
    """Latest migration id per name and direction."""
    rows = db.execute(f"""
        SELECT name, direction, max(id) AS max_id
        FROM {MIGRATIONS_TABLE}
        GROUP BY name, direction
    """)
    state: Dict[str, Dict[str, int]] = {}
    for row in rows:
        state.setdefault(row["name"], {"up": 0, "down": 0})[row["direction"]] = row["max_id"]
    return state


def split_statements(sql: str) -> List[str]:
    """Split a migration file on semicolons."""
    return [stmt.strip() for stmt in sql.split(";") if stmt.strip()]


def pending_migrations(migrations_dir: str, direction: str, applied: Dict[str, Dict[str, int]]) -> List[str]:
    """
    Migration files to run, in order.

    An "up" file runs unless its latest up is newer than its latest down; a
    "down" file runs only when its latest up is newer than its latest down.
    """
    suffix = f".{direction}.sql"
    files = sorted(
        (f for f in os.listdir(migrations_dir) if f.endswith(suffix)),
        reverse=direction == "down"
    )

    pending = []
    for filename in files:
        ids = applied.get(filename[:-len(suffix)], {"up": 0, "down": 0})
        if direction == "up" and ids["up"] <= ids["down"]:
            pending.append(filename)
        elif direction == "down" and ids["down"] < ids["up"]:
            pending.append(filename)
    return pending


def run_migrations(db: ClickHouse, migrations_dir: str, direction: str = "up") -> List[str]:
    """Apply pending migrations and record each one. Returns the files applied."""
    if direction not in ("up", "down"):
        raise ValueError(f"direction must be 'up' or 'down', got {direction!r}")

    ensure_migrations_table(db)
    to_run = pending_migrations(migrations_dir, direction, get_applied_migrations(db))
    if not to_run:
        logger.info("No migrations to run", direction=direction)
        return []

    suffix = f".{direction}.sql"
    for filename in to_run:
        with open(os.path.join(migrations_dir, filename), "r", encoding="utf-8") as f:
            statements = split_statements(f.read())

        for stmt in statements:
            db.command(stmt)

        rows = db.execute(f"SELECT max(id) AS max_id FROM {MIGRATIONS_TABLE}")
        next_id = (rows[0]["max_id"] if rows else 0) + 1
        db.command(
            f"INSERT INTO {MIGRATIONS_TABLE} (id, name, direction) VALUES "
            "({id:UInt32}, {name:String}, {direction:String})",
            {"id": next_id, "name": filename[:-len(suffix)], "direction": direction}
        )
        logger.info("Applied migration", file=filename, id=next_id, statements=len(statements))

    return to_run
