import argparse
import os
import sqlite3
import sys
from typing import Dict, Iterable, List, Optional, Sequence

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from sqlalchemy import inspect, text

from database import normalize_database_url, make_engine, Base
import models  # noqa: F401


DEFAULT_TABLE_ORDER: List[str] = [
    "parameter_readings",
    "dose_records",
    "app_settings",
    "events",
    "light_channels",
]

PRIMARY_KEYS: Dict[str, str] = {
    "parameter_readings": "id",
    "dose_records": "id",
    "app_settings": "key",
    "events": "id",
    "light_channels": "id",
}


def iter_rows(conn: sqlite3.Connection, table: str, columns: Iterable[str]):
    columns = list(columns)
    cursor = conn.execute(f"SELECT {', '.join(columns)} FROM {table}")
    for row in cursor.fetchall():
        yield dict(zip(columns, row))


def get_columns(conn: sqlite3.Connection, table: str) -> List[str]:
    cursor = conn.execute(f"PRAGMA table_info({table})")
    return [row[1] for row in cursor.fetchall()]


def get_target_columns(inspector, table: str) -> List[str]:
    if not inspector.has_table(table):
        return []
    return [col["name"] for col in inspector.get_columns(table)]


def existing_keys(target_conn, table: str, key: str) -> set:
    return {row[0] for row in target_conn.execute(text(f"SELECT {key} FROM {table}"))}


def copy_logbook(sqlite_path: str, target_url: str) -> Dict[str, int]:
    """Copy every logbook table into the target store, skipping rows whose
    primary key is already there. Returns copied row counts per table."""
    sqlite_conn = sqlite3.connect(sqlite_path)
    engine = make_engine(normalize_database_url(target_url))
    Base.metadata.create_all(engine)
    inspector = inspect(engine)
    copied: Dict[str, int] = {}
    try:
        with engine.begin() as target_conn:
            for table in DEFAULT_TABLE_ORDER:
                sqlite_columns = get_columns(sqlite_conn, table)
                if not sqlite_columns:
                    continue
                target_columns = set(get_target_columns(inspector, table))
                columns = [col for col in sqlite_columns if col in target_columns]
                if len(columns) != len(sqlite_columns):
                    missing_columns = ", ".join(col for col in sqlite_columns if col not in target_columns)
                    print(f"Skipping columns not present in target for {table}: {missing_columns}", file=sys.stderr)
                key = PRIMARY_KEYS[table]
                if key not in columns:
                    print(f"Skipped {table} because its key column {key} is missing.", file=sys.stderr)
                    continue
                insert_sql = text(
                    f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({', '.join(':' + c for c in columns)})"
                )
                present = existing_keys(target_conn, table, key)
                count, skipped = 0, 0
                for row in iter_rows(sqlite_conn, table, columns):
                    if row[key] in present:
                        skipped += 1
                        continue
                    target_conn.execute(insert_sql, row)
                    count += 1
                copied[table] = count
                if skipped:
                    print(f"Skipped {skipped} row(s) already present in {table}.", file=sys.stderr)
    finally:
        sqlite_conn.close()
        engine.dispose()
    return copied


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Copy a local SQLite logbook into Postgres.")
    parser.add_argument("--sqlite-path", required=True, help="Path to the SQLite database.")
    parser.add_argument("--postgres-url", required=True, help="Postgres URL (postgres://, postgresql:// or a SQLAlchemy URL).")
    args = parser.parse_args(argv)

    sqlite_path = os.path.expanduser(args.sqlite_path)
    if not os.path.exists(sqlite_path):
        raise FileNotFoundError(f"SQLite database not found: {sqlite_path}")

    copied = copy_logbook(sqlite_path, args.postgres_url)
    for table, count in copied.items():
        print(f"{table}: {count} row(s) copied")


if __name__ == "__main__":
    main()
