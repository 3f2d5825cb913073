"""Runtime DB compatibility helpers for legacy SQLite schemas.

Databases created before ``last_error`` and ``notification_status`` existed
only carry the original ``uploaded_files`` columns. ``create_all()`` never
alters an existing table, so the additive columns are backfilled here.
"""

from __future__ import annotations

import logging

from sqlalchemy import text
from sqlalchemy.engine import Connection, Engine

logger = logging.getLogger(__name__)

_TABLE = "uploaded_files"

# column name -> DDL type
_ADDITIVE_COLUMNS: dict[str, str] = {
    "last_error": "TEXT",
    "notification_status": "VARCHAR(32)",
}


def ensure_schema_compat(engine: Engine) -> None:
    """Apply additive compatibility upgrades for existing SQLite databases."""
    if engine.dialect.name != "sqlite":
        return

    with engine.begin() as conn:
        _ensure_uploaded_files_columns(conn)


def _ensure_uploaded_files_columns(conn: Connection) -> None:
    if not _table_exists(conn, _TABLE):
        return

    for column_name, ddl_type in _ADDITIVE_COLUMNS.items():
        if not _column_exists(conn, _TABLE, column_name):
            conn.execute(text(f"ALTER TABLE {_TABLE} ADD COLUMN {column_name} {ddl_type}"))
            logger.info("Applied compatibility upgrade: added %s.%s", _TABLE, column_name)

    _ensure_index(conn, "ix_uploaded_files_status", _TABLE, "status")
    _ensure_index(conn, "ix_uploaded_files_created_at", _TABLE, "created_at")


def _table_exists(conn: Connection, table_name: str) -> bool:
    return (
        conn.execute(
            text(
                "SELECT 1 FROM sqlite_master "
                "WHERE type = 'table' AND name = :name LIMIT 1"
            ),
            {"name": table_name},
        ).first()
        is not None
    )


def _column_exists(conn: Connection, table_name: str, column_name: str) -> bool:
    rows = conn.execute(text(f"PRAGMA table_info({table_name})")).fetchall()
    return any(row[1] == column_name for row in rows)


def _ensure_index(
    conn: Connection, index_name: str, table_name: str, column_name: str
) -> None:
    exists = conn.execute(
        text(
            "SELECT 1 FROM sqlite_master "
            "WHERE type = 'index' AND tbl_name = :table "
            "AND sql LIKE :pattern LIMIT 1"
        ),
        {"table": table_name, "pattern": f"%({column_name})%"},
    ).first()
    if exists is None:
        conn.execute(
            text(f"CREATE INDEX IF NOT EXISTS {index_name} ON {table_name} ({column_name})")
        )
