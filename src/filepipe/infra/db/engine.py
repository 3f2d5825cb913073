"""Shared engine for the worker, the API and the CLI.

On SQLite the API (ingestion) and one or more workers (claims) write the same
file from separate processes, so every connection runs in WAL mode and waits
on a locked database instead of failing at once.
"""
from sqlalchemy import event
from filepipe.db import engine
import filepipe.models  # noqa: F401

SQLITE_BUSY_TIMEOUT_MS = 5000


def _configure_sqlite(dbapi_conn, _):
    cur = dbapi_conn.cursor()
    cur.execute("PRAGMA journal_mode=WAL")
    cur.execute("PRAGMA synchronous=NORMAL")
    cur.execute(f"PRAGMA busy_timeout={SQLITE_BUSY_TIMEOUT_MS}")
    cur.close()


if engine.dialect.name == "sqlite":
    event.listen(engine, "connect", _configure_sqlite)

__all__ = ["engine"]
