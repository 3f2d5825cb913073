"""Engine singleton and schema bootstrap."""
from __future__ import annotations

from sqlmodel import SQLModel, create_engine

from filepipe.config import settings

DATA_DIR = settings.DATA_DIR

_url = settings.database_url
_is_sqlite = _url.startswith("sqlite")

engine = create_engine(
    _url,
    echo=False,
    connect_args={"check_same_thread": False} if _is_sqlite else {},
)


def init_db() -> None:
    """Create missing tables, then backfill columns on legacy SQLite schemas."""
    import filepipe.models  # noqa: F401   # registers ORM tables
    from filepipe.infra.db.schema_compat import ensure_schema_compat

    if _is_sqlite:
        DATA_DIR.mkdir(parents=True, exist_ok=True)
    SQLModel.metadata.create_all(engine)
    ensure_schema_compat(engine)
