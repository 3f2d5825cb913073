"""Shared test fixtures.

  use_test_engine: redirects UoW + infra layer to a temp-file SQLite DB.
  store: RecordStore on the test engine.
  blob_store: LocalBlobStore rooted in tmp_path.
  make_file: inserts an UploadedFile row directly.
  client: FastAPI TestClient wired to the test engine.
"""
import pytest
from sqlmodel import SQLModel, create_engine, Session


@pytest.fixture
def use_test_engine(tmp_path, monkeypatch):
    """Monkeypatch engine references to an isolated temp-file SQLite DB.

    Uses a file (not :memory:) so separate sessions see each other's commits.
    """
    db_path = tmp_path / "test_filepipe.db"
    test_engine = create_engine(
        f"sqlite:///{db_path}", echo=False, connect_args={"check_same_thread": False},
    )

    import filepipe.models  # noqa: F401 (register all ORM mappers)
    SQLModel.metadata.create_all(test_engine)

    monkeypatch.setattr("filepipe.db.engine", test_engine)
    monkeypatch.setattr("filepipe.db.DATA_DIR", tmp_path)
    monkeypatch.setattr("filepipe.infra.db.engine.engine", test_engine)
    monkeypatch.setattr("filepipe.infra.db.uow.engine", test_engine)

    yield test_engine

    SQLModel.metadata.drop_all(test_engine)
    test_engine.dispose()


@pytest.fixture
def store(use_test_engine):
    from filepipe.infra.db.record_store import RecordStore
    return RecordStore()


@pytest.fixture
def blob_store(tmp_path):
    from filepipe.infra.storage.blob_store import LocalBlobStore
    return LocalBlobStore(tmp_path / "blobs")


@pytest.fixture
def make_file(use_test_engine):
    """Insert a row with the given status and return its id."""
    from filepipe.domain.status import FileStatus
    from filepipe.models.core import UploadedFile

    def _make(
        status=FileStatus.NEW,
        *,
        name: str = "data.csv",
        path: str | None = None,
        mime_type: str = "text/csv",
        size: int = 12,
        **fields,
    ) -> int:
        extension = name.rpartition(".")[2]
        with Session(use_test_engine) as s:
            row = UploadedFile(
                path=path or f"uploads/{name}",
                original_name=name,
                extension=extension,
                size=size,
                mime_type=mime_type,
                status=status,
                **fields,
            )
            s.add(row)
            s.commit()
            return row.id

    return _make


@pytest.fixture
def client(use_test_engine, tmp_path, monkeypatch):
    """FastAPI TestClient backed by the isolated test engine."""
    from fastapi.testclient import TestClient
    from filepipe.api.app import create_app
    from filepipe.config import settings

    monkeypatch.setattr(settings, "DATA_DIR", tmp_path)
    app = create_app()
    with TestClient(app) as c:
        yield c
