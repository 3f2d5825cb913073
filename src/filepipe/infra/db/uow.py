"""Unit of Work: one session, one transaction per record-store or upload call."""
from __future__ import annotations
from sqlmodel import Session
from filepipe.infra.db.engine import engine
from filepipe.infra.db.repositories.file_repository import FileRepository


class UnitOfWork:
    """Context manager around the session a single file operation runs in.

    Commits on clean exit, rolls back on exception, always closes. Rows stay
    readable after exit (``expire_on_commit=False``) so they can be turned into
    snapshots or DTOs once the transaction is over.
    """

    def __init__(self) -> None:
        self._session: Session | None = None
        self._files: FileRepository | None = None

    def __enter__(self) -> "UnitOfWork":
        self._session = Session(engine, expire_on_commit=False)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            if exc_type is None:
                self._session.commit()
            else:
                self._session.rollback()
        finally:
            self._session.close()
            self._session = None
            self._files = None

    @property
    def session(self) -> Session:
        if self._session is None:
            raise RuntimeError("UnitOfWork is not active; use it as a context manager.")
        return self._session

    @property
    def files(self) -> FileRepository:
        """The uploaded-files repository bound to this unit's session."""
        if self._files is None:
            self._files = FileRepository(self.session)
        return self._files

    def commit(self) -> None:
        """Commit mid-request; uploads are durable before the response is built."""
        self.session.commit()
