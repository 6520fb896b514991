"""
SQLAlchemy implementation of UnitOfWork for Flask.
"""

from __future__ import annotations

from sqlalchemy.orm import Session, scoped_session

from authcore.core.extensions import db
from authcore.repositories import RefreshSessionRepository
from authcore.uow.base import UnitOfWork


class SQLAlchemyRepositoryContainer:
    """Provide repository instances that share a SQLAlchemy session."""

    def __init__(self, *, session: Session) -> None:
        self.session = session
        self.refresh_sessions = RefreshSessionRepository(session=self.session)


class SQLAlchemyUnitOfWork(SQLAlchemyRepositoryContainer, UnitOfWork):
    """
    SQLAlchemy-backed UoW using the Flask-scoped session.

    The same session is shared across all repositories for a consistent transaction.
    """

    def __init__(self) -> None:
        super().__init__(session=db.session)

    def __enter__(self) -> SQLAlchemyUnitOfWork:
        # No-op: the session is lazily started on the first statement.
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            try:
                self.commit()
            except Exception:
                self.rollback()
                raise
        else:
            self.rollback()

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


class SQLAlchemyReadOnlyUnitOfWork(SQLAlchemyRepositoryContainer, UnitOfWork):
    """
    Read-only Unit of Work backed by the Flask-scoped SQLAlchemy session.

    Ends the transaction it started (rollback) so pooled connections are not
    left idle-in-transaction; a transaction that was already running when
    the scope was entered is left untouched. ``commit()`` is disallowed.
    """

    def __init__(self) -> None:
        super().__init__(session=db.session)
        self._owns_transaction = False

    def __enter__(self) -> SQLAlchemyReadOnlyUnitOfWork:
        # scoped_session proxies no in_transaction(); ask the current Session
        session = self.session() if isinstance(self.session, scoped_session) else self.session
        self._owns_transaction = not session.in_transaction()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._owns_transaction:
            self.rollback()
        self._owns_transaction = False

    def commit(self) -> None:
        """
        Disallow commit in read-only Unit of Work.

        :raises RuntimeError: always, to prevent accidental writes.
        """
        raise RuntimeError("Read-only UnitOfWork does not allow commit().")

    def rollback(self) -> None:
        self.session.rollback()
