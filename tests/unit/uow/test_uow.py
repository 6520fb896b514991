"""Transaction boundaries of the SQLAlchemy Units of Work."""

import pytest

from authcore.models import RefreshSession
from authcore.uow import SQLAlchemyReadOnlyUnitOfWork as ROuow
from authcore.uow import SQLAlchemyUnitOfWork as RWuow
from tests.factories.refresh_session import RefreshSessionFactory


class TestSQLAlchemyUnitOfWork:
    def test_commits_on_success(self, session):
        """Rows added inside the scope are visible afterwards."""
        with RWuow() as uow:
            row = RefreshSessionFactory.build()
            uow.refresh_sessions.add(row)
            row_id = row.id

        with ROuow() as uow:
            assert uow.refresh_sessions.get(row_id) is not None

    def test_rolls_back_on_error(self, session):
        """An exception inside the scope discards its changes."""
        row = RefreshSessionFactory.build()
        with pytest.raises(RuntimeError), RWuow() as uow:
            uow.refresh_sessions.add(row)
            raise RuntimeError("boom")

        assert session.get(RefreshSession, row.id) is None


class TestSQLAlchemyReadOnlyUnitOfWork:
    def test_disallows_commit(self, session):
        """RO UoW must reject commit()."""
        with ROuow() as uow, pytest.raises(RuntimeError, match="does not allow commit"):
            uow.commit()

    def test_leaves_outer_transaction_alone(self, session):
        """A read-only scope entered mid-transaction does not roll it back."""
        row = RefreshSessionFactory()

        with ROuow() as uow:
            assert uow.refresh_sessions.get(row.id) is not None

        assert session.get(RefreshSession, row.id) is not None

    def test_ends_its_own_transaction_on_scoped_session(self, session):
        """With no transaction running, the scope begins one and rolls it back."""
        row = RefreshSessionFactory()
        row_id = row.id
        session.commit()
        assert not session().in_transaction()

        with ROuow() as uow:
            assert uow.refresh_sessions.get(row_id) is not None
            assert session().in_transaction()

        assert not session().in_transaction()
