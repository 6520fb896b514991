"""Unit of Work package: transactional boundaries around repositories."""

from __future__ import annotations

from authcore.uow.base import UnitOfWork
from authcore.uow.sqlalchemy_uow import SQLAlchemyReadOnlyUnitOfWork, SQLAlchemyUnitOfWork

__all__ = ["SQLAlchemyReadOnlyUnitOfWork", "SQLAlchemyUnitOfWork", "UnitOfWork"]
