"""SQLAlchemy unit of work: one Session, one transaction."""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from holdkeeper.domain.exceptions import StorageFailure
from holdkeeper.domain.repository.unit_of_work import UnitOfWork
from holdkeeper.infrastructure.persistence.sqlalchemy_repositories import (
    SqlAlchemyExpirationPolicyRepository,
    SqlAlchemyInventoryHoldRepository,
    SqlAlchemyProductInventoryRepository,
    SqlAlchemyReservationRepository,
    SqlAlchemyReservationTTLRepository,
)

logger = logging.getLogger(__name__)


class SqlAlchemyUnitOfWork(UnitOfWork):
    """Database errors leave this class as ``StorageFailure``."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory
        self._session: Session | None = None

    def __enter__(self) -> SqlAlchemyUnitOfWork:
        self._session = self._session_factory()
        self.inventory = SqlAlchemyProductInventoryRepository(self._session)
        self.holds = SqlAlchemyInventoryHoldRepository(self._session)
        self.policies = SqlAlchemyExpirationPolicyRepository(self._session)
        self.ttls = SqlAlchemyReservationTTLRepository(self._session)
        self.reservations = SqlAlchemyReservationRepository(self._session)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            self.rollback()
        finally:
            self._session.close()
            self._session = None
        if isinstance(exc, SQLAlchemyError):
            logger.error("Database transaction failed", exc_info=(exc_type, exc, tb))
            raise StorageFailure(f"Database error: {exc}") from exc

    def commit(self) -> None:
        try:
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise StorageFailure(f"Database error: {exc}") from exc

    def rollback(self) -> None:
        self._session.rollback()
