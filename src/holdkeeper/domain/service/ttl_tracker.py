"""Domain service: TTL Tracker.

Sets and extends the expiry clock of each reservation.  Only the
Expiration Processor moves a TTL to expired; the tracker never does.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from holdkeeper.domain.exceptions import DomainException
from holdkeeper.domain.model.ttl import ReservationTTL
from holdkeeper.domain.port.clock import Clock
from holdkeeper.domain.repository.unit_of_work import (
    UnitOfWork,
    UnitOfWorkFactory,
    transaction,
)
from holdkeeper.domain.service.policy_store import ExpirationPolicyStore

logger = logging.getLogger(__name__)

FALLBACK_TTL_MINUTES = 30


class TTLTracker:

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        policies: ExpirationPolicyStore,
        clock: Clock,
        fallback_ttl_minutes: int = FALLBACK_TTL_MINUTES,
    ) -> None:
        self._uow_factory = uow_factory
        self._policies = policies
        self._clock = clock
        self._fallback_ttl_minutes = fallback_ttl_minutes

    def resolve_ttl_minutes(
        self,
        ttl_minutes: int | None = None,
        business_id: str | None = None,
        service_type_id: str | None = None,
    ) -> int:
        """Explicit TTL, else the business policy default, else the fallback."""
        if ttl_minutes:
            return ttl_minutes
        if business_id:
            policy = self._policies.get_policy_for_business(business_id, service_type_id)
            if policy is not None:
                return policy.default_ttl_minutes
            logger.debug("No active expiration policy; using fallback TTL", extra={"business_id": business_id})
        return self._fallback_ttl_minutes

    def set_reservation_ttl(
        self,
        reservation_id: str,
        ttl_minutes: int | None = None,
        business_id: str | None = None,
        service_type_id: str | None = None,
        uow: UnitOfWork | None = None,
    ) -> ReservationTTL:
        """Start the reservation's clock, replacing any previous record."""
        ttl = self.resolve_ttl_minutes(ttl_minutes, business_id, service_type_id)
        record = ReservationTTL.start(reservation_id, ttl, self._clock.now())

        with transaction(self._uow_factory, uow) as tx:
            tx.ttls.save(record)

        logger.info(
            "Reservation TTL set",
            extra={
                "reservation_id": reservation_id,
                "ttl_minutes": ttl,
                "expires_at": record.expires_at.isoformat(),
            },
        )
        return record

    def extend_reservation(self, reservation_id: str, additional_minutes: int) -> bool:
        """Add time to the current deadline.

        Returns False, without raising or mutating, when the reservation
        has no TTL, is expired or cleaned, or the extension is not positive.
        """
        with self._uow_factory() as uow:
            record = uow.ttls.get(reservation_id, lock=True)
            if record is None:
                logger.warning("Cannot extend reservation without TTL", extra={"reservation_id": reservation_id})
                return False
            try:
                record.extend(additional_minutes, self._clock.now())
            except DomainException as exc:
                logger.warning(
                    "Cannot extend reservation: %s",
                    exc,
                    extra={"reservation_id": reservation_id, "ttl_status": record.status.value},
                )
                return False
            uow.ttls.save(record)
            uow.commit()

        logger.info(
            "Reservation extended",
            extra={
                "reservation_id": reservation_id,
                "additional_minutes": additional_minutes,
                "new_expiry": record.expires_at.isoformat(),
            },
        )
        return True

    def get_ttl(self, reservation_id: str, uow: UnitOfWork | None = None) -> ReservationTTL | None:
        with transaction(self._uow_factory, uow) as tx:
            return tx.ttls.get(reservation_id)

    def get_expiring(self, within_minutes: int = 60) -> list[ReservationTTL]:
        now = self._clock.now()
        with self._uow_factory() as uow:
            return uow.ttls.find_expiring(now, now + timedelta(minutes=within_minutes))

    def get_expired(self) -> list[ReservationTTL]:
        with self._uow_factory() as uow:
            return uow.ttls.find_expired(self._clock.now())
