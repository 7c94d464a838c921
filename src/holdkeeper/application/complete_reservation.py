"""Application service: Complete Reservation use case.

A completed reservation leaves the expiration engine's watch: its TTL is
cleaned in the same transaction as the status change.
"""

from __future__ import annotations

import logging

from holdkeeper.application.dto import ReservationDTO, reservation_to_dto
from holdkeeper.domain.exceptions import EntityNotFoundError
from holdkeeper.domain.port.clock import Clock
from holdkeeper.domain.repository.unit_of_work import UnitOfWorkFactory

logger = logging.getLogger(__name__)


class CompleteReservationHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory, clock: Clock) -> None:
        self._uow_factory = uow_factory
        self._clock = clock

    def handle(self, reservation_id: str) -> ReservationDTO:
        now = self._clock.now()

        with self._uow_factory() as uow:
            ttl = uow.ttls.get(reservation_id, lock=True)
            reservation = uow.reservations.get_by_id(reservation_id)
            if reservation is None:
                raise EntityNotFoundError(f"Reservation {reservation_id} not found")

            reservation.complete(now)
            uow.reservations.save(reservation)

            if ttl is not None:
                ttl.clean(now)
                uow.ttls.save(ttl)

            holds = uow.holds.list_for_reservation(reservation_id)
            uow.commit()

        logger.info("Reservation completed", extra={"reservation_id": reservation_id})
        return reservation_to_dto(reservation, ttl, holds)
