"""Application service: Confirm Reservation use case.

Moves a pending reservation to confirmed and turns its active holds into
permanent consumption, in one transaction.  The TTL keeps running: a
confirmed reservation can still expire, but its confirmed holds stay
consumed.
"""

from __future__ import annotations

import logging

from holdkeeper.application.dto import ReservationDTO, reservation_to_dto
from holdkeeper.domain.exceptions import EntityNotFoundError
from holdkeeper.domain.model.inventory import HoldStatus
from holdkeeper.domain.port.clock import Clock
from holdkeeper.domain.repository.unit_of_work import UnitOfWorkFactory
from holdkeeper.domain.service.inventory_ledger import InventoryLedger

logger = logging.getLogger(__name__)


class ConfirmReservationHandler:

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        ledger: InventoryLedger,
        clock: Clock,
    ) -> None:
        self._uow_factory = uow_factory
        self._ledger = ledger
        self._clock = clock

    def handle(self, reservation_id: str) -> ReservationDTO:
        with self._uow_factory() as uow:
            reservation = uow.reservations.get_by_id(reservation_id)
            if reservation is None:
                raise EntityNotFoundError(f"Reservation {reservation_id} not found")

            # Transition first so a non-pending reservation never touches stock
            reservation.confirm(self._clock.now())
            uow.reservations.save(reservation)

            active = uow.holds.list_for_reservation(reservation_id, {HoldStatus.ACTIVE})
            confirmed = self._ledger.confirm_reservation([h.id for h in active], uow=uow)

            ttl = uow.ttls.get(reservation_id)
            holds = uow.holds.list_for_reservation(reservation_id)
            uow.commit()

        logger.info(
            "Reservation confirmed",
            extra={"reservation_id": reservation_id, "confirmed_holds": len(confirmed)},
        )
        return reservation_to_dto(reservation, ttl, holds)
