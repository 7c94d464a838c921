"""Application service: Cancel Reservation use case.

Cancelling hands back every unit the reservation still holds, including
units already confirmed, and stops its expiry clock.  Status change, stock
release and TTL cleanup commit together.
"""

from __future__ import annotations

import logging

from holdkeeper.application.dto import ReservationDTO, reservation_to_dto
from holdkeeper.domain.exceptions import EntityNotFoundError
from holdkeeper.domain.model.inventory import RELEASABLE_ON_CANCEL
from holdkeeper.domain.port.clock import Clock
from holdkeeper.domain.repository.unit_of_work import UnitOfWorkFactory
from holdkeeper.domain.service.inventory_ledger import InventoryLedger

logger = logging.getLogger(__name__)


class CancelReservationHandler:

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        ledger: InventoryLedger,
        clock: Clock,
    ) -> None:
        self._uow_factory = uow_factory
        self._ledger = ledger
        self._clock = clock

    def handle(
        self,
        reservation_id: str,
        cancelled_by: str,
        reason: str | None = None,
    ) -> ReservationDTO:
        now = self._clock.now()

        with self._uow_factory() as uow:
            # TTL row lock first, the same order the expiration processor takes
            ttl = uow.ttls.get(reservation_id, lock=True)
            reservation = uow.reservations.get_by_id(reservation_id)
            if reservation is None:
                raise EntityNotFoundError(f"Reservation {reservation_id} not found")

            reservation.cancel(cancelled_by, reason, now)
            uow.reservations.save(reservation)

            holds = uow.holds.list_for_reservation(reservation_id, RELEASABLE_ON_CANCEL)
            released = self._ledger.release_holds(
                [h.id for h in holds], statuses=RELEASABLE_ON_CANCEL, uow=uow
            )

            if ttl is not None and not ttl.is_terminal:
                ttl.clean(now)
                uow.ttls.save(ttl)

            all_holds = uow.holds.list_for_reservation(reservation_id)
            uow.commit()

        logger.info(
            "Reservation cancelled",
            extra={
                "reservation_id": reservation_id,
                "cancelled_by": cancelled_by,
                "released_holds": len(released),
            },
        )
        return reservation_to_dto(reservation, ttl, all_holds)
