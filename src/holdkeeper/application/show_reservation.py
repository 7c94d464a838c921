"""Application service: Show Reservation use case (query)."""

from __future__ import annotations

from holdkeeper.application.dto import ReservationDTO, reservation_to_dto
from holdkeeper.domain.exceptions import EntityNotFoundError
from holdkeeper.domain.repository.unit_of_work import UnitOfWorkFactory


class ShowReservationHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def handle(self, reservation_id: str) -> ReservationDTO:
        with self._uow_factory() as uow:
            reservation = uow.reservations.get_by_id(reservation_id)
            if reservation is None:
                raise EntityNotFoundError(f"Reservation {reservation_id} not found")
            ttl = uow.ttls.get(reservation_id)
            holds = uow.holds.list_for_reservation(reservation_id)
        return reservation_to_dto(reservation, ttl, holds)
