"""Application service: Create Reservation use case.

The base reservation, its inventory holds and its TTL are written in ONE
unit of work.  If any step fails (a product short on stock, an invalid
TTL, a store error) nothing is persisted.
"""

from __future__ import annotations

import logging

from holdkeeper.application.dto import CreateReservationRequest, ReservationDTO, reservation_to_dto
from holdkeeper.domain.model.reservation import Reservation
from holdkeeper.domain.model.value_objects import ReservationItem
from holdkeeper.domain.port.clock import Clock
from holdkeeper.domain.repository.unit_of_work import UnitOfWorkFactory
from holdkeeper.domain.service.inventory_ledger import DEFAULT_HOLD_MINUTES, InventoryLedger
from holdkeeper.domain.service.policy_store import ExpirationPolicyStore
from holdkeeper.domain.service.ttl_tracker import TTLTracker

logger = logging.getLogger(__name__)


class CreateReservationHandler:

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        ledger: InventoryLedger,
        ttl_tracker: TTLTracker,
        policies: ExpirationPolicyStore,
        clock: Clock,
    ) -> None:
        self._uow_factory = uow_factory
        self._ledger = ledger
        self._ttl_tracker = ttl_tracker
        self._policies = policies
        self._clock = clock

    def handle(self, request: CreateReservationRequest) -> ReservationDTO:
        """Create a pending reservation.

        Steps:
        1. Validate the items and build the reservation.
        2. Link the business policy that governs it, if any.
        3. In one transaction: insert it, hold its items, start its TTL.

        The TTL is the explicit ``ttl_minutes``, else the hold duration when
        one was given, else the policy default, else 30 minutes.
        """
        items = [ReservationItem.of(spec.product_id, spec.quantity) for spec in request.items]
        reservation = Reservation.create(
            business_id=request.business_id,
            customer_name=request.customer_name,
            customer_email=request.customer_email,
            service_type_id=request.service_type_id,
            notes=request.notes,
            now=self._clock.now(),
        )

        policy = self._policies.get_policy_for_business(
            reservation.business_id, reservation.service_type_id
        )
        if policy is not None:
            reservation.policy_id = policy.id

        hold_minutes = request.hold_duration_minutes or DEFAULT_HOLD_MINUTES
        ttl_minutes = self._ttl_tracker.resolve_ttl_minutes(
            request.ttl_minutes or request.hold_duration_minutes,
            reservation.business_id,
            reservation.service_type_id,
        )

        with self._uow_factory() as uow:
            uow.reservations.save(reservation)
            holds = self._ledger.reserve_items(
                items,
                hold_duration_minutes=hold_minutes,
                reservation_id=reservation.id,
                uow=uow,
            )
            ttl = self._ttl_tracker.set_reservation_ttl(
                reservation.id,
                ttl_minutes=ttl_minutes,
                uow=uow,
            )
            uow.commit()

        logger.info(
            "Reservation created",
            extra={
                "reservation_id": reservation.id,
                "business_id": reservation.business_id,
                "policy_id": reservation.policy_id,
                "hold_count": len(holds),
            },
        )
        return reservation_to_dto(reservation, ttl, holds)
