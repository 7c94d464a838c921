"""Domain service: Inventory Ledger.

Owns every mutation of product stock.  Each mutating operation runs in one
transaction and takes the per-product row lock before re-checking and
changing a row (lock, then check, then mutate), so two reservations racing
for the same stock serialize instead of overselling.

Products are locked in ascending id order regardless of input order, which
keeps concurrent multi-product operations from deadlocking; holds are
still emitted in input order.
"""

from __future__ import annotations

import logging
from collections.abc import Collection, Iterable
from datetime import timedelta

from holdkeeper.domain.exceptions import EntityNotFoundError, ValidationError
from holdkeeper.domain.model.inventory import (
    RELEASABLE_ON_EXPIRY,
    HoldStatus,
    InventoryHold,
    ProductInventory,
)
from holdkeeper.domain.model.value_objects import ReservationItem
from holdkeeper.domain.port.clock import Clock
from holdkeeper.domain.repository.unit_of_work import (
    UnitOfWork,
    UnitOfWorkFactory,
    transaction,
)

logger = logging.getLogger(__name__)

DEFAULT_HOLD_MINUTES = 30


class InventoryLedger:

    def __init__(self, uow_factory: UnitOfWorkFactory, clock: Clock) -> None:
        self._uow_factory = uow_factory
        self._clock = clock

    # --- Availability ---------------------------------------------------------

    def check_availability(self, items: Iterable[ReservationItem]) -> bool:
        """Answer whether every item could be reserved right now.

        Unlocked read: a later ``reserve_items`` may still fail.
        """
        with self._uow_factory() as uow:
            for item in items:
                inv = uow.inventory.get_by_product_id(item.product_id)
                if inv is None or not inv.tracking_enabled:
                    continue
                if not inv.can_supply(item.quantity.value):
                    logger.warning(
                        "Insufficient inventory for product %s",
                        item.product_id,
                        extra={
                            "requested": item.quantity.value,
                            "available": inv.available_quantity,
                        },
                    )
                    return False
        return True

    # --- Holds ----------------------------------------------------------------

    def reserve_items(
        self,
        items: list[ReservationItem],
        hold_duration_minutes: int = DEFAULT_HOLD_MINUTES,
        reservation_id: str | None = None,
        uow: UnitOfWork | None = None,
    ) -> list[InventoryHold]:
        """Reserve every item or nothing.

        Products without a stock row, or with tracking disabled, are not
        held.  Raises InsufficientInventory if any tracked product falls
        short; the whole transaction is then rolled back.
        """
        if not items:
            return []
        if hold_duration_minutes <= 0:
            raise ValidationError("Hold duration must be a positive number of minutes")

        now = self._clock.now()
        hold_until = now + timedelta(minutes=hold_duration_minutes)
        holds: list[InventoryHold] = []

        with transaction(self._uow_factory, uow) as tx:
            locked = self._lock_products(tx, (item.product_id for item in items))
            for item in items:
                inv = locked[item.product_id]
                if inv is None or not inv.tracking_enabled:
                    continue
                inv.reserve(item.quantity.value, now)
                tx.inventory.save(inv)

                hold = InventoryHold.create(
                    reservation_id=reservation_id,
                    product_id=item.product_id,
                    quantity=item.quantity.value,
                    hold_until=hold_until,
                    now=now,
                )
                tx.holds.save(hold)
                holds.append(hold)

        for hold in holds:
            logger.info(
                "Inventory hold created",
                extra={
                    "hold_id": hold.id,
                    "reservation_id": reservation_id,
                    "product_id": hold.product_id,
                    "quantity": hold.quantity,
                    "hold_until": hold_until.isoformat(),
                },
            )
        return holds

    def confirm_reservation(
        self,
        hold_ids: Iterable[str],
        uow: UnitOfWork | None = None,
    ) -> list[InventoryHold]:
        """Turn active holds into permanent consumption.

        Holds that are not active are skipped.
        """
        now = self._clock.now()
        confirmed: list[InventoryHold] = []

        with transaction(self._uow_factory, uow) as tx:
            holds = [h for h in tx.holds.get_many(hold_ids, lock=True) if h.status is HoldStatus.ACTIVE]
            locked = self._lock_products(tx, (h.product_id for h in holds))
            for hold in holds:
                hold.confirm(now)
                tx.holds.save(hold)
                inv = locked[hold.product_id]
                if inv is not None:
                    inv.confirm(hold.quantity, now)
                    tx.inventory.save(inv)
                confirmed.append(hold)

        for hold in confirmed:
            logger.info(
                "Inventory hold confirmed",
                extra={"hold_id": hold.id, "product_id": hold.product_id, "quantity": hold.quantity},
            )
        return confirmed

    def release_holds(
        self,
        hold_ids: Iterable[str],
        statuses: Collection[HoldStatus] = RELEASABLE_ON_EXPIRY,
        uow: UnitOfWork | None = None,
    ) -> list[InventoryHold]:
        """Return held stock for every hold whose status is in *statuses*.

        Idempotent: released holds, and holds outside *statuses*, are
        skipped without error.  Releasing a confirmed hold puts its units
        back into both total and available stock.
        """
        now = self._clock.now()
        released: list[InventoryHold] = []

        with transaction(self._uow_factory, uow) as tx:
            holds = [
                h for h in tx.holds.get_many(hold_ids, lock=True)
                if h.status in statuses and h.status is not HoldStatus.RELEASED
            ]
            locked = self._lock_products(tx, (h.product_id for h in holds))
            for hold in holds:
                was_confirmed = hold.status is HoldStatus.CONFIRMED
                hold.release(now)
                tx.holds.save(hold)
                inv = locked[hold.product_id]
                if inv is not None:
                    if was_confirmed:
                        inv.restock(hold.quantity, now)
                    else:
                        inv.release(hold.quantity, now)
                    tx.inventory.save(inv)
                released.append(hold)

        for hold in released:
            logger.info(
                "Inventory hold released",
                extra={"hold_id": hold.id, "product_id": hold.product_id, "quantity": hold.quantity},
            )
        return released

    def holds_for_reservation(
        self,
        reservation_id: str,
        statuses: Collection[HoldStatus] | None = None,
        uow: UnitOfWork | None = None,
    ) -> list[InventoryHold]:
        with transaction(self._uow_factory, uow) as tx:
            return tx.holds.list_for_reservation(reservation_id, statuses)

    # --- Stock administration -------------------------------------------------

    def initialize_inventory(
        self,
        business_id: str,
        product_id: str,
        product_name: str,
        quantity: int,
        minimum_stock: int = 0,
        tracking_enabled: bool = True,
    ) -> ProductInventory:
        item = ProductInventory.create(
            product_id=product_id,
            business_id=business_id,
            product_name=product_name,
            quantity=quantity,
            minimum_stock=minimum_stock,
            tracking_enabled=tracking_enabled,
        )
        item.updated_at = self._clock.now()
        with self._uow_factory() as uow:
            if uow.lock_product(item.product_id) is not None:
                raise ValidationError(f"Inventory for product '{item.product_id}' already exists")
            uow.inventory.save(item)
            uow.commit()

        logger.info(
            "Inventory initialized",
            extra={"business_id": business_id, "product_id": item.product_id, "quantity": quantity},
        )
        return item

    def adjust_stock(self, product_id: str, total_quantity: int) -> ProductInventory:
        """Set a product's physical stock count under its row lock."""
        with self._uow_factory() as uow:
            inv = uow.lock_product(product_id)
            if inv is None:
                raise EntityNotFoundError(f"No inventory record for product '{product_id}'")
            inv.adjust_total(total_quantity, self._clock.now())
            uow.inventory.save(inv)
            uow.commit()
        return inv

    def get_inventory(self, product_id: str) -> ProductInventory | None:
        with self._uow_factory() as uow:
            return uow.inventory.get_by_product_id(product_id)

    def list_inventory(self, business_id: str | None = None) -> list[ProductInventory]:
        with self._uow_factory() as uow:
            return uow.inventory.list_by_business(business_id)

    def low_stock_alerts(self, business_id: str) -> list[ProductInventory]:
        return [item for item in self.list_inventory(business_id) if item.is_low_stock]

    # --- Internal helpers -----------------------------------------------------

    @staticmethod
    def _lock_products(
        uow: UnitOfWork,
        product_ids: Iterable[str],
    ) -> dict[str, ProductInventory | None]:
        return {pid: uow.lock_product(pid) for pid in sorted(set(product_ids))}
