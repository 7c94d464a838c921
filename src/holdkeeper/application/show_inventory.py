"""Application service: inventory queries."""

from __future__ import annotations

from holdkeeper.application.dto import InventoryLineDTO, ReservationItemSpec, inventory_to_dto
from holdkeeper.domain.exceptions import EntityNotFoundError
from holdkeeper.domain.model.value_objects import ReservationItem
from holdkeeper.domain.service.inventory_ledger import InventoryLedger


class ShowInventoryHandler:

    def __init__(self, ledger: InventoryLedger) -> None:
        self._ledger = ledger

    def handle(self, business_id: str | None = None) -> list[InventoryLineDTO]:
        return [inventory_to_dto(item) for item in self._ledger.list_inventory(business_id)]

    def handle_one(self, product_id: str) -> InventoryLineDTO:
        item = self._ledger.get_inventory(product_id)
        if item is None:
            raise EntityNotFoundError(f"No inventory record for product '{product_id}'")
        return inventory_to_dto(item)


class LowStockHandler:

    def __init__(self, ledger: InventoryLedger) -> None:
        self._ledger = ledger

    def handle(self, business_id: str) -> list[InventoryLineDTO]:
        return [inventory_to_dto(item) for item in self._ledger.low_stock_alerts(business_id)]


class CheckAvailabilityHandler:

    def __init__(self, ledger: InventoryLedger) -> None:
        self._ledger = ledger

    def handle(self, specs: list[ReservationItemSpec]) -> bool:
        items = [ReservationItem.of(spec.product_id, spec.quantity) for spec in specs]
        return self._ledger.check_availability(items)
