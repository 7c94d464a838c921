"""Application service: Set Inventory use cases (initialize, adjust)."""

from __future__ import annotations

from holdkeeper.application.dto import InventoryLineDTO, inventory_to_dto
from holdkeeper.domain.service.inventory_ledger import InventoryLedger


class InitializeInventoryHandler:

    def __init__(self, ledger: InventoryLedger) -> None:
        self._ledger = ledger

    def handle(
        self,
        business_id: str,
        product_id: str,
        product_name: str,
        quantity: int,
        minimum_stock: int = 0,
        tracking_enabled: bool = True,
    ) -> InventoryLineDTO:
        """Create the stock record of a product; fails if one exists."""
        item = self._ledger.initialize_inventory(
            business_id=business_id,
            product_id=product_id,
            product_name=product_name,
            quantity=quantity,
            minimum_stock=minimum_stock,
            tracking_enabled=tracking_enabled,
        )
        return inventory_to_dto(item)


class AdjustStockHandler:

    def __init__(self, ledger: InventoryLedger) -> None:
        self._ledger = ledger

    def handle(self, product_id: str, total_quantity: int) -> InventoryLineDTO:
        """Set the physical stock count of a product."""
        return inventory_to_dto(self._ledger.adjust_stock(product_id, total_quantity))
