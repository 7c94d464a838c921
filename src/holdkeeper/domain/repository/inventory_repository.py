"""Abstract repositories for ProductInventory rows and InventoryHold records."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Collection, Iterable

from holdkeeper.domain.model.inventory import HoldStatus, InventoryHold, ProductInventory


class ProductInventoryRepository(ABC):

    @abstractmethod
    def get_by_product_id(self, product_id: str, lock: bool = False) -> ProductInventory | None:
        """Return the stock row for a product, or None.

        With ``lock=True`` the row is held exclusively until the enclosing
        transaction ends.
        """

    @abstractmethod
    def list_by_business(self, business_id: str | None = None) -> list[ProductInventory]:
        """Return stock rows, optionally restricted to one business."""

    @abstractmethod
    def save(self, item: ProductInventory) -> None:
        """Persist a new or updated stock row."""


class InventoryHoldRepository(ABC):

    @abstractmethod
    def get_many(self, hold_ids: Iterable[str], lock: bool = False) -> list[InventoryHold]:
        """Return the holds that exist among *hold_ids*, ordered by id."""

    @abstractmethod
    def list_for_reservation(
        self,
        reservation_id: str,
        statuses: Collection[HoldStatus] | None = None,
    ) -> list[InventoryHold]:
        """Return a reservation's holds in creation order."""

    @abstractmethod
    def save(self, hold: InventoryHold) -> None:
        """Persist a new or updated hold."""
