"""ProductInventory aggregate and InventoryHold entity.

Each product has one ProductInventory row that splits its stock into
``available`` and ``reserved``.  Every reservation's claim against that
stock is an InventoryHold.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from holdkeeper.domain.exceptions import InsufficientInventory, ValidationError
from holdkeeper.domain.model.value_objects import utcnow


class HoldStatus(Enum):
    ACTIVE = "active"
    CONFIRMED = "confirmed"
    EXPIRED = "expired"
    RELEASED = "released"


# Statuses a hold may be released from when its reservation expires.
RELEASABLE_ON_EXPIRY = frozenset({HoldStatus.ACTIVE, HoldStatus.EXPIRED})
# Explicit cancellation may also hand back stock that was already confirmed.
RELEASABLE_ON_CANCEL = frozenset({HoldStatus.ACTIVE, HoldStatus.CONFIRMED})


@dataclass
class ProductInventory:
    """Aggregate root for per-product stock.

    Invariants (checked after every mutation):
    - ``available_quantity >= 0`` and ``reserved_quantity >= 0``
    - ``available_quantity + reserved_quantity <= total_quantity``
    """

    product_id: str
    business_id: str
    product_name: str
    total_quantity: int
    available_quantity: int
    reserved_quantity: int = 0
    minimum_stock: int = 0
    tracking_enabled: bool = True
    updated_at: datetime = field(default_factory=utcnow)

    @staticmethod
    def create(
        product_id: str,
        business_id: str,
        product_name: str,
        quantity: int,
        minimum_stock: int = 0,
        tracking_enabled: bool = True,
    ) -> ProductInventory:
        if not product_id or not product_id.strip():
            raise ValidationError("Product ID is required")
        if not business_id or not business_id.strip():
            raise ValidationError("Business ID is required")
        if quantity < 0:
            raise ValidationError("Initial quantity cannot be negative")
        if minimum_stock < 0:
            raise ValidationError("Minimum stock cannot be negative")
        return ProductInventory(
            product_id=product_id.strip(),
            business_id=business_id.strip(),
            product_name=(product_name or "Unknown Product").strip(),
            total_quantity=quantity,
            available_quantity=quantity,
            minimum_stock=minimum_stock,
            tracking_enabled=tracking_enabled,
        )

    # --- Queries --------------------------------------------------------------

    def can_supply(self, quantity: int) -> bool:
        return not self.tracking_enabled or self.available_quantity >= quantity

    @property
    def is_low_stock(self) -> bool:
        return (
            self.tracking_enabled
            and self.minimum_stock > 0
            and self.available_quantity <= self.minimum_stock
        )

    # --- Mutations ------------------------------------------------------------

    def reserve(self, quantity: int, now: datetime | None = None) -> None:
        """Move *quantity* units from available to reserved."""
        _require_positive(quantity, "Reservation")
        if quantity > self.available_quantity:
            raise InsufficientInventory(self.product_id, quantity, self.available_quantity)
        self.available_quantity -= quantity
        self.reserved_quantity += quantity
        self._touch(now)

    def release(self, quantity: int, now: datetime | None = None) -> None:
        """Return reserved units to available stock."""
        _require_positive(quantity, "Release")
        if quantity > self.reserved_quantity:
            raise ValidationError(
                f"Cannot release {quantity} of {self.product_id} "
                f"- only {self.reserved_quantity} currently reserved"
            )
        self.reserved_quantity -= quantity
        self.available_quantity += quantity
        self._touch(now)

    def confirm(self, quantity: int, now: datetime | None = None) -> None:
        """Permanently consume reserved units.

        Both ``total_quantity`` and ``reserved_quantity`` decrease by the
        same amount: the units are sold, neither available nor reserved.
        """
        _require_positive(quantity, "Confirm")
        if quantity > self.reserved_quantity:
            raise ValidationError(
                f"Cannot confirm {quantity} of {self.product_id} "
                f"- only {self.reserved_quantity} currently reserved"
            )
        self.reserved_quantity -= quantity
        self.total_quantity -= quantity
        self._touch(now)

    def restock(self, quantity: int, now: datetime | None = None) -> None:
        """Put previously confirmed units back on the shelf."""
        _require_positive(quantity, "Restock")
        self.total_quantity += quantity
        self.available_quantity += quantity
        self._touch(now)

    def adjust_total(self, total_quantity: int, now: datetime | None = None) -> None:
        """Set a new physical stock count, keeping current reservations."""
        if total_quantity < self.reserved_quantity:
            raise ValidationError(
                f"Total {total_quantity} for {self.product_id} is below the "
                f"{self.reserved_quantity} units currently reserved"
            )
        self.total_quantity = total_quantity
        self.available_quantity = total_quantity - self.reserved_quantity
        self._touch(now)

    # --- Internal helpers -----------------------------------------------------

    def _touch(self, now: datetime | None) -> None:
        self._check_invariants()
        self.updated_at = now or utcnow()

    def _check_invariants(self) -> None:
        if self.available_quantity < 0 or self.reserved_quantity < 0:
            raise ValidationError(f"Negative stock for product {self.product_id}")
        if self.available_quantity + self.reserved_quantity > self.total_quantity:
            raise ValidationError(
                f"Available plus reserved exceeds total for product {self.product_id}"
            )


@dataclass
class InventoryHold:
    """A reservation's provisional claim on one product's stock."""

    id: str
    reservation_id: str | None
    product_id: str
    quantity: int
    hold_until: datetime
    status: HoldStatus = HoldStatus.ACTIVE
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @staticmethod
    def create(
        reservation_id: str | None,
        product_id: str,
        quantity: int,
        hold_until: datetime,
        now: datetime | None = None,
    ) -> InventoryHold:
        now = now or utcnow()
        return InventoryHold(
            id=uuid.uuid4().hex,
            reservation_id=reservation_id,
            product_id=product_id,
            quantity=quantity,
            hold_until=hold_until,
            created_at=now,
            updated_at=now,
        )

    def confirm(self, now: datetime | None = None) -> None:
        if self.status is not HoldStatus.ACTIVE:
            raise ValidationError(
                f"Cannot confirm hold {self.id} in {self.status.value} status"
            )
        self.status = HoldStatus.CONFIRMED
        self.updated_at = now or utcnow()

    def release(self, now: datetime | None = None) -> None:
        if self.status is HoldStatus.RELEASED:
            raise ValidationError(f"Hold {self.id} is already released")
        self.status = HoldStatus.RELEASED
        self.updated_at = now or utcnow()


def _require_positive(quantity: int, action: str) -> None:
    if quantity <= 0:
        raise ValidationError(f"{action} quantity must be positive")
