"""Value Objects shared across the domain.

Value Objects are immutable and compared by value, not identity.
They encapsulate validation so invalid values can never exist.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from holdkeeper.domain.exceptions import ValidationError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Quantity:
    """A positive integer quantity.

    Enforces the invariant that you cannot hold zero or negative items.
    """

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValidationError(
                f"Quantity must be an integer, got {type(self.value).__name__}"
            )
        if self.value <= 0:
            raise ValidationError("Quantity must be positive")

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class ReservationItem:
    """Input: one product and how many units a reservation wants to hold."""

    product_id: str
    quantity: Quantity

    @staticmethod
    def of(product_id: str, quantity: int) -> ReservationItem:
        if not product_id or not product_id.strip():
            raise ValidationError("Product ID is required")
        return ReservationItem(product_id=product_id.strip(), quantity=Quantity(quantity))


@dataclass(frozen=True)
class NotificationSettings:
    """Which notices a policy asks the engine to send."""

    send_warnings: bool = True
    send_expired_notices: bool = True
    send_business_notifications: bool = False

    def to_dict(self) -> dict:
        return {
            "send_warnings": self.send_warnings,
            "send_expired_notices": self.send_expired_notices,
            "send_business_notifications": self.send_business_notifications,
        }

    @staticmethod
    def from_dict(raw: dict | None) -> NotificationSettings:
        raw = raw or {}
        return NotificationSettings(
            send_warnings=bool(raw.get("send_warnings", True)),
            send_expired_notices=bool(raw.get("send_expired_notices", True)),
            send_business_notifications=bool(raw.get("send_business_notifications", False)),
        )
