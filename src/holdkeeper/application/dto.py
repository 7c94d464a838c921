"""Data Transfer Objects: plain containers that cross layer boundaries.

DTOs carry data between the CLI and application layers without
exposing domain internals to the outside world.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from holdkeeper.domain.model.inventory import InventoryHold, ProductInventory
from holdkeeper.domain.model.policy import ExpirationPolicy
from holdkeeper.domain.model.reservation import Reservation
from holdkeeper.domain.model.ttl import ReservationTTL


# --- Inputs -------------------------------------------------------------------


@dataclass(frozen=True)
class ReservationItemSpec:
    """Input: a product and how many units to hold for it."""

    product_id: str
    quantity: int


@dataclass(frozen=True)
class CreateReservationRequest:
    business_id: str
    customer_name: str
    customer_email: str | None = None
    service_type_id: str | None = None
    items: tuple[ReservationItemSpec, ...] = ()
    ttl_minutes: int | None = None
    hold_duration_minutes: int | None = None
    notes: str = ""


@dataclass(frozen=True)
class PolicySpec:
    """Input: the settings of a new expiration policy."""

    business_id: str
    name: str
    default_ttl_minutes: int
    warning_intervals: tuple[int, ...] = ()
    grace_period_minutes: int = 0
    auto_cleanup: bool = False
    send_warnings: bool = True
    send_expired_notices: bool = True
    send_business_notifications: bool = False
    service_type_ids: tuple[str, ...] | None = None


# --- Outputs ------------------------------------------------------------------


@dataclass(frozen=True)
class HoldDTO:
    id: str
    product_id: str
    quantity: int
    status: str
    hold_until: str


@dataclass(frozen=True)
class ReservationDTO:
    """Output: a reservation with its expiry clock and inventory holds."""

    id: str
    business_id: str
    customer_name: str
    customer_email: str | None
    service_type_id: str | None
    policy_id: str | None
    status: str
    notes: str
    created_at: str
    ttl_status: str | None = None
    expires_at: str | None = None
    warnings_sent: tuple[int, ...] = ()
    holds: list[HoldDTO] = field(default_factory=list)
    cancelled_by: str | None = None
    cancellation_reason: str | None = None


@dataclass(frozen=True)
class InventoryLineDTO:
    product_id: str
    product_name: str
    business_id: str
    total: int
    reserved: int
    available: int
    minimum_stock: int
    tracking_enabled: bool
    low_stock: bool


@dataclass(frozen=True)
class PolicyDTO:
    id: str
    business_id: str
    name: str
    default_ttl_minutes: int
    warning_intervals: tuple[int, ...]
    grace_period_minutes: int
    auto_cleanup: bool
    send_warnings: bool
    send_expired_notices: bool
    send_business_notifications: bool
    service_type_ids: tuple[str, ...] | None
    is_active: bool


@dataclass(frozen=True)
class ExpirationStatsDTO:
    business_id: str
    total_reservations: int
    expired_reservations: int
    expiration_rate: float  # percent, two decimals


# --- Mapping ------------------------------------------------------------------


def format_time(value: datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M UTC")


def hold_to_dto(hold: InventoryHold) -> HoldDTO:
    return HoldDTO(
        id=hold.id,
        product_id=hold.product_id,
        quantity=hold.quantity,
        status=hold.status.value,
        hold_until=format_time(hold.hold_until),
    )


def reservation_to_dto(
    reservation: Reservation,
    ttl: ReservationTTL | None = None,
    holds: list[InventoryHold] | None = None,
) -> ReservationDTO:
    return ReservationDTO(
        id=reservation.id,
        business_id=reservation.business_id,
        customer_name=reservation.customer_name,
        customer_email=reservation.customer_email,
        service_type_id=reservation.service_type_id,
        policy_id=reservation.policy_id,
        status=reservation.status.value,
        notes=reservation.notes,
        created_at=format_time(reservation.created_at),
        ttl_status=ttl.status.value if ttl is not None else None,
        expires_at=format_time(ttl.expires_at) if ttl is not None else None,
        warnings_sent=tuple(sorted(ttl.warnings_sent)) if ttl is not None else (),
        holds=[hold_to_dto(h) for h in holds or []],
        cancelled_by=reservation.cancelled_by,
        cancellation_reason=reservation.cancellation_reason,
    )


def inventory_to_dto(item: ProductInventory) -> InventoryLineDTO:
    return InventoryLineDTO(
        product_id=item.product_id,
        product_name=item.product_name,
        business_id=item.business_id,
        total=item.total_quantity,
        reserved=item.reserved_quantity,
        available=item.available_quantity,
        minimum_stock=item.minimum_stock,
        tracking_enabled=item.tracking_enabled,
        low_stock=item.is_low_stock,
    )


def policy_to_dto(policy: ExpirationPolicy) -> PolicyDTO:
    return PolicyDTO(
        id=policy.id,
        business_id=policy.business_id,
        name=policy.name,
        default_ttl_minutes=policy.default_ttl_minutes,
        warning_intervals=policy.warning_intervals,
        grace_period_minutes=policy.grace_period_minutes,
        auto_cleanup=policy.auto_cleanup,
        send_warnings=policy.notifications.send_warnings,
        send_expired_notices=policy.notifications.send_expired_notices,
        send_business_notifications=policy.notifications.send_business_notifications,
        service_type_ids=(
            tuple(sorted(policy.service_type_ids)) if policy.service_type_ids is not None else None
        ),
        is_active=policy.is_active,
    )
