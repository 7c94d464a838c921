"""Reservation aggregate: the base booking record.

The surrounding booking logic owns most of a reservation's fields; the
engine only reads and moves its status.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from holdkeeper.domain.exceptions import ValidationError
from holdkeeper.domain.model.value_objects import utcnow


class ReservationStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


# Reservations the expiration processor still watches.
OPEN_RESERVATION_STATUSES = frozenset({ReservationStatus.PENDING, ReservationStatus.CONFIRMED})


@dataclass
class Reservation:
    """Aggregate root for a customer's booking.

    ``policy_id`` links the reservation to the expiration policy that
    supplied its TTL so a policy stays traceable after deactivation.
    """

    id: str
    business_id: str
    customer_name: str
    customer_email: str | None = None
    service_type_id: str | None = None
    policy_id: str | None = None
    status: ReservationStatus = ReservationStatus.PENDING
    notes: str = ""
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    cancelled_at: datetime | None = None
    cancelled_by: str | None = None
    cancellation_reason: str | None = None

    # --- Factory (used for NEW reservations only) -----------------------------

    @staticmethod
    def create(
        business_id: str,
        customer_name: str,
        customer_email: str | None = None,
        service_type_id: str | None = None,
        notes: str = "",
        now: datetime | None = None,
    ) -> Reservation:
        if not business_id or not business_id.strip():
            raise ValidationError("Business ID is required")
        if not customer_name or not customer_name.strip():
            raise ValidationError("Customer name is required")
        now = now or utcnow()
        return Reservation(
            id=uuid.uuid4().hex,
            business_id=business_id.strip(),
            customer_name=customer_name.strip(),
            customer_email=customer_email,
            service_type_id=service_type_id,
            notes=notes or "",
            created_at=now,
            updated_at=now,
        )

    # --- State transitions ----------------------------------------------------

    def confirm(self, now: datetime | None = None) -> None:
        """Transition PENDING -> CONFIRMED."""
        if self.status is not ReservationStatus.PENDING:
            raise ValidationError(
                f"Cannot confirm reservation - current status is {self.status.value}, "
                f"expected pending"
            )
        self.status = ReservationStatus.CONFIRMED
        self.updated_at = now or utcnow()

    def complete(self, now: datetime | None = None) -> None:
        """Transition CONFIRMED -> COMPLETED."""
        if self.status is not ReservationStatus.CONFIRMED:
            raise ValidationError(
                f"Cannot complete reservation - current status is {self.status.value}, "
                f"expected confirmed"
            )
        self.status = ReservationStatus.COMPLETED
        self.updated_at = now or utcnow()

    def cancel(
        self,
        cancelled_by: str,
        reason: str | None = None,
        now: datetime | None = None,
    ) -> None:
        """Transition PENDING|CONFIRMED -> CANCELLED.

        Held inventory must be released by the caller in the same
        transaction.
        """
        if self.status is ReservationStatus.CANCELLED:
            raise ValidationError("Reservation already cancelled")
        if self.status is ReservationStatus.COMPLETED:
            raise ValidationError("Cannot cancel completed reservation")
        now = now or utcnow()
        self.status = ReservationStatus.CANCELLED
        self.cancelled_at = now
        self.cancelled_by = cancelled_by
        self.cancellation_reason = reason
        if reason:
            prefix = f"{self.notes}\n\n" if self.notes else ""
            self.notes = f"{prefix}Cancellation reason: {reason}"
        self.updated_at = now

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_RESERVATION_STATUSES
