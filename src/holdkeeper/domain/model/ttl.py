"""ReservationTTL: the expiry clock attached to every reservation.

Status only moves forward::

    ACTIVE -> WARNED -> EXPIRED -> CLEANED

A reservation can skip WARNED (its deadline passed between ticks) and an
explicit cancellation can jump straight to CLEANED, but nothing ever moves
backwards.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum

from holdkeeper.domain.exceptions import InvalidTTLState, ValidationError
from holdkeeper.domain.model.value_objects import utcnow


class TTLStatus(Enum):
    ACTIVE = "active"
    WARNED = "warned"
    EXPIRED = "expired"
    CLEANED = "cleaned"


LIVE_TTL_STATUSES = frozenset({TTLStatus.ACTIVE, TTLStatus.WARNED})
TERMINAL_TTL_STATUSES = frozenset({TTLStatus.EXPIRED, TTLStatus.CLEANED})


@dataclass
class ReservationTTL:

    reservation_id: str
    expires_at: datetime
    warnings_sent: frozenset[int] = frozenset()
    grace_period_ends_at: datetime | None = None
    status: TTLStatus = TTLStatus.ACTIVE
    updated_at: datetime = field(default_factory=utcnow)

    @staticmethod
    def start(reservation_id: str, ttl_minutes: int, now: datetime) -> ReservationTTL:
        """Begin (or restart) the clock for a reservation."""
        if ttl_minutes <= 0:
            raise ValidationError("TTL must be a positive number of minutes")
        return ReservationTTL(
            reservation_id=reservation_id,
            expires_at=now + timedelta(minutes=ttl_minutes),
            updated_at=now,
        )

    # --- Queries --------------------------------------------------------------

    @property
    def is_live(self) -> bool:
        return self.status in LIVE_TTL_STATUSES

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_TTL_STATUSES

    def is_overdue(self, now: datetime) -> bool:
        return self.expires_at < now

    def needs_warning(self, interval: int, now: datetime) -> bool:
        """True once the deadline is within *interval* minutes and unwarned."""
        return (
            self.is_live
            and interval not in self.warnings_sent
            and now < self.expires_at <= now + timedelta(minutes=interval)
        )

    def grace_end(self, grace_period_minutes: int) -> datetime:
        return self.expires_at + timedelta(minutes=grace_period_minutes)

    def in_grace(self, grace_period_minutes: int, now: datetime) -> bool:
        return grace_period_minutes > 0 and now < self.grace_end(grace_period_minutes)

    def minutes_remaining(self, now: datetime) -> int:
        seconds = (self.expires_at - now).total_seconds()
        return max(0, math.ceil(seconds / 60))

    # --- State transitions ----------------------------------------------------

    def extend(self, additional_minutes: int, now: datetime) -> None:
        """Push the deadline out from the *current* expiry, not from now."""
        if self.is_terminal:
            raise InvalidTTLState(
                f"Cannot extend reservation {self.reservation_id} "
                f"in {self.status.value} status"
            )
        if additional_minutes <= 0:
            raise ValidationError("Extension must be a positive number of minutes")
        self.expires_at = self.expires_at + timedelta(minutes=additional_minutes)
        self.updated_at = now

    def record_warning(self, interval: int, now: datetime) -> None:
        if not self.is_live:
            raise InvalidTTLState(
                f"Cannot warn reservation {self.reservation_id} "
                f"in {self.status.value} status"
            )
        self.warnings_sent = self.warnings_sent | {interval}
        self.status = TTLStatus.WARNED
        self.updated_at = now

    def expire(self, now: datetime, grace_period_minutes: int = 0) -> None:
        if not self.is_live:
            raise InvalidTTLState(
                f"Cannot expire reservation {self.reservation_id} "
                f"in {self.status.value} status"
            )
        self.status = TTLStatus.EXPIRED
        if grace_period_minutes > 0:
            self.grace_period_ends_at = self.grace_end(grace_period_minutes)
        self.updated_at = now

    def clean(self, now: datetime) -> None:
        if self.status is TTLStatus.CLEANED:
            return
        self.status = TTLStatus.CLEANED
        self.updated_at = now
