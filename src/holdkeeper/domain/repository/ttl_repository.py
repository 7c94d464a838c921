"""Abstract repository for ReservationTTL records.

The set-based finders join against the reservation table: they only ever
return TTLs whose reservation is still open (pending or confirmed).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Collection
from datetime import datetime

from holdkeeper.domain.model.ttl import ReservationTTL, TTLStatus


class ReservationTTLRepository(ABC):

    @abstractmethod
    def get(self, reservation_id: str, lock: bool = False) -> ReservationTTL | None:
        """Return the TTL record of a reservation, or None.

        With ``lock=True`` the row is held exclusively until the enclosing
        unit of work ends; read it that way before saving it back.
        """

    @abstractmethod
    def save(self, ttl: ReservationTTL) -> None:
        """Insert or replace the TTL record (one per reservation)."""

    @abstractmethod
    def find_expiring(
        self,
        after: datetime,
        until: datetime,
        business_id: str | None = None,
    ) -> list[ReservationTTL]:
        """Live TTLs with ``after < expires_at <= until``, soonest first."""

    @abstractmethod
    def find_expired(self, before: datetime) -> list[ReservationTTL]:
        """Live TTLs with ``expires_at < before``, oldest first."""

    @abstractmethod
    def delete_cleaned_before(self, cutoff: datetime) -> int:
        """Hard-delete cleaned TTLs last updated before *cutoff*."""

    @abstractmethod
    def count_for_business(
        self,
        business_id: str,
        statuses: Collection[TTLStatus] | None = None,
        created_from: datetime | None = None,
        created_to: datetime | None = None,
    ) -> int:
        """Count TTLs of a business's reservations, any reservation status."""
