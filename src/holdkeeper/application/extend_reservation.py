"""Application service: Extend Reservation use case."""

from __future__ import annotations

from holdkeeper.domain.service.ttl_tracker import TTLTracker


class ExtendReservationHandler:

    def __init__(self, ttl_tracker: TTLTracker) -> None:
        self._ttl_tracker = ttl_tracker

    def handle(self, reservation_id: str, additional_minutes: int) -> bool:
        """Push the reservation's deadline out; False if it cannot be extended."""
        return self._ttl_tracker.extend_reservation(reservation_id, additional_minutes)
