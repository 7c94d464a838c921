"""Unit tests for the Reservation aggregate."""

from datetime import datetime, timezone

import pytest

from holdkeeper.domain.exceptions import ValidationError
from holdkeeper.domain.model.reservation import Reservation, ReservationStatus

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def _reservation(**kwargs) -> Reservation:
    return Reservation.create(business_id="B1", customer_name="Alice", now=NOW, **kwargs)


class TestCreate:

    def test_starts_pending(self):
        reservation = _reservation()
        assert reservation.status is ReservationStatus.PENDING
        assert reservation.is_open
        assert reservation.created_at == NOW

    def test_customer_required(self):
        with pytest.raises(ValidationError, match="Customer name is required"):
            Reservation.create(business_id="B1", customer_name=" ")


class TestTransitions:

    def test_confirm_then_complete(self):
        reservation = _reservation()
        reservation.confirm(NOW)
        assert reservation.status is ReservationStatus.CONFIRMED
        reservation.complete(NOW)
        assert reservation.status is ReservationStatus.COMPLETED
        assert not reservation.is_open

    def test_complete_pending_rejected(self):
        with pytest.raises(ValidationError, match="expected confirmed"):
            _reservation().complete(NOW)

    def test_confirm_twice_rejected(self):
        reservation = _reservation()
        reservation.confirm(NOW)
        with pytest.raises(ValidationError, match="expected pending"):
            reservation.confirm(NOW)


class TestCancel:

    def test_cancel_records_who_and_why(self):
        reservation = _reservation(notes="Window seat")
        reservation.cancel("alice", "Changed plans", NOW)
        assert reservation.status is ReservationStatus.CANCELLED
        assert reservation.cancelled_by == "alice"
        assert reservation.cancelled_at == NOW
        assert reservation.notes == "Window seat\n\nCancellation reason: Changed plans"

    def test_cancel_without_reason_leaves_notes(self):
        reservation = _reservation()
        reservation.cancel("alice", now=NOW)
        assert reservation.notes == ""

    def test_cancel_twice_rejected(self):
        reservation = _reservation()
        reservation.cancel("alice", now=NOW)
        with pytest.raises(ValidationError, match="already cancelled"):
            reservation.cancel("alice", now=NOW)

    def test_cancel_completed_rejected(self):
        reservation = _reservation()
        reservation.confirm(NOW)
        reservation.complete(NOW)
        with pytest.raises(ValidationError, match="Cannot cancel completed"):
            reservation.cancel("alice", now=NOW)
