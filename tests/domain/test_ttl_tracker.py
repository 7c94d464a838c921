"""Unit tests for the TTLTracker domain service."""

from datetime import timedelta

from holdkeeper.domain.model.reservation import Reservation
from holdkeeper.domain.model.ttl import ReservationTTL, TTLStatus
from holdkeeper.domain.service.policy_store import ExpirationPolicyStore
from holdkeeper.domain.service.ttl_tracker import TTLTracker
from tests.fakes import T0, DictCache, FakeClock, InMemoryDatabase, seed


def _setup():
    db = InMemoryDatabase()
    clock = FakeClock()
    store = ExpirationPolicyStore(db.unit_of_work, DictCache(), clock)
    return TTLTracker(db.unit_of_work, store, clock), store, db, clock


def _open_reservation(db: InMemoryDatabase, ttl_minutes: int = 30) -> Reservation:
    reservation = Reservation.create("B1", "Alice", now=T0)
    seed(db, reservation, ReservationTTL.start(reservation.id, ttl_minutes, T0))
    return reservation


class TestSetReservationTTL:

    def test_policy_default_applies(self):
        tracker, store, _, _ = _setup()
        store.create_policy("B1", "Standard", 30)

        record = tracker.set_reservation_ttl("R1", business_id="B1")

        assert record.expires_at == T0 + timedelta(minutes=30)
        assert record.status is TTLStatus.ACTIVE
        assert tracker.get_ttl("R1") == record

    def test_explicit_ttl_wins_over_policy(self):
        tracker, store, _, _ = _setup()
        store.create_policy("B1", "Standard", 30)
        record = tracker.set_reservation_ttl("R1", ttl_minutes=90, business_id="B1")
        assert record.expires_at == T0 + timedelta(minutes=90)

    def test_fallback_without_policy(self):
        tracker, _, _, _ = _setup()
        record = tracker.set_reservation_ttl("R1", business_id="B1")
        assert record.expires_at == T0 + timedelta(minutes=30)

    def test_scoped_policy_used_for_service_type(self):
        tracker, store, _, _ = _setup()
        store.create_policy("B1", "Standard", 60)
        store.create_policy("B1", "Quick", 10, service_type_ids=["trim"])
        assert tracker.resolve_ttl_minutes(None, "B1", "trim") == 10
        assert tracker.resolve_ttl_minutes(None, "B1", "color") == 60

    def test_setting_again_restarts_clock(self):
        tracker, _, _, clock = _setup()
        tracker.set_reservation_ttl("R1", ttl_minutes=30)
        tracker.extend_reservation("R1", 10)
        clock.advance(minutes=5)

        record = tracker.set_reservation_ttl("R1", ttl_minutes=30)

        assert record.expires_at == T0 + timedelta(minutes=35)
        assert tracker.get_ttl("R1").expires_at == record.expires_at


class TestExtend:

    def test_extends_from_current_deadline(self):
        tracker, _, db, clock = _setup()
        reservation = _open_reservation(db, 30)
        clock.advance(minutes=20)

        assert tracker.extend_reservation(reservation.id, 15) is True
        assert tracker.get_ttl(reservation.id).expires_at == T0 + timedelta(minutes=45)

    def test_missing_ttl_returns_false(self):
        tracker, _, _, _ = _setup()
        assert tracker.extend_reservation("ghost", 15) is False

    def test_expired_ttl_returns_false_and_is_untouched(self):
        tracker, _, db, _ = _setup()
        ttl = ReservationTTL.start("R1", 30, T0)
        ttl.expire(T0 + timedelta(minutes=31))
        seed(db, ttl)

        assert tracker.extend_reservation("R1", 15) is False
        assert tracker.get_ttl("R1") == ttl

    def test_non_positive_extension_returns_false(self):
        tracker, _, db, _ = _setup()
        reservation = _open_reservation(db, 30)
        assert tracker.extend_reservation(reservation.id, 0) is False
        assert tracker.get_ttl(reservation.id).expires_at == T0 + timedelta(minutes=30)


class TestQueries:

    def test_expiring_and_expired(self):
        tracker, _, db, clock = _setup()
        soon = _open_reservation(db, 20)
        later = _open_reservation(db, 120)
        gone = _open_reservation(db, 5)
        clock.advance(minutes=10)

        assert [t.reservation_id for t in tracker.get_expiring(within_minutes=60)] == [soon.id]
        assert [t.reservation_id for t in tracker.get_expired()] == [gone.id]
        assert later.id not in [t.reservation_id for t in tracker.get_expiring()]

    def test_closed_reservations_are_ignored(self):
        tracker, _, db, clock = _setup()
        reservation = Reservation.create("B1", "Alice", now=T0)
        reservation.cancel("alice", now=T0)
        seed(db, reservation, ReservationTTL.start(reservation.id, 5, T0))
        clock.advance(minutes=10)

        assert tracker.get_expired() == []
