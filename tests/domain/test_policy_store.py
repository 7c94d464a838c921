"""Unit tests for the ExpirationPolicyStore: cached lookups and writes."""

import pytest

from holdkeeper.domain.exceptions import PolicyNotFound, ValidationError
from holdkeeper.domain.model.reservation import Reservation
from holdkeeper.domain.model.ttl import ReservationTTL
from holdkeeper.domain.port.cache import NullCache
from holdkeeper.domain.service.policy_store import (
    ExpirationPolicyStore,
    business_cache_key,
    policy_cache_key,
)
from tests.fakes import T0, BrokenCache, DictCache, FakeClock, InMemoryDatabase, seed


def _setup(cache=None):
    db = InMemoryDatabase()
    cache = cache if cache is not None else DictCache()
    store = ExpirationPolicyStore(db.unit_of_work, cache, FakeClock(), cache_ttl_seconds=3600)
    return store, db, cache


class TestLookups:

    def test_business_lookup_populates_cache(self):
        store, _, cache = _setup()
        created = store.create_policy("B1", "Standard", 60)

        first = store.get_policy_for_business("B1")
        second = store.get_policy_for_business("B1")

        assert first == created
        assert second == created
        assert cache.hits == 1
        assert cache.ttls[business_cache_key("B1")] == 3600

    def test_id_lookup_populates_cache(self):
        store, _, cache = _setup()
        created = store.create_policy("B1", "Standard", 60)

        assert store.get_policy(created.id) == created
        assert policy_cache_key(created.id) in cache.store

    def test_unknown_business_has_no_policy(self):
        store, _, cache = _setup()
        assert store.get_policy_for_business("nobody") is None
        assert business_cache_key("nobody") not in cache.store

    def test_require_unknown_policy_raises(self):
        store, _, _ = _setup()
        with pytest.raises(PolicyNotFound):
            store.require_policy("missing")

    def test_scoped_policy_wins_for_its_service_type(self):
        store, _, _ = _setup()
        general = store.create_policy("B1", "General", 60)
        cuts = store.create_policy("B1", "Cuts", 20, service_type_ids=["haircut"])

        assert store.get_policy_for_business("B1", "haircut") == cuts
        assert store.get_policy_for_business("B1", "massage") == general
        assert store.get_policy_for_business("B1") == general

    def test_inactive_policy_is_not_returned(self):
        store, _, _ = _setup()
        policy = store.create_policy("B1", "Standard", 60)
        store.deactivate_policy(policy.id)
        assert store.get_policy_for_business("B1") is None

    def test_works_without_cache(self):
        store, _, _ = _setup(NullCache())
        created = store.create_policy("B1", "Standard", 60)
        assert store.get_policy_for_business("B1") == created
        assert store.get_policy(created.id) == created

    def test_broken_cache_falls_back_to_store(self):
        store, _, _ = _setup(BrokenCache())
        created = store.create_policy("B1", "Standard", 60)
        assert store.get_policy_for_business("B1") == created
        updated = store.update_policy(created.id, default_ttl_minutes=90)
        assert store.get_policy(created.id).default_ttl_minutes == 90
        assert updated.default_ttl_minutes == 90


class TestWrites:

    def test_update_invalidates_cached_entries(self):
        store, _, cache = _setup()
        policy = store.create_policy("B1", "Standard", 60)
        store.get_policy_for_business("B1")
        store.get_policy(policy.id)

        store.update_policy(policy.id, default_ttl_minutes=45, warning_intervals=[10, 5])

        assert business_cache_key("B1") not in cache.store
        assert policy_cache_key(policy.id) not in cache.store
        fresh = store.get_policy_for_business("B1")
        assert fresh.default_ttl_minutes == 45
        assert fresh.warning_intervals == (5, 10)

    def test_deactivate_invalidates_cached_entries(self):
        store, _, cache = _setup()
        policy = store.create_policy("B1", "Standard", 60)
        store.get_policy_for_business("B1")

        store.deactivate_policy(policy.id)

        assert business_cache_key("B1") not in cache.store
        assert store.get_policy(policy.id).is_active is False

    def test_duplicate_name_rejected(self):
        store, _, _ = _setup()
        store.create_policy("B1", "Standard", 60, service_type_ids=["a"])
        with pytest.raises(ValidationError, match="already exists"):
            store.create_policy("B1", "standard", 60, service_type_ids=["b"])

    def test_second_business_wide_policy_rejected(self):
        store, _, _ = _setup()
        store.create_policy("B1", "Standard", 60)
        with pytest.raises(ValidationError, match="already covers this scope"):
            store.create_policy("B1", "Other", 30)

    def test_replacement_allowed_after_deactivation(self):
        store, _, _ = _setup()
        old = store.create_policy("B1", "Standard", 60)
        store.deactivate_policy(old.id)
        new = store.create_policy("B1", "Replacement", 30)
        assert store.get_policy_for_business("B1") == new

    def test_update_validates_merged_policy(self):
        store, _, _ = _setup()
        policy = store.create_policy("B1", "Standard", 60, warning_intervals=[30])
        with pytest.raises(ValidationError, match="must be shorter than"):
            store.update_policy(policy.id, default_ttl_minutes=20)
        assert store.get_policy(policy.id).default_ttl_minutes == 60

    def test_update_unknown_field_rejected(self):
        store, _, _ = _setup()
        policy = store.create_policy("B1", "Standard", 60)
        with pytest.raises(ValidationError, match="business_id"):
            store.update_policy(policy.id, business_id="B2")

    def test_update_missing_policy_raises(self):
        store, _, _ = _setup()
        with pytest.raises(PolicyNotFound):
            store.update_policy("missing", name="x")


class TestInUse:

    def test_reports_policies_with_live_reservations(self):
        store, db, _ = _setup()
        policy = store.create_policy("B1", "Standard", 60)
        idle = store.create_policy("B1", "Idle", 60, service_type_ids=["x"])

        live = Reservation.create("B1", "Alice", now=T0)
        live.policy_id = policy.id
        done = Reservation.create("B1", "Bob", now=T0)
        done.policy_id = idle.id
        done.cancel("bob", now=T0)
        seed(db, live, done, ReservationTTL.start(live.id, 60, T0), ReservationTTL.start(done.id, 60, T0))

        assert store.get_policies_in_use("B1") == [policy.id]
