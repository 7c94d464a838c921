"""Unit tests for the ExpirationPolicy aggregate."""

import pytest

from holdkeeper.domain.exceptions import ValidationError
from holdkeeper.domain.model.policy import ExpirationPolicy
from holdkeeper.domain.model.value_objects import NotificationSettings


def _create(**overrides) -> ExpirationPolicy:
    fields = {"business_id": "B1", "name": "Standard", "default_ttl_minutes": 60}
    fields.update(overrides)
    return ExpirationPolicy.create(**fields)


class TestCreate:

    def test_defaults(self):
        policy = _create()
        assert policy.is_active
        assert policy.warning_intervals == ()
        assert policy.grace_period_minutes == 0
        assert policy.notifications == NotificationSettings()
        assert policy.service_type_ids is None

    def test_intervals_sorted_and_deduplicated(self):
        policy = _create(warning_intervals=[15, 5, 15])
        assert policy.warning_intervals == (5, 15)

    def test_name_required(self):
        with pytest.raises(ValidationError, match="name is required"):
            _create(name="  ")

    @pytest.mark.parametrize("ttl", [4, 10081])
    def test_ttl_out_of_range_rejected(self, ttl):
        with pytest.raises(ValidationError, match="between 5 and 10080"):
            _create(default_ttl_minutes=ttl)

    def test_ttl_bounds_accepted(self):
        assert _create(default_ttl_minutes=5).default_ttl_minutes == 5
        assert _create(default_ttl_minutes=10080).default_ttl_minutes == 10080

    def test_too_many_intervals_rejected(self):
        with pytest.raises(ValidationError, match="Maximum 5 warning intervals"):
            _create(warning_intervals=[1, 2, 3, 4, 5, 6])

    def test_interval_not_shorter_than_ttl_rejected(self):
        with pytest.raises(ValidationError, match="must be shorter than"):
            _create(default_ttl_minutes=30, warning_intervals=[30])

    def test_non_positive_interval_rejected(self):
        with pytest.raises(ValidationError, match="must be positive"):
            _create(warning_intervals=[0, 10])

    def test_non_integer_interval_rejected(self):
        with pytest.raises(ValidationError, match="must be an integer"):
            _create(warning_intervals=["10"])

    def test_grace_out_of_range_rejected(self):
        with pytest.raises(ValidationError, match="Grace period"):
            _create(grace_period_minutes=1441)

    def test_blank_scope_means_all_service_types(self):
        assert _create(service_type_ids=["", " "]).service_type_ids is None


class TestScope:

    def test_unscoped_applies_to_everything(self):
        policy = _create()
        assert policy.applies_to(None)
        assert policy.applies_to("haircut")

    def test_scoped_applies_only_to_its_types(self):
        policy = _create(service_type_ids=["haircut"])
        assert policy.applies_to("haircut")
        assert not policy.applies_to("massage")
        assert not policy.applies_to(None)

    def test_two_unscoped_active_policies_conflict(self):
        assert _create().conflicts_with(_create(name="Other"))

    def test_scoped_and_unscoped_do_not_conflict(self):
        assert not _create().conflicts_with(_create(name="Cuts", service_type_ids=["haircut"]))

    def test_overlapping_scopes_conflict(self):
        a = _create(name="A", service_type_ids=["haircut", "color"])
        b = _create(name="B", service_type_ids=["color"])
        assert a.conflicts_with(b)

    def test_inactive_policy_never_conflicts(self):
        other = _create(name="Old")
        other.deactivate()
        assert not _create().conflicts_with(other)

    def test_other_business_never_conflicts(self):
        assert not _create().conflicts_with(_create(business_id="B2"))


class TestSerialization:

    def test_dict_round_trip_keeps_typed_fields(self):
        policy = _create(
            warning_intervals=[5, 15],
            service_type_ids=["haircut"],
            notifications=NotificationSettings(send_business_notifications=True),
        )
        restored = ExpirationPolicy.from_dict(policy.to_dict())
        assert restored == policy
        assert restored.warning_intervals == (5, 15)
        assert restored.service_type_ids == frozenset({"haircut"})
