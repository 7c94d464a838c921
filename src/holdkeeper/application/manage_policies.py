"""Application services: Expiration Policy use cases.

Thin wrappers over ExpirationPolicyStore; the store owns validation and
cache invalidation.
"""

from __future__ import annotations

from typing import Any

from holdkeeper.application.dto import PolicyDTO, PolicySpec, policy_to_dto
from holdkeeper.domain.model.value_objects import NotificationSettings
from holdkeeper.domain.service.policy_store import ExpirationPolicyStore

_NOTIFICATION_FIELDS = ("send_warnings", "send_expired_notices", "send_business_notifications")


class CreatePolicyHandler:

    def __init__(self, store: ExpirationPolicyStore) -> None:
        self._store = store

    def handle(self, spec: PolicySpec) -> PolicyDTO:
        policy = self._store.create_policy(
            business_id=spec.business_id,
            name=spec.name,
            default_ttl_minutes=spec.default_ttl_minutes,
            warning_intervals=spec.warning_intervals,
            grace_period_minutes=spec.grace_period_minutes,
            auto_cleanup=spec.auto_cleanup,
            notifications=NotificationSettings(
                send_warnings=spec.send_warnings,
                send_expired_notices=spec.send_expired_notices,
                send_business_notifications=spec.send_business_notifications,
            ),
            service_type_ids=list(spec.service_type_ids) if spec.service_type_ids else None,
        )
        return policy_to_dto(policy)


class UpdatePolicyHandler:

    def __init__(self, store: ExpirationPolicyStore) -> None:
        self._store = store

    def handle(self, policy_id: str, **changes: Any) -> PolicyDTO:
        """Apply a partial update.

        Notification flags may be passed flat (``send_warnings=False``);
        they are merged into the policy's current settings.
        """
        flags = {name: changes.pop(name) for name in _NOTIFICATION_FIELDS if name in changes}
        if flags:
            current = self._store.require_policy(policy_id).notifications
            changes["notifications"] = NotificationSettings(**{**current.to_dict(), **flags})
        return policy_to_dto(self._store.update_policy(policy_id, **changes))


class DeactivatePolicyHandler:

    def __init__(self, store: ExpirationPolicyStore) -> None:
        self._store = store

    def handle(self, policy_id: str) -> PolicyDTO:
        return policy_to_dto(self._store.deactivate_policy(policy_id))


class ListPoliciesHandler:

    def __init__(self, store: ExpirationPolicyStore) -> None:
        self._store = store

    def handle(self, business_id: str) -> list[PolicyDTO]:
        return [policy_to_dto(p) for p in self._store.list_business_policies(business_id)]


class PoliciesInUseHandler:

    def __init__(self, store: ExpirationPolicyStore) -> None:
        self._store = store

    def handle(self, business_id: str) -> list[str]:
        return self._store.get_policies_in_use(business_id)
