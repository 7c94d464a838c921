"""Domain service: Expiration Policy Store.

Read-mostly.  Lookups go cache first (business-scoped and id-scoped keys),
fall back to the durable store and repopulate the cache.  Every write
invalidates both keys before returning.  The cache fails open: any cache
error is logged and treated as a miss.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any

from holdkeeper.domain.exceptions import PolicyNotFound, ValidationError
from holdkeeper.domain.model.policy import (
    ExpirationPolicy,
    normalize_intervals,
    normalize_scope,
)
from holdkeeper.domain.model.value_objects import NotificationSettings
from holdkeeper.domain.port.cache import Cache
from holdkeeper.domain.port.clock import Clock
from holdkeeper.domain.repository.unit_of_work import UnitOfWork, UnitOfWorkFactory

logger = logging.getLogger(__name__)

POLICY_CACHE_TTL_SECONDS = 3600

_UPDATABLE_FIELDS = frozenset({
    "name",
    "default_ttl_minutes",
    "warning_intervals",
    "grace_period_minutes",
    "auto_cleanup",
    "notifications",
    "service_type_ids",
    "is_active",
})


def business_cache_key(business_id: str) -> str:
    return f"expiration_policy:{business_id}"


def policy_cache_key(policy_id: str) -> str:
    return f"expiration_policy:id:{policy_id}"


class ExpirationPolicyStore:

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        cache: Cache,
        clock: Clock,
        cache_ttl_seconds: int = POLICY_CACHE_TTL_SECONDS,
    ) -> None:
        self._uow_factory = uow_factory
        self._cache = cache
        self._clock = clock
        self._cache_ttl_seconds = cache_ttl_seconds

    # --- Reads ----------------------------------------------------------------

    def get_policy(self, policy_id: str) -> ExpirationPolicy | None:
        key = policy_cache_key(policy_id)
        cached = self._cache_get(key)
        if cached is not None:
            return ExpirationPolicy.from_dict(cached)

        with self._uow_factory() as uow:
            policy = uow.policies.get_by_id(policy_id)
        if policy is not None:
            self._cache_set(key, policy)
        return policy

    def require_policy(self, policy_id: str) -> ExpirationPolicy:
        policy = self.get_policy(policy_id)
        if policy is None:
            raise PolicyNotFound(f"Expiration policy {policy_id} not found")
        return policy

    def get_policy_for_business(
        self,
        business_id: str,
        service_type_id: str | None = None,
    ) -> ExpirationPolicy | None:
        """Return the active policy governing a business (and service type).

        A policy scoped to the service type wins over the business-wide
        one.  Only the business-wide lookup is cached.
        """
        if service_type_id is not None:
            with self._uow_factory() as uow:
                scoped = [
                    p for p in uow.policies.list_for_business(business_id)
                    if p.is_active and p.service_type_ids is not None and p.applies_to(service_type_id)
                ]
            if scoped:
                return scoped[0]

        key = business_cache_key(business_id)
        cached = self._cache_get(key)
        if cached is not None:
            return ExpirationPolicy.from_dict(cached)

        with self._uow_factory() as uow:
            policy = self._business_default(uow, business_id)
        if policy is not None:
            self._cache_set(key, policy)
        return policy

    def list_business_policies(self, business_id: str) -> list[ExpirationPolicy]:
        with self._uow_factory() as uow:
            return uow.policies.list_for_business(business_id)

    def list_active_policies(self) -> list[ExpirationPolicy]:
        with self._uow_factory() as uow:
            return uow.policies.list_active()

    def get_policies_in_use(self, business_id: str) -> list[str]:
        """IDs of policies still governing at least one live reservation."""
        with self._uow_factory() as uow:
            return uow.policies.find_in_use(business_id)

    # --- Writes ---------------------------------------------------------------

    def create_policy(
        self,
        business_id: str,
        name: str,
        default_ttl_minutes: int,
        warning_intervals: list[int] | tuple[int, ...] = (),
        grace_period_minutes: int = 0,
        auto_cleanup: bool = False,
        notifications: NotificationSettings | None = None,
        service_type_ids: list[str] | None = None,
        is_active: bool = True,
    ) -> ExpirationPolicy:
        policy = ExpirationPolicy.create(
            business_id=business_id,
            name=name,
            default_ttl_minutes=default_ttl_minutes,
            warning_intervals=warning_intervals,
            grace_period_minutes=grace_period_minutes,
            auto_cleanup=auto_cleanup,
            notifications=notifications,
            service_type_ids=service_type_ids,
            is_active=is_active,
            now=self._clock.now(),
        )
        with self._uow_factory() as uow:
            self._check_unique(uow, policy)
            uow.policies.save(policy)
            uow.commit()

        self._invalidate(policy)
        logger.info(
            "Expiration policy created",
            extra={"policy_id": policy.id, "business_id": policy.business_id, "policy_name": policy.name},
        )
        return policy

    def update_policy(self, policy_id: str, **changes: Any) -> ExpirationPolicy:
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update policy field(s): {', '.join(sorted(unknown))}")
        if "warning_intervals" in changes:
            changes["warning_intervals"] = normalize_intervals(changes["warning_intervals"])
        if "service_type_ids" in changes:
            changes["service_type_ids"] = normalize_scope(changes["service_type_ids"])
        if "name" in changes:
            changes["name"] = (changes["name"] or "").strip()

        with self._uow_factory() as uow:
            current = uow.policies.get_by_id(policy_id)
            if current is None:
                raise PolicyNotFound(f"Expiration policy {policy_id} not found")
            policy = replace(current, **changes, updated_at=self._clock.now())
            policy.validate()
            self._check_unique(uow, policy)
            uow.policies.save(policy)
            uow.commit()

        self._invalidate(policy)
        logger.info(
            "Expiration policy updated",
            extra={"policy_id": policy_id, "business_id": policy.business_id, "fields": sorted(changes)},
        )
        return policy

    def deactivate_policy(self, policy_id: str) -> ExpirationPolicy:
        """Soft-deactivate: the row stays for reservations that reference it."""
        with self._uow_factory() as uow:
            policy = uow.policies.get_by_id(policy_id)
            if policy is None:
                raise PolicyNotFound(f"Expiration policy {policy_id} not found")
            policy.deactivate(self._clock.now())
            uow.policies.save(policy)
            uow.commit()

        self._invalidate(policy)
        logger.info("Expiration policy deactivated", extra={"policy_id": policy_id})
        return policy

    # --- Internal helpers -----------------------------------------------------

    @staticmethod
    def _business_default(uow: UnitOfWork, business_id: str) -> ExpirationPolicy | None:
        for policy in uow.policies.list_for_business(business_id):
            if policy.is_active and policy.service_type_ids is None:
                return policy
        return None

    @staticmethod
    def _check_unique(uow: UnitOfWork, policy: ExpirationPolicy) -> None:
        for other in uow.policies.list_for_business(policy.business_id):
            if other.id == policy.id:
                continue
            if other.name.lower() == policy.name.lower():
                raise ValidationError(f"Policy '{policy.name}' already exists for this business")
            if policy.conflicts_with(other):
                raise ValidationError(
                    f"Active policy '{other.name}' already covers this scope; "
                    f"deactivate it first"
                )

    def _invalidate(self, policy: ExpirationPolicy) -> None:
        try:
            self._cache.delete(business_cache_key(policy.business_id), policy_cache_key(policy.id))
        except Exception:
            logger.warning("Policy cache invalidation failed", exc_info=True, extra={"policy_id": policy.id})

    def _cache_get(self, key: str) -> dict | None:
        try:
            return self._cache.get(key)
        except Exception:
            logger.warning("Policy cache read failed; using store", exc_info=True, extra={"cache_key": key})
            return None

    def _cache_set(self, key: str, policy: ExpirationPolicy) -> None:
        try:
            self._cache.set(key, policy.to_dict(), self._cache_ttl_seconds)
        except Exception:
            logger.warning("Policy cache write failed", exc_info=True, extra={"cache_key": key})
