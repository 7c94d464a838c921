"""ExpirationPolicy aggregate.

A business configures how long its reservations live, when customers are
warned, how much grace an overdue reservation gets, and whether expired
reservations are cancelled automatically.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime

from holdkeeper.domain.exceptions import ValidationError
from holdkeeper.domain.model.value_objects import NotificationSettings, utcnow

# ---------------------------------------------------------------------------
# Constants for business rules
# ---------------------------------------------------------------------------
MIN_TTL_MINUTES = 5
MAX_TTL_MINUTES = 10080  # one week
MAX_WARNING_INTERVALS = 5
MAX_GRACE_PERIOD_MINUTES = 1440


@dataclass
class ExpirationPolicy:
    """Aggregate root for business expiration rules.

    Use ``ExpirationPolicy.create()`` for new policies.  The ``__init__`` is
    kept plain so repositories and caches can reconstitute stored policies
    without re-validating.
    """

    id: str
    business_id: str
    name: str
    default_ttl_minutes: int
    warning_intervals: tuple[int, ...] = ()
    grace_period_minutes: int = 0
    auto_cleanup: bool = False
    notifications: NotificationSettings = field(default_factory=NotificationSettings)
    service_type_ids: frozenset[str] | None = None
    is_active: bool = True
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    # --- Factory --------------------------------------------------------------

    @staticmethod
    def create(
        business_id: str,
        name: str,
        default_ttl_minutes: int,
        warning_intervals: list[int] | tuple[int, ...] = (),
        grace_period_minutes: int = 0,
        auto_cleanup: bool = False,
        notifications: NotificationSettings | None = None,
        service_type_ids: list[str] | frozenset[str] | None = None,
        is_active: bool = True,
        now: datetime | None = None,
    ) -> ExpirationPolicy:
        """Create a new policy, enforcing all invariants."""
        now = now or utcnow()
        policy = ExpirationPolicy(
            id=uuid.uuid4().hex,
            business_id=(business_id or "").strip(),
            name=(name or "").strip(),
            default_ttl_minutes=default_ttl_minutes,
            warning_intervals=normalize_intervals(warning_intervals),
            grace_period_minutes=grace_period_minutes,
            auto_cleanup=auto_cleanup,
            notifications=notifications or NotificationSettings(),
            service_type_ids=normalize_scope(service_type_ids),
            is_active=is_active,
            created_at=now,
            updated_at=now,
        )
        policy.validate()
        return policy

    # --- Rules ----------------------------------------------------------------

    def validate(self) -> None:
        if not self.business_id:
            raise ValidationError("Business ID is required")
        if not self.name:
            raise ValidationError("Policy name is required")
        if not MIN_TTL_MINUTES <= self.default_ttl_minutes <= MAX_TTL_MINUTES:
            raise ValidationError(
                f"Default TTL must be between {MIN_TTL_MINUTES} and "
                f"{MAX_TTL_MINUTES} minutes"
            )
        if len(self.warning_intervals) > MAX_WARNING_INTERVALS:
            raise ValidationError(f"Maximum {MAX_WARNING_INTERVALS} warning intervals")
        for interval in self.warning_intervals:
            if interval <= 0:
                raise ValidationError("Warning intervals must be positive")
            if interval >= self.default_ttl_minutes:
                raise ValidationError(
                    f"Warning interval {interval} must be shorter than the "
                    f"default TTL of {self.default_ttl_minutes} minutes"
                )
        if not 0 <= self.grace_period_minutes <= MAX_GRACE_PERIOD_MINUTES:
            raise ValidationError(
                f"Grace period must be between 0 and {MAX_GRACE_PERIOD_MINUTES} minutes"
            )

    def applies_to(self, service_type_id: str | None) -> bool:
        """True if this policy's scope covers the given service type."""
        if self.service_type_ids is None:
            return True
        return service_type_id is not None and service_type_id in self.service_type_ids

    def conflicts_with(self, other: ExpirationPolicy) -> bool:
        """Two active policies may not govern the same (business, scope)."""
        if other.id == self.id or other.business_id != self.business_id:
            return False
        if not (self.is_active and other.is_active):
            return False
        if self.service_type_ids is None or other.service_type_ids is None:
            return self.service_type_ids is None and other.service_type_ids is None
        return bool(self.service_type_ids & other.service_type_ids)

    def deactivate(self, now: datetime | None = None) -> None:
        self.is_active = False
        self.updated_at = now or utcnow()

    # --- Serialization (cache payloads) ---------------------------------------

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "business_id": self.business_id,
            "name": self.name,
            "default_ttl_minutes": self.default_ttl_minutes,
            "warning_intervals": list(self.warning_intervals),
            "grace_period_minutes": self.grace_period_minutes,
            "auto_cleanup": self.auto_cleanup,
            "notifications": self.notifications.to_dict(),
            "service_type_ids": (
                sorted(self.service_type_ids) if self.service_type_ids is not None else None
            ),
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @staticmethod
    def from_dict(raw: dict) -> ExpirationPolicy:
        return ExpirationPolicy(
            id=raw["id"],
            business_id=raw["business_id"],
            name=raw["name"],
            default_ttl_minutes=raw["default_ttl_minutes"],
            warning_intervals=normalize_intervals(raw.get("warning_intervals") or ()),
            grace_period_minutes=raw.get("grace_period_minutes", 0),
            auto_cleanup=raw.get("auto_cleanup", False),
            notifications=NotificationSettings.from_dict(raw.get("notifications")),
            service_type_ids=normalize_scope(raw.get("service_type_ids")),
            is_active=raw.get("is_active", True),
            created_at=datetime.fromisoformat(raw["created_at"]),
            updated_at=datetime.fromisoformat(raw["updated_at"]),
        )


def normalize_intervals(intervals) -> tuple[int, ...]:
    """Deduplicate and sort warning intervals ascending."""
    values = set()
    for interval in intervals:
        if isinstance(interval, bool) or not isinstance(interval, int):
            raise ValidationError(f"Warning interval must be an integer, got {interval!r}")
        values.add(interval)
    return tuple(sorted(values))


def normalize_scope(service_type_ids) -> frozenset[str] | None:
    if service_type_ids is None:
        return None
    scope = frozenset(s.strip() for s in service_type_ids if s and s.strip())
    return scope or None
