"""SQLAlchemy implementations of the domain repositories.

Every repository works inside the session of the unit of work that owns
it; none of them commits.  ``lock=True`` reads issue ``SELECT ... FOR
UPDATE`` and refresh the identity map so the caller re-checks the row as
another transaction left it.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable
from datetime import datetime

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from holdkeeper.domain.model.inventory import HoldStatus, InventoryHold, ProductInventory
from holdkeeper.domain.model.policy import ExpirationPolicy, normalize_scope
from holdkeeper.domain.model.reservation import (
    OPEN_RESERVATION_STATUSES,
    Reservation,
    ReservationStatus,
)
from holdkeeper.domain.model.ttl import LIVE_TTL_STATUSES, ReservationTTL, TTLStatus
from holdkeeper.domain.model.value_objects import NotificationSettings
from holdkeeper.domain.repository.inventory_repository import (
    InventoryHoldRepository,
    ProductInventoryRepository,
)
from holdkeeper.domain.repository.policy_repository import ExpirationPolicyRepository
from holdkeeper.domain.repository.reservation_repository import ReservationRepository
from holdkeeper.domain.repository.ttl_repository import ReservationTTLRepository
from holdkeeper.infrastructure.persistence.orm import (
    ExpirationPolicyRow,
    InventoryHoldRow,
    ProductInventoryRow,
    ReservationRow,
    ReservationTTLRow,
)

_OPEN = [s.value for s in OPEN_RESERVATION_STATUSES]
_LIVE = [s.value for s in LIVE_TTL_STATUSES]


def _locked(stmt, lock: bool):
    if lock:
        return stmt.with_for_update().execution_options(populate_existing=True)
    return stmt


# --- Inventory ----------------------------------------------------------------


class SqlAlchemyProductInventoryRepository(ProductInventoryRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_by_product_id(self, product_id: str, lock: bool = False) -> ProductInventory | None:
        stmt = select(ProductInventoryRow).where(ProductInventoryRow.product_id == product_id)
        row = self._session.scalars(_locked(stmt, lock)).first()
        return self._to_domain(row) if row is not None else None

    def list_by_business(self, business_id: str | None = None) -> list[ProductInventory]:
        stmt = select(ProductInventoryRow).order_by(ProductInventoryRow.product_id)
        if business_id is not None:
            stmt = stmt.where(ProductInventoryRow.business_id == business_id)
        return [self._to_domain(row) for row in self._session.scalars(stmt)]

    def save(self, item: ProductInventory) -> None:
        self._session.merge(
            ProductInventoryRow(
                product_id=item.product_id,
                business_id=item.business_id,
                product_name=item.product_name,
                total_quantity=item.total_quantity,
                available_quantity=item.available_quantity,
                reserved_quantity=item.reserved_quantity,
                minimum_stock=item.minimum_stock,
                tracking_enabled=item.tracking_enabled,
                updated_at=item.updated_at,
            )
        )

    @staticmethod
    def _to_domain(row: ProductInventoryRow) -> ProductInventory:
        return ProductInventory(
            product_id=row.product_id,
            business_id=row.business_id,
            product_name=row.product_name,
            total_quantity=row.total_quantity,
            available_quantity=row.available_quantity,
            reserved_quantity=row.reserved_quantity,
            minimum_stock=row.minimum_stock,
            tracking_enabled=row.tracking_enabled,
            updated_at=row.updated_at,
        )


class SqlAlchemyInventoryHoldRepository(InventoryHoldRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_many(self, hold_ids: Iterable[str], lock: bool = False) -> list[InventoryHold]:
        ids = list(hold_ids)
        if not ids:
            return []
        stmt = select(InventoryHoldRow).where(InventoryHoldRow.id.in_(ids)).order_by(InventoryHoldRow.id)
        return [self._to_domain(row) for row in self._session.scalars(_locked(stmt, lock))]

    def list_for_reservation(
        self,
        reservation_id: str,
        statuses: Collection[HoldStatus] | None = None,
    ) -> list[InventoryHold]:
        stmt = (
            select(InventoryHoldRow)
            .where(InventoryHoldRow.reservation_id == reservation_id)
            .order_by(InventoryHoldRow.created_at, InventoryHoldRow.id)
        )
        if statuses is not None:
            stmt = stmt.where(InventoryHoldRow.status.in_([s.value for s in statuses]))
        return [self._to_domain(row) for row in self._session.scalars(stmt)]

    def save(self, hold: InventoryHold) -> None:
        self._session.merge(
            InventoryHoldRow(
                id=hold.id,
                reservation_id=hold.reservation_id,
                product_id=hold.product_id,
                quantity=hold.quantity,
                hold_until=hold.hold_until,
                status=hold.status.value,
                created_at=hold.created_at,
                updated_at=hold.updated_at,
            )
        )

    @staticmethod
    def _to_domain(row: InventoryHoldRow) -> InventoryHold:
        return InventoryHold(
            id=row.id,
            reservation_id=row.reservation_id,
            product_id=row.product_id,
            quantity=row.quantity,
            hold_until=row.hold_until,
            status=HoldStatus(row.status),
            created_at=row.created_at,
            updated_at=row.updated_at,
        )


# --- Policies -----------------------------------------------------------------


class SqlAlchemyExpirationPolicyRepository(ExpirationPolicyRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_by_id(self, policy_id: str) -> ExpirationPolicy | None:
        row = self._session.get(ExpirationPolicyRow, policy_id)
        return self._to_domain(row) if row is not None else None

    def list_for_business(self, business_id: str) -> list[ExpirationPolicy]:
        stmt = (
            select(ExpirationPolicyRow)
            .where(ExpirationPolicyRow.business_id == business_id)
            .order_by(ExpirationPolicyRow.created_at.desc(), ExpirationPolicyRow.id)
        )
        return [self._to_domain(row) for row in self._session.scalars(stmt)]

    def list_active(self) -> list[ExpirationPolicy]:
        stmt = (
            select(ExpirationPolicyRow)
            .where(ExpirationPolicyRow.is_active.is_(True))
            .order_by(ExpirationPolicyRow.business_id, ExpirationPolicyRow.created_at)
        )
        return [self._to_domain(row) for row in self._session.scalars(stmt)]

    def find_in_use(self, business_id: str) -> list[str]:
        stmt = (
            select(ReservationRow.policy_id)
            .join(ReservationTTLRow, ReservationTTLRow.reservation_id == ReservationRow.id)
            .where(
                ReservationRow.business_id == business_id,
                ReservationRow.policy_id.is_not(None),
                ReservationRow.status.in_(_OPEN),
                ReservationTTLRow.status.in_(_LIVE),
            )
            .distinct()
            .order_by(ReservationRow.policy_id)
        )
        return list(self._session.scalars(stmt))

    def save(self, policy: ExpirationPolicy) -> None:
        self._session.merge(
            ExpirationPolicyRow(
                id=policy.id,
                business_id=policy.business_id,
                name=policy.name,
                default_ttl_minutes=policy.default_ttl_minutes,
                warning_intervals=list(policy.warning_intervals),
                grace_period_minutes=policy.grace_period_minutes,
                auto_cleanup=policy.auto_cleanup,
                notification_settings=policy.notifications.to_dict(),
                service_type_ids=(
                    sorted(policy.service_type_ids) if policy.service_type_ids is not None else None
                ),
                is_active=policy.is_active,
                created_at=policy.created_at,
                updated_at=policy.updated_at,
            )
        )

    @staticmethod
    def _to_domain(row: ExpirationPolicyRow) -> ExpirationPolicy:
        return ExpirationPolicy(
            id=row.id,
            business_id=row.business_id,
            name=row.name,
            default_ttl_minutes=row.default_ttl_minutes,
            warning_intervals=tuple(sorted(int(w) for w in row.warning_intervals or ())),
            grace_period_minutes=row.grace_period_minutes,
            auto_cleanup=row.auto_cleanup,
            notifications=NotificationSettings.from_dict(row.notification_settings),
            service_type_ids=normalize_scope(row.service_type_ids),
            is_active=row.is_active,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )


# --- TTLs ---------------------------------------------------------------------


class SqlAlchemyReservationTTLRepository(ReservationTTLRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, reservation_id: str, lock: bool = False) -> ReservationTTL | None:
        stmt = select(ReservationTTLRow).where(ReservationTTLRow.reservation_id == reservation_id)
        row = self._session.scalars(_locked(stmt, lock)).first()
        return self._to_domain(row) if row is not None else None

    def save(self, ttl: ReservationTTL) -> None:
        self._session.merge(
            ReservationTTLRow(
                reservation_id=ttl.reservation_id,
                expires_at=ttl.expires_at,
                warnings_sent=sorted(ttl.warnings_sent),
                grace_period_ends_at=ttl.grace_period_ends_at,
                status=ttl.status.value,
                updated_at=ttl.updated_at,
            )
        )

    def find_expiring(
        self,
        after: datetime,
        until: datetime,
        business_id: str | None = None,
    ) -> list[ReservationTTL]:
        stmt = self._live_for_open_reservations().where(
            ReservationTTLRow.expires_at > after,
            ReservationTTLRow.expires_at <= until,
        )
        if business_id is not None:
            stmt = stmt.where(ReservationRow.business_id == business_id)
        stmt = stmt.order_by(ReservationTTLRow.expires_at)
        return [self._to_domain(row) for row in self._session.scalars(stmt)]

    def find_expired(self, before: datetime) -> list[ReservationTTL]:
        stmt = (
            self._live_for_open_reservations()
            .where(ReservationTTLRow.expires_at < before)
            .order_by(ReservationTTLRow.expires_at)
        )
        return [self._to_domain(row) for row in self._session.scalars(stmt)]

    def delete_cleaned_before(self, cutoff: datetime) -> int:
        result = self._session.execute(
            delete(ReservationTTLRow).where(
                ReservationTTLRow.status == TTLStatus.CLEANED.value,
                ReservationTTLRow.updated_at < cutoff,
            ).execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    def count_for_business(
        self,
        business_id: str,
        statuses: Collection[TTLStatus] | None = None,
        created_from: datetime | None = None,
        created_to: datetime | None = None,
    ) -> int:
        stmt = (
            select(func.count())
            .select_from(ReservationTTLRow)
            .join(ReservationRow, ReservationRow.id == ReservationTTLRow.reservation_id)
            .where(ReservationRow.business_id == business_id)
        )
        if statuses is not None:
            stmt = stmt.where(ReservationTTLRow.status.in_([s.value for s in statuses]))
        if created_from is not None:
            stmt = stmt.where(ReservationRow.created_at >= created_from)
        if created_to is not None:
            stmt = stmt.where(ReservationRow.created_at <= created_to)
        return self._session.scalar(stmt) or 0

    @staticmethod
    def _live_for_open_reservations():
        return (
            select(ReservationTTLRow)
            .join(ReservationRow, ReservationRow.id == ReservationTTLRow.reservation_id)
            .where(
                ReservationTTLRow.status.in_(_LIVE),
                ReservationRow.status.in_(_OPEN),
            )
        )

    @staticmethod
    def _to_domain(row: ReservationTTLRow) -> ReservationTTL:
        return ReservationTTL(
            reservation_id=row.reservation_id,
            expires_at=row.expires_at,
            warnings_sent=frozenset(int(w) for w in row.warnings_sent or ()),
            grace_period_ends_at=row.grace_period_ends_at,
            status=TTLStatus(row.status),
            updated_at=row.updated_at,
        )


# --- Reservations -------------------------------------------------------------


class SqlAlchemyReservationRepository(ReservationRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_by_id(self, reservation_id: str) -> Reservation | None:
        row = self._session.get(ReservationRow, reservation_id)
        if row is None:
            return None
        return Reservation(
            id=row.id,
            business_id=row.business_id,
            customer_name=row.customer_name,
            customer_email=row.customer_email,
            service_type_id=row.service_type_id,
            policy_id=row.policy_id,
            status=ReservationStatus(row.status),
            notes=row.notes or "",
            created_at=row.created_at,
            updated_at=row.updated_at,
            cancelled_at=row.cancelled_at,
            cancelled_by=row.cancelled_by,
            cancellation_reason=row.cancellation_reason,
        )

    def save(self, reservation: Reservation) -> None:
        self._session.merge(
            ReservationRow(
                id=reservation.id,
                business_id=reservation.business_id,
                customer_name=reservation.customer_name,
                customer_email=reservation.customer_email,
                service_type_id=reservation.service_type_id,
                policy_id=reservation.policy_id,
                status=reservation.status.value,
                notes=reservation.notes,
                created_at=reservation.created_at,
                updated_at=reservation.updated_at,
                cancelled_at=reservation.cancelled_at,
                cancelled_by=reservation.cancelled_by,
                cancellation_reason=reservation.cancellation_reason,
            )
        )
