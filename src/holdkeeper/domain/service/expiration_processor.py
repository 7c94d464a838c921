"""Domain service: Expiration Processor.

One call to ``run_tick()`` performs three passes, strictly in order:

1. warnings    - notify reservations whose deadline entered a warning window
2. expirations - expire overdue reservations past their grace period and
                 release their holds
3. retention   - purge cleaned TTL records older than the retention window

Work on one reservation never aborts the rest of a pass, and no pass ever
raises out of ``run_tick()``.  Scheduling the ticks is the job of
``holdkeeper.infrastructure.scheduler.ExpirationScheduler``.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta

from holdkeeper.domain.model.inventory import RELEASABLE_ON_EXPIRY
from holdkeeper.domain.model.policy import ExpirationPolicy
from holdkeeper.domain.model.reservation import Reservation
from holdkeeper.domain.model.ttl import ReservationTTL
from holdkeeper.domain.port.clock import Clock
from holdkeeper.domain.port.notifier import Notification, NotificationSender
from holdkeeper.domain.repository.unit_of_work import UnitOfWorkFactory
from holdkeeper.domain.service.inventory_ledger import InventoryLedger
from holdkeeper.domain.service.policy_store import ExpirationPolicyStore

logger = logging.getLogger(__name__)

RETENTION_DAYS = 30
SYSTEM_ACTOR = "system"
AUTO_CANCEL_REASON = "Automatic cancellation due to expiration"


@dataclass
class TickReport:
    warnings_sent: int = 0
    expired: int = 0
    cleaned: int = 0
    purged: int = 0
    failures: int = 0


class ExpirationProcessor:

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        ledger: InventoryLedger,
        policies: ExpirationPolicyStore,
        notifier: NotificationSender,
        clock: Clock,
        retention_days: int = RETENTION_DAYS,
    ) -> None:
        self._uow_factory = uow_factory
        self._ledger = ledger
        self._policies = policies
        self._notifier = notifier
        self._clock = clock
        self._retention_days = retention_days

    def run_tick(self) -> TickReport:
        report = TickReport()
        passes = (
            ("warnings", self.send_expiration_warnings),
            ("expirations", self.process_expired_reservations),
            ("retention", self.cleanup_old_records),
        )
        for name, run_pass in passes:
            try:
                run_pass(report)
            except Exception:
                report.failures += 1
                logger.exception("Expiration pass failed", extra={"pass_name": name})
        logger.info("Expiration tick finished", extra=asdict(report))
        return report

    # --- Pass 1: warnings -----------------------------------------------------

    def send_expiration_warnings(self, report: TickReport | None = None) -> TickReport:
        report = report if report is not None else TickReport()
        now = self._clock.now()

        for policy in self._policies.list_active_policies():
            for interval in policy.warning_intervals:
                with self._uow_factory() as uow:
                    candidates = uow.ttls.find_expiring(
                        now, now + timedelta(minutes=interval), policy.business_id
                    )
                for candidate in candidates:
                    if interval in candidate.warnings_sent:
                        continue
                    try:
                        if self._warn(candidate.reservation_id, interval, policy, now):
                            report.warnings_sent += 1
                    except Exception:
                        report.failures += 1
                        logger.exception(
                            "Error sending expiration warning",
                            extra={"reservation_id": candidate.reservation_id, "warning_interval": interval},
                        )
        return report

    def _warn(self, reservation_id: str, interval: int, policy: ExpirationPolicy, now: datetime) -> bool:
        reservation = self._load_reservation(reservation_id)
        if reservation is None or not self._governs(policy, reservation):
            return False

        with self._uow_factory() as uow:
            ttl = uow.ttls.get(reservation_id, lock=True)
            reservation = uow.reservations.get_by_id(reservation_id)
            if ttl is None or reservation is None or not reservation.is_open:
                return False
            if not ttl.needs_warning(interval, now):
                return False

            ttl.record_warning(interval, now)
            uow.ttls.save(ttl)
            uow.commit()

        if policy.notifications.send_warnings:
            self._notify(self._warning_notice(reservation, ttl, interval, now))

        logger.info(
            "Expiration warning recorded",
            extra={
                "reservation_id": reservation_id,
                "warning_interval": interval,
                "minutes_until_expiry": ttl.minutes_remaining(now),
            },
        )
        return True

    def _load_reservation(self, reservation_id: str) -> Reservation | None:
        with self._uow_factory() as uow:
            return uow.reservations.get_by_id(reservation_id)

    def _governs(self, policy: ExpirationPolicy, reservation: Reservation) -> bool:
        governing = self._policies.get_policy_for_business(
            reservation.business_id, reservation.service_type_id
        )
        return governing is not None and governing.id == policy.id

    # --- Pass 2: expirations --------------------------------------------------

    def process_expired_reservations(self, report: TickReport | None = None) -> TickReport:
        report = report if report is not None else TickReport()
        now = self._clock.now()

        with self._uow_factory() as uow:
            candidates = uow.ttls.find_expired(now)
        logger.info("Processing %d expired reservations", len(candidates))

        for candidate in candidates:
            try:
                self._expire(candidate.reservation_id, now, report)
            except Exception:
                report.failures += 1
                logger.exception(
                    "Error processing expired reservation",
                    extra={"reservation_id": candidate.reservation_id},
                )
        return report

    def _expire(self, reservation_id: str, now: datetime, report: TickReport) -> None:
        reservation = self._load_reservation(reservation_id)
        if reservation is None:
            return
        # Resolved per reservation so a policy edited mid-tick applies at once.
        policy = self._policies.get_policy_for_business(
            reservation.business_id, reservation.service_type_id
        )

        with self._uow_factory() as uow:
            ttl = uow.ttls.get(reservation_id, lock=True)
            reservation = uow.reservations.get_by_id(reservation_id)
            if ttl is None or reservation is None or not reservation.is_open:
                return
            if not ttl.is_live or not ttl.is_overdue(now):
                return

            grace = policy.grace_period_minutes if policy is not None else 0
            if ttl.in_grace(grace, now):
                logger.debug(
                    "Reservation within grace period",
                    extra={"reservation_id": reservation_id, "grace_ends_at": ttl.grace_end(grace).isoformat()},
                )
                return

            ttl.expire(now, grace)
            holds = uow.holds.list_for_reservation(reservation_id, RELEASABLE_ON_EXPIRY)
            released = self._ledger.release_holds([h.id for h in holds], uow=uow)

            cleaned = policy is not None and policy.auto_cleanup
            if cleaned:
                reservation.cancel(SYSTEM_ACTOR, AUTO_CANCEL_REASON, now)
                uow.reservations.save(reservation)
                ttl.clean(now)
            uow.ttls.save(ttl)
            uow.commit()

        report.expired += 1
        if cleaned:
            report.cleaned += 1
        if policy is not None and policy.notifications.send_expired_notices:
            self._notify(self._expired_notice(reservation, ttl, policy))

        logger.info(
            "Reservation expired and processed",
            extra={
                "reservation_id": reservation_id,
                "business_id": reservation.business_id,
                "released_holds": [h.id for h in released],
                "cleaned": cleaned,
            },
        )

    # --- Pass 3: retention ----------------------------------------------------

    def cleanup_old_records(self, report: TickReport | None = None) -> TickReport:
        report = report if report is not None else TickReport()
        cutoff = self._clock.now() - timedelta(days=self._retention_days)

        with self._uow_factory() as uow:
            deleted = uow.ttls.delete_cleaned_before(cutoff)
            uow.commit()

        if deleted:
            logger.info("Cleaned up %d old TTL records", deleted)
        report.purged += deleted
        return report

    # --- Notifications --------------------------------------------------------

    def _notify(self, notification: Notification) -> None:
        try:
            self._notifier.send(notification)
        except Exception:
            logger.exception(
                "Notification delivery failed",
                extra={"template": notification.template, "reservation_id": notification.data.get("reservation_id")},
            )

    @staticmethod
    def _warning_notice(
        reservation: Reservation,
        ttl: ReservationTTL,
        interval: int,
        now: datetime,
    ) -> Notification:
        return Notification(
            type="booking_reminder",
            recipient="consumer",
            channels=("email", "push"),
            template="reservation-expiry-warning",
            data={
                **_reservation_data(reservation, ttl),
                "minutes_until_expiry": ttl.minutes_remaining(now),
                "warning_interval": interval,
            },
        )

    @staticmethod
    def _expired_notice(
        reservation: Reservation,
        ttl: ReservationTTL,
        policy: ExpirationPolicy,
    ) -> Notification:
        return Notification(
            type="booking_cancelled",
            recipient="both" if policy.notifications.send_business_notifications else "consumer",
            channels=("email",),
            template="reservation-expired",
            data={
                **_reservation_data(reservation, ttl),
                "reason": "Reservation expired due to inactivity",
            },
        )


def _reservation_data(reservation: Reservation, ttl: ReservationTTL) -> dict:
    return {
        "reservation_id": reservation.id,
        "business_id": reservation.business_id,
        "customer_name": reservation.customer_name,
        "customer_email": reservation.customer_email,
        "expires_at": ttl.expires_at.isoformat(),
    }
