"""Application service: Expiration Stats use case (query).

Counts a business's reservations that carried a TTL and how many of them
ran out.  Cleaned TTLs count as expired: auto-cleanup only happens after
expiry, and a cancellation's TTL is cleaned too, so the rate is an upper
bound when cancellations are frequent.
"""

from __future__ import annotations

from datetime import datetime

from holdkeeper.application.dto import ExpirationStatsDTO
from holdkeeper.domain.model.ttl import TTLStatus
from holdkeeper.domain.repository.unit_of_work import UnitOfWorkFactory

_EXPIRED_STATUSES = frozenset({TTLStatus.EXPIRED, TTLStatus.CLEANED})


class ExpirationStatsHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def handle(
        self,
        business_id: str,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> ExpirationStatsDTO:
        with self._uow_factory() as uow:
            total = uow.ttls.count_for_business(business_id, created_from=start, created_to=end)
            expired = uow.ttls.count_for_business(
                business_id, statuses=_EXPIRED_STATUSES, created_from=start, created_to=end
            )
        rate = round(expired / total * 100, 2) if total else 0.0
        return ExpirationStatsDTO(
            business_id=business_id,
            total_reservations=total,
            expired_reservations=expired,
            expiration_rate=rate,
        )
