"""Composition root: wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import partial

from holdkeeper.domain.port.cache import Cache, NullCache
from holdkeeper.domain.port.clock import Clock, SystemClock
from holdkeeper.domain.port.notifier import NotificationSender
from holdkeeper.domain.repository.unit_of_work import UnitOfWorkFactory
from holdkeeper.domain.service.expiration_processor import ExpirationProcessor
from holdkeeper.domain.service.inventory_ledger import InventoryLedger
from holdkeeper.domain.service.policy_store import ExpirationPolicyStore
from holdkeeper.domain.service.ttl_tracker import TTLTracker
from holdkeeper.infrastructure.cache.redis_cache import RedisCache
from holdkeeper.infrastructure.config import Settings, load_settings
from holdkeeper.infrastructure.notifications.http_sender import HttpNotificationSender
from holdkeeper.infrastructure.notifications.logging_sender import LoggingNotificationSender
from holdkeeper.infrastructure.persistence.database import (
    build_engine,
    build_session_factory,
    init_schema,
)
from holdkeeper.infrastructure.persistence.sqlalchemy_unit_of_work import SqlAlchemyUnitOfWork
from holdkeeper.infrastructure.scheduler import ExpirationScheduler

logger = logging.getLogger(__name__)


@dataclass
class Container:
    settings: Settings
    uow_factory: UnitOfWorkFactory
    clock: Clock
    cache: Cache
    notifier: NotificationSender
    ledger: InventoryLedger
    policies: ExpirationPolicyStore
    ttl_tracker: TTLTracker
    processor: ExpirationProcessor
    scheduler: ExpirationScheduler


def build_cache(settings: Settings) -> Cache:
    if not settings.redis_url:
        return NullCache()
    return RedisCache.from_url(settings.redis_url)


def build_notifier(settings: Settings) -> NotificationSender:
    if not settings.notification_url:
        return LoggingNotificationSender()
    return HttpNotificationSender(settings.notification_url, timeout=settings.notification_timeout_seconds)


def build_container(
    settings: Settings | None = None,
    uow_factory: UnitOfWorkFactory | None = None,
    clock: Clock | None = None,
    cache: Cache | None = None,
    notifier: NotificationSender | None = None,
) -> Container:
    """Assemble the engine; any collaborator may be swapped in (tests do)."""
    settings = settings or load_settings()
    if uow_factory is None:
        engine = build_engine(settings.database_url)
        init_schema(engine)
        uow_factory = partial(SqlAlchemyUnitOfWork, build_session_factory(engine))
    clock = clock or SystemClock()
    cache = cache or build_cache(settings)
    notifier = notifier or build_notifier(settings)

    ledger = InventoryLedger(uow_factory, clock)
    policies = ExpirationPolicyStore(
        uow_factory, cache, clock, cache_ttl_seconds=settings.policy_cache_ttl_seconds
    )
    ttl_tracker = TTLTracker(
        uow_factory, policies, clock, fallback_ttl_minutes=settings.default_ttl_minutes
    )
    processor = ExpirationProcessor(
        uow_factory, ledger, policies, notifier, clock, retention_days=settings.retention_days
    )
    scheduler = ExpirationScheduler(processor, interval_seconds=settings.processor_interval_seconds)

    logger.debug(
        "Container built",
        extra={"cache": type(cache).__name__, "notifier": type(notifier).__name__},
    )
    return Container(
        settings=settings,
        uow_factory=uow_factory,
        clock=clock,
        cache=cache,
        notifier=notifier,
        ledger=ledger,
        policies=policies,
        ttl_tracker=ttl_tracker,
        processor=processor,
        scheduler=scheduler,
    )
