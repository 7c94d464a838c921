"""Abstract unit of work: one durable-store transaction.

Every repository reachable from a unit of work shares its transaction, so
a reservation, its holds and its TTL either all persist on ``commit()`` or
all vanish.  Leaving the ``with`` block without committing rolls back.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from holdkeeper.domain.model.inventory import ProductInventory
from holdkeeper.domain.repository.inventory_repository import (
    InventoryHoldRepository,
    ProductInventoryRepository,
)
from holdkeeper.domain.repository.policy_repository import ExpirationPolicyRepository
from holdkeeper.domain.repository.reservation_repository import ReservationRepository
from holdkeeper.domain.repository.ttl_repository import ReservationTTLRepository


class UnitOfWork(ABC):

    inventory: ProductInventoryRepository
    holds: InventoryHoldRepository
    policies: ExpirationPolicyRepository
    ttls: ReservationTTLRepository
    reservations: ReservationRepository

    def __enter__(self) -> UnitOfWork:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.rollback()

    def lock_product(self, product_id: str) -> ProductInventory | None:
        """Take the product's exclusive row lock and return its fresh state."""
        return self.inventory.get_by_product_id(product_id, lock=True)

    @abstractmethod
    def commit(self) -> None:
        """Make every change in this unit of work durable."""

    @abstractmethod
    def rollback(self) -> None:
        """Discard uncommitted changes; a no-op after ``commit()``."""


UnitOfWorkFactory = Callable[[], UnitOfWork]


@contextmanager
def transaction(factory: UnitOfWorkFactory, uow: UnitOfWork | None = None) -> Iterator[UnitOfWork]:
    """Join the caller's unit of work, or run in a fresh one and commit it.

    A joined unit of work is never committed here: the owner decides.
    """
    if uow is not None:
        yield uow
        return
    with factory() as own:
        yield own
        own.commit()
