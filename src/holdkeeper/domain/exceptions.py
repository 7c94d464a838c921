"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the CLI layer can catch them uniformly and display user-friendly messages.
"""


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """A business rule or invariant was violated."""


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""


class InsufficientInventory(ValidationError):
    """A reserve could not be satisfied from available stock.

    This is a business rejection, not a fault: the caller asked for more
    than the product currently has available.
    """

    def __init__(self, product_id: str, requested: int, available: int) -> None:
        super().__init__(
            f"Insufficient inventory for product {product_id} "
            f"(need {requested}, have {available} available)"
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available


class InvalidTTLState(ValidationError):
    """A TTL transition was attempted from a status that forbids it."""


class PolicyNotFound(EntityNotFoundError):
    """No expiration policy matches the lookup."""


class StorageFailure(DomainException):
    """The durable store failed (transaction, lock or connection error)."""
