"""Abstract repository for ExpirationPolicy aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod

from holdkeeper.domain.model.policy import ExpirationPolicy


class ExpirationPolicyRepository(ABC):

    @abstractmethod
    def get_by_id(self, policy_id: str) -> ExpirationPolicy | None:
        """Return a policy by its ID, or None if not found."""

    @abstractmethod
    def list_for_business(self, business_id: str) -> list[ExpirationPolicy]:
        """Return every policy of a business, newest first."""

    @abstractmethod
    def list_active(self) -> list[ExpirationPolicy]:
        """Return every active policy across all businesses."""

    @abstractmethod
    def find_in_use(self, business_id: str) -> list[str]:
        """Return IDs of the business's policies linked to open reservations
        whose TTL is still live."""

    @abstractmethod
    def save(self, policy: ExpirationPolicy) -> None:
        """Persist a new or updated policy."""
