"""Outbound port: key/value cache with expiry.

The cache is an optimization only.  Callers treat every error as a miss,
and ``NullCache`` (always miss) must leave the engine fully correct.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class Cache(ABC):

    @abstractmethod
    def get(self, key: str) -> Any | None:
        """Return the cached JSON-compatible value, or None on a miss."""

    @abstractmethod
    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        """Store a JSON-compatible value for *ttl_seconds*."""

    @abstractmethod
    def delete(self, *keys: str) -> None:
        """Drop the given keys if present."""


class NullCache(Cache):
    """A cache that never holds anything."""

    def get(self, key: str) -> Any | None:
        return None

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        pass

    def delete(self, *keys: str) -> None:
        pass
