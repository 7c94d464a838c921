"""Redis-backed implementation of the Cache port.

Values are stored as JSON strings with a per-key expiry.  Errors are left
to propagate: the policy store treats them as misses.
"""

from __future__ import annotations

import json
from typing import Any

import redis

from holdkeeper.domain.port.cache import Cache


class RedisCache(Cache):

    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> RedisCache:
        return cls(redis.Redis.from_url(url, decode_responses=True, socket_timeout=2))

    def get(self, key: str) -> Any | None:
        raw = self._client.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        self._client.setex(key, ttl_seconds, json.dumps(value))

    def delete(self, *keys: str) -> None:
        if keys:
            self._client.delete(*keys)
