"""Tests for the Redis cache adapter against a mocked client."""

from unittest.mock import MagicMock

from holdkeeper.domain.service.policy_store import ExpirationPolicyStore
from holdkeeper.infrastructure.cache.redis_cache import RedisCache
from tests.fakes import FakeClock, InMemoryDatabase


class TestRedisCache:

    def test_get_decodes_json(self):
        client = MagicMock()
        client.get.return_value = '{"id": "p1", "warning_intervals": [5, 15]}'

        assert RedisCache(client).get("k") == {"id": "p1", "warning_intervals": [5, 15]}
        client.get.assert_called_once_with("k")

    def test_get_miss(self):
        client = MagicMock()
        client.get.return_value = None
        assert RedisCache(client).get("k") is None

    def test_set_uses_expiry(self):
        client = MagicMock()
        RedisCache(client).set("k", {"a": 1}, 3600)
        client.setex.assert_called_once_with("k", 3600, '{"a": 1}')

    def test_delete_many_keys(self):
        client = MagicMock()
        RedisCache(client).delete("a", "b")
        client.delete.assert_called_once_with("a", "b")

    def test_delete_nothing(self):
        client = MagicMock()
        RedisCache(client).delete()
        client.delete.assert_not_called()

    def test_policy_store_survives_redis_outage(self):
        client = MagicMock()
        client.get.side_effect = ConnectionError("redis down")
        client.setex.side_effect = ConnectionError("redis down")
        client.delete.side_effect = ConnectionError("redis down")
        db = InMemoryDatabase()
        store = ExpirationPolicyStore(db.unit_of_work, RedisCache(client), FakeClock())

        created = store.create_policy("B1", "Standard", 60)

        assert store.get_policy_for_business("B1") == created
