"""Tests for settings, logging setup and container wiring."""

import json
import logging

from holdkeeper.domain.port.cache import NullCache
from holdkeeper.infrastructure.bootstrap import build_cache, build_container, build_notifier
from holdkeeper.infrastructure.cache.redis_cache import RedisCache
from holdkeeper.infrastructure.config import Settings, load_settings
from holdkeeper.infrastructure.logging_setup import configure_logging
from holdkeeper.infrastructure.notifications.http_sender import HttpNotificationSender
from holdkeeper.infrastructure.notifications.logging_sender import LoggingNotificationSender


class TestSettings:

    def test_defaults(self):
        settings = Settings(_env_file=None)
        assert settings.database_url == "sqlite:///holdkeeper.db"
        assert settings.redis_url is None
        assert settings.retention_days == 30
        assert settings.policy_cache_ttl_seconds == 3600

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("HOLDKEEPER_RETENTION_DAYS", "7")
        monkeypatch.setenv("HOLDKEEPER_REDIS_URL", "redis://cache:6379/0")
        settings = load_settings(_env_file=None)
        assert settings.retention_days == 7
        assert settings.redis_url == "redis://cache:6379/0"


class TestAdapterSelection:

    def test_null_cache_without_redis(self):
        assert isinstance(build_cache(Settings(_env_file=None)), NullCache)

    def test_redis_cache_when_configured(self):
        cache = build_cache(Settings(_env_file=None, redis_url="redis://localhost:6379/0"))
        assert isinstance(cache, RedisCache)

    def test_logging_notifier_without_url(self):
        assert isinstance(build_notifier(Settings(_env_file=None)), LoggingNotificationSender)

    def test_http_notifier_when_configured(self):
        notifier = build_notifier(Settings(_env_file=None, notification_url="http://notify.test"))
        assert isinstance(notifier, HttpNotificationSender)
        notifier.close()

    def test_container_shares_one_store(self, tmp_path):
        container = build_container(Settings(_env_file=None, database_url=f"sqlite:///{tmp_path}/wiring.db"))

        container.ledger.initialize_inventory("B1", "P1", "Widget", quantity=3)

        assert container.processor.run_tick().failures == 0
        assert container.ledger.get_inventory("P1").total_quantity == 3
        assert not container.scheduler.is_running


class TestConfigureLogging:

    def teardown_method(self):
        root = logging.getLogger()
        for handler in list(root.handlers):
            if getattr(handler, "_holdkeeper", False):
                root.removeHandler(handler)
        root.setLevel(logging.WARNING)

    def test_json_lines_carry_extra_fields(self, capsys):
        configure_logging("INFO", json_output=True)

        logging.getLogger("holdkeeper.test").info("Reservation expired", extra={"reservation_id": "R1"})

        line = capsys.readouterr().out.strip().splitlines()[-1]
        record = json.loads(line)
        assert record["message"] == "Reservation expired"
        assert record["reservation_id"] == "R1"
        assert record["levelname"] == "INFO"

    def test_reconfiguring_replaces_handler(self):
        configure_logging("INFO")
        configure_logging("DEBUG", json_output=False)

        ours = [h for h in logging.getLogger().handlers if getattr(h, "_holdkeeper", False)]
        assert len(ours) == 1
        assert logging.getLogger().level == logging.DEBUG
