"""End-to-end tests for the click CLI against a temporary SQLite file."""

import logging
import re

import pytest
from click.testing import CliRunner

from holdkeeper.infrastructure.bootstrap import build_container
from holdkeeper.infrastructure.cli.main import cli
from holdkeeper.infrastructure.config import Settings
from tests.fakes import DictCache, FakeClock, RecordingNotificationSender


@pytest.fixture(autouse=True)
def _drop_cli_log_handlers():
    yield
    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, "_holdkeeper", False):
            root.removeHandler(handler)
    root.setLevel(logging.WARNING)


@pytest.fixture
def obj(tmp_path):
    settings = Settings(
        _env_file=None,
        database_url=f"sqlite:///{tmp_path}/cli.db",
        log_level="WARNING",
        log_json=False,
    )
    container = build_container(
        settings,
        clock=FakeClock(),
        cache=DictCache(),
        notifier=RecordingNotificationSender(),
    )
    return {"settings": settings, "container": container}


@pytest.fixture
def invoke(obj):
    runner = CliRunner()

    def run(*args):
        return runner.invoke(cli, list(args), obj=obj)

    return run


def _reservation_id(output: str) -> str:
    return re.search(r"Reservation (\w+) created", output).group(1)


def _policy_id(output: str) -> str:
    return re.search(r"Policy (\w+) ", output).group(1)


class TestInventoryCommands:

    def test_init_and_show(self, invoke):
        result = invoke("inventory", "init", "--business", "B1", "--product", "P1", "--name", "Widget", "--quantity", "5")
        assert result.exit_code == 0, result.output
        assert "Inventory for 'P1' initialized: total=5" in result.output

        result = invoke("inventory", "show", "--business", "B1")
        assert result.exit_code == 0
        assert "P1" in result.output

    def test_duplicate_init_fails(self, invoke):
        invoke("inventory", "init", "--business", "B1", "--product", "P1", "--quantity", "5")
        result = invoke("inventory", "init", "--business", "B1", "--product", "P1", "--quantity", "5")
        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_check_availability(self, invoke):
        invoke("inventory", "init", "--business", "B1", "--product", "P1", "--quantity", "5")
        assert "Available." in invoke("inventory", "check", "--items", "P1:5").output
        assert "Not available." in invoke("inventory", "check", "--items", "P1:6").output

    def test_bad_item_format(self, invoke):
        result = invoke("inventory", "check", "--items", "P1-5")
        assert result.exit_code == 2
        assert "Invalid item format" in result.output


class TestReservationCommands:

    def test_create_show_cancel(self, invoke, obj):
        invoke("inventory", "init", "--business", "B1", "--product", "P1", "--quantity", "5")

        result = invoke("reservation", "create", "--business", "B1", "--customer", "Alice", "--items", "P1:3")
        assert result.exit_code == 0, result.output
        reservation_id = _reservation_id(result.output)
        assert obj["container"].ledger.get_inventory("P1").available_quantity == 2

        result = invoke("reservation", "show", "--id", reservation_id)
        assert "status=pending" in result.output
        assert "ttl=active" in result.output

        result = invoke("reservation", "cancel", "--id", reservation_id, "--reason", "No longer needed")
        assert result.exit_code == 0
        assert obj["container"].ledger.get_inventory("P1").available_quantity == 5

    def test_create_short_stock_fails(self, invoke):
        invoke("inventory", "init", "--business", "B1", "--product", "P1", "--quantity", "1")
        result = invoke("reservation", "create", "--business", "B1", "--customer", "Alice", "--items", "P1:3")
        assert result.exit_code == 1
        assert "Insufficient inventory for product P1" in result.output

    def test_confirm_and_complete(self, invoke):
        result = invoke("reservation", "create", "--business", "B1", "--customer", "Alice")
        reservation_id = _reservation_id(result.output)

        assert invoke("reservation", "confirm", "--id", reservation_id).exit_code == 0
        result = invoke("reservation", "complete", "--id", reservation_id)
        assert result.exit_code == 0
        assert f"Reservation {reservation_id} completed." in result.output

    def test_extend(self, invoke):
        result = invoke("reservation", "create", "--business", "B1", "--customer", "Alice", "--ttl", "30")
        reservation_id = _reservation_id(result.output)

        result = invoke("reservation", "extend", "--id", reservation_id, "--minutes", "15")
        assert result.exit_code == 0
        assert "Expires:  2024-01-01 12:45 UTC" in invoke("reservation", "show", "--id", reservation_id).output

    def test_extend_unknown_fails(self, invoke):
        result = invoke("reservation", "extend", "--id", "missing", "--minutes", "15")
        assert result.exit_code == 1
        assert "cannot be extended" in result.output

    def test_show_unknown_fails(self, invoke):
        result = invoke("reservation", "show", "--id", "missing")
        assert result.exit_code == 1
        assert "not found" in result.output


class TestPolicyCommands:

    def test_create_update_list_deactivate(self, invoke):
        result = invoke(
            "policy", "create", "--business", "B1", "--name", "Standard",
            "--ttl", "60", "--warn", "15", "--warn", "5", "--grace", "10",
        )
        assert result.exit_code == 0, result.output
        policy_id = _policy_id(result.output)
        assert "Warnings at: 5, 15 min" in result.output

        result = invoke("policy", "update", "--id", policy_id, "--ttl", "90", "--auto-cleanup")
        assert result.exit_code == 0, result.output
        assert "TTL: 90 min" in result.output

        assert "Nothing to update" in invoke("policy", "update", "--id", policy_id).output

        assert invoke("policy", "deactivate", "--id", policy_id).exit_code == 0
        result = invoke("policy", "list", "--business", "B1")
        assert policy_id in result.output
        assert "inactive" in result.output

    def test_invalid_policy_rejected(self, invoke):
        result = invoke("policy", "create", "--business", "B1", "--name", "Bad", "--ttl", "1")
        assert result.exit_code == 1
        assert "between 5 and 10080" in result.output

    def test_in_use(self, invoke):
        result = invoke("policy", "create", "--business", "B1", "--name", "Standard", "--ttl", "60")
        policy_id = _policy_id(result.output)
        assert "No policies in use." in invoke("policy", "in-use", "--business", "B1").output

        invoke("reservation", "create", "--business", "B1", "--customer", "Alice")

        assert policy_id in invoke("policy", "in-use", "--business", "B1").output


class TestExpirationCommands:

    def test_run_once_expires_and_reports(self, invoke, obj):
        invoke("inventory", "init", "--business", "B1", "--product", "P1", "--quantity", "5")
        invoke("reservation", "create", "--business", "B1", "--customer", "Alice", "--items", "P1:2", "--ttl", "10")
        obj["container"].clock.advance(minutes=11)

        result = invoke("expiration", "run-once")

        assert result.exit_code == 0
        assert "expired: 1" in result.output
        assert "failures: 0" in result.output
        assert obj["container"].ledger.get_inventory("P1").available_quantity == 5

        result = invoke("expiration", "stats", "--business", "B1")
        assert "Expiration rate: 100.00%" in result.output

    def test_expiring(self, invoke):
        assert "No reservations expiring." in invoke("expiration", "expiring").output

        invoke("reservation", "create", "--business", "B1", "--customer", "Alice", "--ttl", "20")

        result = invoke("expiration", "expiring", "--within", "30")
        assert "expires in 20 min" in result.output

    def test_stats_date_range(self, invoke):
        invoke("reservation", "create", "--business", "B1", "--customer", "Alice")
        result = invoke("expiration", "stats", "--business", "B1", "--start", "2024-02-01")
        assert "Reservations:    0" in result.output

    def test_help_does_not_need_a_database(self):
        result = CliRunner().invoke(cli, ["--help"], obj={"settings": Settings(_env_file=None)})
        assert result.exit_code == 0
        assert "reservation" in result.output
