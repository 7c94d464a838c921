import click

from holdkeeper.infrastructure.cli.expiration_commands import (
    expiration_expiring,
    expiration_run_once,
    expiration_serve,
    expiration_stats,
)
from holdkeeper.infrastructure.cli.inventory_commands import (
    inventory_adjust,
    inventory_check,
    inventory_init,
    inventory_low_stock,
    inventory_show,
)
from holdkeeper.infrastructure.cli.policy_commands import (
    policy_create,
    policy_deactivate,
    policy_in_use,
    policy_list,
    policy_update,
)
from holdkeeper.infrastructure.cli.reservation_commands import (
    reservation_cancel,
    reservation_complete,
    reservation_confirm,
    reservation_create,
    reservation_extend,
    reservation_show,
)
from holdkeeper.infrastructure.config import load_settings
from holdkeeper.infrastructure.logging_setup import configure_logging


@click.group()
@click.pass_context
def cli(ctx: click.Context) -> None:
    """holdkeeper: reservation expiry and inventory holds"""
    obj = ctx.ensure_object(dict)
    if "settings" not in obj:
        obj["settings"] = load_settings()
    settings = obj["settings"]
    configure_logging(settings.log_level, json_output=settings.log_json)


@cli.group()
def reservation() -> None:
    """Manage reservations."""


@cli.group()
def inventory() -> None:
    """Manage product stock."""


@cli.group()
def policy() -> None:
    """Manage expiration policies."""


@cli.group()
def expiration() -> None:
    """Run and inspect the expiration engine."""


# Register subcommands
reservation.add_command(reservation_cancel)
reservation.add_command(reservation_complete)
reservation.add_command(reservation_confirm)
reservation.add_command(reservation_create)
reservation.add_command(reservation_extend)
reservation.add_command(reservation_show)
inventory.add_command(inventory_adjust)
inventory.add_command(inventory_check)
inventory.add_command(inventory_init)
inventory.add_command(inventory_low_stock)
inventory.add_command(inventory_show)
policy.add_command(policy_create)
policy.add_command(policy_deactivate)
policy.add_command(policy_in_use)
policy.add_command(policy_list)
policy.add_command(policy_update)
expiration.add_command(expiration_expiring)
expiration.add_command(expiration_run_once)
expiration.add_command(expiration_serve)
expiration.add_command(expiration_stats)
