"""CLI commands for product stock."""

from __future__ import annotations

import click

from holdkeeper.application.dto import InventoryLineDTO
from holdkeeper.application.set_inventory import AdjustStockHandler, InitializeInventoryHandler
from holdkeeper.application.show_inventory import (
    CheckAvailabilityHandler,
    LowStockHandler,
    ShowInventoryHandler,
)
from holdkeeper.domain.exceptions import DomainException
from holdkeeper.infrastructure.cli.context import get_container, parse_items


def _display_lines(lines: list[InventoryLineDTO]) -> None:
    click.echo(f"  {'Product':<20} {'Total':>8} {'Reserved':>10} {'Available':>10} {'Min':>5}")
    click.echo(f"  {'-'*57}")
    for line in lines:
        flag = "  LOW" if line.low_stock else ""
        click.echo(
            f"  {line.product_id:<20} {line.total:>8} {line.reserved:>10} "
            f"{line.available:>10} {line.minimum_stock:>5}{flag}"
        )


@click.command("init")
@click.option("--business", "business_id", required=True, help="Business ID.")
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.option("--name", "product_name", default="Unknown Product", help="Product name.")
@click.option("--quantity", type=int, required=True, help="Initial stock.")
@click.option("--minimum", "minimum_stock", type=int, default=0, help="Low-stock threshold.")
@click.option("--no-tracking", is_flag=True, default=False, help="Do not track this product's stock.")
@click.pass_context
def inventory_init(
    ctx: click.Context,
    business_id: str,
    product_id: str,
    product_name: str,
    quantity: int,
    minimum_stock: int,
    no_tracking: bool,
) -> None:
    """Create the stock record of a product."""
    handler = InitializeInventoryHandler(get_container(ctx).ledger)

    try:
        line = handler.handle(
            business_id=business_id,
            product_id=product_id,
            product_name=product_name,
            quantity=quantity,
            minimum_stock=minimum_stock,
            tracking_enabled=not no_tracking,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Inventory for '{line.product_id}' initialized: total={line.total}")


@click.command("adjust")
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.option("--total", type=int, required=True, help="New physical stock count.")
@click.pass_context
def inventory_adjust(ctx: click.Context, product_id: str, total: int) -> None:
    """Set the physical stock count of a product."""
    handler = AdjustStockHandler(get_container(ctx).ledger)

    try:
        line = handler.handle(product_id, total)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Inventory for '{line.product_id}' set to total={line.total} (available={line.available})")


@click.command("show")
@click.option("--business", "business_id", default=None, help="Restrict to one business.")
@click.pass_context
def inventory_show(ctx: click.Context, business_id: str | None) -> None:
    """Show stock levels."""
    lines = ShowInventoryHandler(get_container(ctx).ledger).handle(business_id)

    if not lines:
        click.echo("No inventory records.")
        return
    _display_lines(lines)


@click.command("low-stock")
@click.option("--business", "business_id", required=True, help="Business ID.")
@click.pass_context
def inventory_low_stock(ctx: click.Context, business_id: str) -> None:
    """List products at or below their minimum stock."""
    lines = LowStockHandler(get_container(ctx).ledger).handle(business_id)

    if not lines:
        click.echo("No products below minimum stock.")
        return
    _display_lines(lines)


@click.command("check")
@click.option("--items", required=True, help="Items as 'ProductId:Qty,ProductId:Qty'.")
@click.pass_context
def inventory_check(ctx: click.Context, items: str) -> None:
    """Check whether items could be held right now."""
    handler = CheckAvailabilityHandler(get_container(ctx).ledger)

    try:
        available = handler.handle(parse_items(items))
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo("Available." if available else "Not available.")
