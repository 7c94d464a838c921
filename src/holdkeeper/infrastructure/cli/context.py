"""Shared CLI helpers: container access and item parsing."""

from __future__ import annotations

import click

from holdkeeper.application.dto import ReservationItemSpec
from holdkeeper.infrastructure.bootstrap import Container, build_container


def get_container(ctx: click.Context) -> Container:
    """Build the container on first use so ``--help`` never touches the database."""
    obj = ctx.ensure_object(dict)
    if "container" not in obj:
        obj["container"] = build_container(obj.get("settings"))
    return obj["container"]


def parse_items(raw: str) -> list[ReservationItemSpec]:
    """Parse 'P1:3,P2:5' into a ReservationItemSpec list."""
    specs: list[ReservationItemSpec] = []
    for pair in raw.split(","):
        pair = pair.strip()
        if not pair:
            continue
        if ":" not in pair:
            raise click.BadParameter(
                f"Invalid item format '{pair}'. Expected 'ProductId:Quantity'."
            )
        product_id, qty_str = pair.rsplit(":", 1)
        try:
            qty = int(qty_str)
        except ValueError:
            raise click.BadParameter(
                f"Invalid quantity '{qty_str}' for product '{product_id}'."
            )
        specs.append(ReservationItemSpec(product_id=product_id.strip(), quantity=qty))
    return specs
