"""CLI commands for reservations."""

from __future__ import annotations

import click

from holdkeeper.application.cancel_reservation import CancelReservationHandler
from holdkeeper.application.complete_reservation import CompleteReservationHandler
from holdkeeper.application.confirm_reservation import ConfirmReservationHandler
from holdkeeper.application.create_reservation import CreateReservationHandler
from holdkeeper.application.dto import CreateReservationRequest, ReservationDTO
from holdkeeper.application.extend_reservation import ExtendReservationHandler
from holdkeeper.application.show_reservation import ShowReservationHandler
from holdkeeper.domain.exceptions import DomainException
from holdkeeper.infrastructure.cli.context import get_container, parse_items


def _display_reservation(dto: ReservationDTO) -> None:
    click.echo(f"Reservation {dto.id}  (status={dto.status})")
    click.echo(f"Customer: {dto.customer_name}")
    click.echo(f"Business: {dto.business_id}")
    click.echo(f"Created:  {dto.created_at}")
    if dto.expires_at is not None:
        warned = ", ".join(str(w) for w in dto.warnings_sent) or "-"
        click.echo(f"Expires:  {dto.expires_at}  (ttl={dto.ttl_status}, warned at: {warned})")
    if dto.cancellation_reason:
        click.echo(f"Cancelled by {dto.cancelled_by}: {dto.cancellation_reason}")

    if dto.holds:
        click.echo()
        click.echo(f"  {'Product':<20} {'Qty':>5} {'Status':>10}  {'Held until'}")
        click.echo(f"  {'-'*58}")
        for hold in dto.holds:
            click.echo(f"  {hold.product_id:<20} {hold.quantity:>5} {hold.status:>10}  {hold.hold_until}")


@click.command("create")
@click.option("--business", "business_id", required=True, help="Business ID.")
@click.option("--customer", required=True, help="Customer name.")
@click.option("--email", default=None, help="Customer email.")
@click.option("--service-type", "service_type_id", default=None, help="Service type ID.")
@click.option("--items", default="", help="Items to hold as 'ProductId:Qty,ProductId:Qty'.")
@click.option("--ttl", "ttl_minutes", type=int, default=None, help="TTL in minutes (default: policy).")
@click.option("--hold-minutes", type=int, default=None, help="Inventory hold duration in minutes.")
@click.option("--notes", default="", help="Free-form notes.")
@click.pass_context
def reservation_create(
    ctx: click.Context,
    business_id: str,
    customer: str,
    email: str | None,
    service_type_id: str | None,
    items: str,
    ttl_minutes: int | None,
    hold_minutes: int | None,
    notes: str,
) -> None:
    """Create a pending reservation, holding its items."""
    container = get_container(ctx)
    request = CreateReservationRequest(
        business_id=business_id,
        customer_name=customer,
        customer_email=email,
        service_type_id=service_type_id,
        items=tuple(parse_items(items)),
        ttl_minutes=ttl_minutes,
        hold_duration_minutes=hold_minutes,
        notes=notes,
    )
    handler = CreateReservationHandler(
        uow_factory=container.uow_factory,
        ledger=container.ledger,
        ttl_tracker=container.ttl_tracker,
        policies=container.policies,
        clock=container.clock,
    )

    try:
        dto = handler.handle(request)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Reservation {dto.id} created  (status={dto.status})")
    _display_reservation(dto)


@click.command("show")
@click.option("--id", "reservation_id", required=True, help="Reservation ID.")
@click.pass_context
def reservation_show(ctx: click.Context, reservation_id: str) -> None:
    """Show a reservation with its TTL and holds."""
    handler = ShowReservationHandler(get_container(ctx).uow_factory)

    try:
        dto = handler.handle(reservation_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_reservation(dto)


@click.command("confirm")
@click.option("--id", "reservation_id", required=True, help="Reservation ID.")
@click.pass_context
def reservation_confirm(ctx: click.Context, reservation_id: str) -> None:
    """Confirm a pending reservation (consumes its held stock)."""
    container = get_container(ctx)
    handler = ConfirmReservationHandler(container.uow_factory, container.ledger, container.clock)

    try:
        handler.handle(reservation_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Reservation {reservation_id} confirmed.")


@click.command("complete")
@click.option("--id", "reservation_id", required=True, help="Reservation ID.")
@click.pass_context
def reservation_complete(ctx: click.Context, reservation_id: str) -> None:
    """Mark a confirmed reservation completed."""
    container = get_container(ctx)
    handler = CompleteReservationHandler(container.uow_factory, container.clock)

    try:
        handler.handle(reservation_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Reservation {reservation_id} completed.")


@click.command("cancel")
@click.option("--id", "reservation_id", required=True, help="Reservation ID.")
@click.option("--by", "cancelled_by", default="operator", show_default=True, help="Who cancels.")
@click.option("--reason", default=None, help="Cancellation reason.")
@click.pass_context
def reservation_cancel(ctx: click.Context, reservation_id: str, cancelled_by: str, reason: str | None) -> None:
    """Cancel a reservation and release everything it holds."""
    container = get_container(ctx)
    handler = CancelReservationHandler(container.uow_factory, container.ledger, container.clock)

    try:
        handler.handle(reservation_id, cancelled_by=cancelled_by, reason=reason)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Reservation {reservation_id} cancelled.")


@click.command("extend")
@click.option("--id", "reservation_id", required=True, help="Reservation ID.")
@click.option("--minutes", type=int, required=True, help="Minutes to add to the deadline.")
@click.pass_context
def reservation_extend(ctx: click.Context, reservation_id: str, minutes: int) -> None:
    """Push a reservation's expiry out."""
    handler = ExtendReservationHandler(get_container(ctx).ttl_tracker)

    if not handler.handle(reservation_id, minutes):
        raise click.ClickException(f"Reservation {reservation_id} cannot be extended")

    click.echo(f"Reservation {reservation_id} extended by {minutes} minutes.")
