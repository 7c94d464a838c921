"""CLI commands driving the expiration engine."""

from __future__ import annotations

import time
from datetime import datetime, timezone

import click

from holdkeeper.application.expiration_stats import ExpirationStatsHandler
from holdkeeper.infrastructure.cli.context import get_container
from holdkeeper.infrastructure.scheduler import ExpirationScheduler


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


@click.command("run-once")
@click.pass_context
def expiration_run_once(ctx: click.Context) -> None:
    """Run a single warning/expiration/retention tick."""
    report = get_container(ctx).processor.run_tick()

    click.echo(
        f"Warnings sent: {report.warnings_sent}  expired: {report.expired}  "
        f"cleaned: {report.cleaned}  purged: {report.purged}  failures: {report.failures}"
    )


@click.command("serve")
@click.option("--interval", type=float, default=None, help="Seconds between ticks (default: settings).")
@click.pass_context
def expiration_serve(ctx: click.Context, interval: float | None) -> None:
    """Run the expiration scheduler until interrupted."""
    container = get_container(ctx)
    scheduler = container.scheduler
    if interval is not None:
        scheduler = ExpirationScheduler(container.processor, interval_seconds=interval)

    scheduler.start()
    click.echo("Expiration scheduler running; press Ctrl+C to stop.")
    try:
        while scheduler.is_running:
            time.sleep(1)
    except KeyboardInterrupt:
        pass
    finally:
        scheduler.stop()
    click.echo("Expiration scheduler stopped.")


@click.command("stats")
@click.option("--business", "business_id", required=True, help="Business ID.")
@click.option("--start", type=click.DateTime(), default=None, help="Reservations created from (UTC).")
@click.option("--end", type=click.DateTime(), default=None, help="Reservations created until (UTC).")
@click.pass_context
def expiration_stats(ctx: click.Context, business_id: str, start: datetime | None, end: datetime | None) -> None:
    """Show how many of a business's reservations expired."""
    handler = ExpirationStatsHandler(get_container(ctx).uow_factory)
    stats = handler.handle(business_id, start=_as_utc(start), end=_as_utc(end))

    click.echo(f"Business:        {stats.business_id}")
    click.echo(f"Reservations:    {stats.total_reservations}")
    click.echo(f"Expired:         {stats.expired_reservations}")
    click.echo(f"Expiration rate: {stats.expiration_rate:.2f}%")


@click.command("expiring")
@click.option("--within", "within_minutes", type=int, default=60, show_default=True, help="Window in minutes.")
@click.pass_context
def expiration_expiring(ctx: click.Context, within_minutes: int) -> None:
    """List live reservations expiring within a window."""
    container = get_container(ctx)
    now = container.clock.now()
    ttls = container.ttl_tracker.get_expiring(within_minutes)

    if not ttls:
        click.echo("No reservations expiring.")
        return
    for ttl in ttls:
        click.echo(
            f"{ttl.reservation_id}  expires in {ttl.minutes_remaining(now)} min  ({ttl.status.value})"
        )
