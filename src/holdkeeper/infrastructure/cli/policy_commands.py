"""CLI commands for expiration policies."""

from __future__ import annotations

import click

from holdkeeper.application.dto import PolicyDTO, PolicySpec
from holdkeeper.application.manage_policies import (
    CreatePolicyHandler,
    DeactivatePolicyHandler,
    ListPoliciesHandler,
    PoliciesInUseHandler,
    UpdatePolicyHandler,
)
from holdkeeper.domain.exceptions import DomainException
from holdkeeper.infrastructure.cli.context import get_container


def _display_policy(dto: PolicyDTO) -> None:
    state = "active" if dto.is_active else "inactive"
    warnings = ", ".join(str(w) for w in dto.warning_intervals) or "-"
    scope = ", ".join(dto.service_type_ids) if dto.service_type_ids else "all service types"
    click.echo(f"Policy {dto.id}  '{dto.name}'  ({state})")
    click.echo(f"  TTL: {dto.default_ttl_minutes} min   grace: {dto.grace_period_minutes} min")
    click.echo(f"  Warnings at: {warnings} min before expiry")
    click.echo(f"  Auto-cleanup: {'yes' if dto.auto_cleanup else 'no'}   scope: {scope}")


@click.command("create")
@click.option("--business", "business_id", required=True, help="Business ID.")
@click.option("--name", required=True, help="Policy name (unique per business).")
@click.option("--ttl", "default_ttl_minutes", type=int, required=True, help="Default TTL in minutes.")
@click.option("--warn", "warning_intervals", type=int, multiple=True, help="Warning interval in minutes (repeatable).")
@click.option("--grace", "grace_period_minutes", type=int, default=0, help="Grace period in minutes.")
@click.option("--auto-cleanup", is_flag=True, default=False, help="Cancel reservations when they expire.")
@click.option("--no-warnings", is_flag=True, default=False, help="Do not send expiry warnings.")
@click.option("--no-expired-notices", is_flag=True, default=False, help="Do not send expired notices.")
@click.option("--notify-business", is_flag=True, default=False, help="Also notify the business on expiry.")
@click.option("--service-type", "service_type_ids", multiple=True, help="Restrict to a service type (repeatable).")
@click.pass_context
def policy_create(
    ctx: click.Context,
    business_id: str,
    name: str,
    default_ttl_minutes: int,
    warning_intervals: tuple[int, ...],
    grace_period_minutes: int,
    auto_cleanup: bool,
    no_warnings: bool,
    no_expired_notices: bool,
    notify_business: bool,
    service_type_ids: tuple[str, ...],
) -> None:
    """Create an expiration policy for a business."""
    spec = PolicySpec(
        business_id=business_id,
        name=name,
        default_ttl_minutes=default_ttl_minutes,
        warning_intervals=warning_intervals,
        grace_period_minutes=grace_period_minutes,
        auto_cleanup=auto_cleanup,
        send_warnings=not no_warnings,
        send_expired_notices=not no_expired_notices,
        send_business_notifications=notify_business,
        service_type_ids=service_type_ids or None,
    )
    handler = CreatePolicyHandler(get_container(ctx).policies)

    try:
        dto = handler.handle(spec)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo("Expiration policy created.")
    _display_policy(dto)


@click.command("update")
@click.option("--id", "policy_id", required=True, help="Policy ID.")
@click.option("--name", default=None, help="New name.")
@click.option("--ttl", "default_ttl_minutes", type=int, default=None, help="Default TTL in minutes.")
@click.option("--warn", "warning_intervals", type=int, multiple=True, help="Replace warning intervals (repeatable).")
@click.option("--grace", "grace_period_minutes", type=int, default=None, help="Grace period in minutes.")
@click.option("--auto-cleanup/--no-auto-cleanup", default=None, help="Cancel reservations when they expire.")
@click.pass_context
def policy_update(
    ctx: click.Context,
    policy_id: str,
    name: str | None,
    default_ttl_minutes: int | None,
    warning_intervals: tuple[int, ...],
    grace_period_minutes: int | None,
    auto_cleanup: bool | None,
) -> None:
    """Change fields of an expiration policy."""
    changes = {
        "name": name,
        "default_ttl_minutes": default_ttl_minutes,
        "grace_period_minutes": grace_period_minutes,
        "auto_cleanup": auto_cleanup,
    }
    changes = {key: value for key, value in changes.items() if value is not None}
    if warning_intervals:
        changes["warning_intervals"] = warning_intervals
    if not changes:
        raise click.ClickException("Nothing to update")

    handler = UpdatePolicyHandler(get_container(ctx).policies)

    try:
        dto = handler.handle(policy_id, **changes)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo("Expiration policy updated.")
    _display_policy(dto)


@click.command("deactivate")
@click.option("--id", "policy_id", required=True, help="Policy ID.")
@click.pass_context
def policy_deactivate(ctx: click.Context, policy_id: str) -> None:
    """Deactivate a policy (it stays on record)."""
    handler = DeactivatePolicyHandler(get_container(ctx).policies)

    try:
        handler.handle(policy_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Policy {policy_id} deactivated.")


@click.command("list")
@click.option("--business", "business_id", required=True, help="Business ID.")
@click.pass_context
def policy_list(ctx: click.Context, business_id: str) -> None:
    """List a business's expiration policies, newest first."""
    policies = ListPoliciesHandler(get_container(ctx).policies).handle(business_id)

    if not policies:
        click.echo("No expiration policies.")
        return
    for dto in policies:
        _display_policy(dto)


@click.command("in-use")
@click.option("--business", "business_id", required=True, help="Business ID.")
@click.pass_context
def policy_in_use(ctx: click.Context, business_id: str) -> None:
    """List policies still governing live reservations."""
    policy_ids = PoliciesInUseHandler(get_container(ctx).policies).handle(business_id)

    if not policy_ids:
        click.echo("No policies in use.")
        return
    for policy_id in policy_ids:
        click.echo(policy_id)
