"""Click CLI for vaccinectl.

Usage:
    python manage.py vaccinectl [command] [options]
"""

from contextlib import contextmanager

import click
from rich.console import Console

from .exceptions import EntityNotFoundError, OperationFailedError

console = Console()


@contextmanager
def service_errors():
    """Turn engine errors into a red message and exit status 1."""
    from django_vaccine_booking.exceptions import VaccineBookingError

    try:
        yield
    except VaccineBookingError as e:
        raise OperationFailedError(str(e)) from e


@click.group()
@click.pass_context
def cli(ctx):
    """Vaccine Booking Terminal UI.

    Browse vaccines, pools and bookings, drive pool transitions and
    verify capacity invariants.
    """
    ctx.ensure_object(dict)


@cli.group(name="list")
def list_group():
    """List entities (vaccines, clinic-days, pools, bookings, waitlist)."""
    pass


@list_group.command(name="vaccines")
@click.option("--all", "include_inactive", is_flag=True, help="Include inactive vaccines")
def list_vaccines(include_inactive):
    """List vaccines with stock."""
    from .selectors import list_vaccines as get_vaccines
    from .formatters import format_vaccines_table

    vaccines = get_vaccines(include_inactive=include_inactive)
    console.print(format_vaccines_table(vaccines))


@list_group.command(name="clinic-days")
@click.option("--limit", default=50, help="Maximum records to return")
@click.option("--vaccine", "vaccine_id", help="Filter by vaccine id")
def list_clinic_days(limit, vaccine_id):
    """List clinic days."""
    from .selectors import list_clinic_days as get_clinic_days
    from .formatters import format_clinic_days_table

    days = get_clinic_days(limit=limit, vaccine_id=vaccine_id)
    console.print(format_clinic_days_table(days))


@list_group.command(name="pools")
@click.option("--limit", default=50, help="Maximum records to return")
@click.option(
    "--status",
    type=click.Choice(["filling", "open", "full", "completed"]),
    help="Filter by status",
)
def list_pools(limit, status):
    """List pools."""
    from .selectors import list_pools as get_pools
    from .formatters import format_pools_table

    pools = get_pools(limit=limit, status=status)
    console.print(format_pools_table(pools))


@list_group.command(name="bookings")
@click.option("--limit", default=50, help="Maximum records to return")
@click.option(
    "--status",
    type=click.Choice(["confirmed", "cancelled", "completed"]),
    help="Filter by status",
)
def list_bookings(limit, status):
    """List bookings."""
    from .selectors import list_bookings as get_bookings
    from .formatters import format_bookings_table

    bookings = get_bookings(limit=limit, status=status)
    console.print(format_bookings_table(bookings))


@list_group.command(name="waitlist")
@click.option("--limit", default=50, help="Maximum records to return")
@click.option(
    "--status",
    type=click.Choice(["waiting", "notified", "booked", "removed"]),
    default="waiting",
    show_default=True,
    help="Filter by status",
)
def list_waitlist(limit, status):
    """List waitlist entries in offer order."""
    from .selectors import list_waitlist as get_waitlist
    from .formatters import format_waitlist_table

    entries = get_waitlist(limit=limit, status=status)
    console.print(format_waitlist_table(entries))


@cli.group(name="show")
def show_group():
    """Show entity details."""
    pass


@show_group.command(name="pool")
@click.argument("pool_id")
def show_pool(pool_id):
    """Show pool details and members."""
    from django_vaccine_booking.services import confirmed_member_count, get_pool_members

    from .selectors import get_pool
    from .formatters import format_pool_detail

    pool = get_pool(pool_id)
    if pool is None:
        raise EntityNotFoundError("Pool", pool_id)

    members = get_pool_members(pool)
    console.print(format_pool_detail(pool, members, confirmed_member_count(pool)))


@cli.command()
def dashboard():
    """Show dashboard statistics."""
    from django_vaccine_booking.services import get_dashboard_stats

    from .formatters import format_dashboard

    console.print(format_dashboard(get_dashboard_stats()))


@cli.group(name="pool")
def pool_group():
    """Pool transitions."""
    pass


def _require_pool(pool_id):
    from .selectors import get_pool

    pool = get_pool(pool_id)
    if pool is None:
        raise EntityNotFoundError("Pool", pool_id)
    return pool


@pool_group.command(name="open")
@click.argument("pool_id")
@click.option("--date", "proposed_date", required=True, help="Proposed clinic date (YYYY-MM-DD)")
def pool_open(pool_id, proposed_date):
    """Open a filling pool for a proposed date."""
    from django_vaccine_booking.services import open_pool

    pool = _require_pool(pool_id)
    with service_errors():
        pool = open_pool(pool, proposed_date)

    console.print(f"[green]Pool {pool.pk} opened for {pool.proposed_date}[/green]")
    console.print(f"Members must confirm by {pool.confirmation_deadline:%Y-%m-%d %H:%M}")
    if pool.clinic_day is None:
        console.print(f"[yellow]No clinic day exists on {pool.proposed_date} yet[/yellow]")


@pool_group.command(name="full")
@click.argument("pool_id")
def pool_full(pool_id):
    """Mark an open pool full."""
    from django_vaccine_booking.services import mark_pool_full

    pool = _require_pool(pool_id)
    with service_errors():
        pool = mark_pool_full(pool)
    console.print(f"[green]Pool {pool.pk} marked full[/green]")


@pool_group.command(name="complete")
@click.argument("pool_id")
def pool_complete(pool_id):
    """Complete a pool."""
    from django_vaccine_booking.services import complete_pool

    pool = _require_pool(pool_id)
    with service_errors():
        pool = complete_pool(pool)
    console.print(f"[green]Pool {pool.pk} completed[/green]")


@cli.command()
@click.option("--dry-run", is_flag=True, help="Report without changing anything")
def sweep(dry_run):
    """Mark silent members of expired open pools as no_response."""
    from django_vaccine_booking.services import (
        expire_unresponsive_members,
        get_unresponsive_members,
    )

    if dry_run:
        count = get_unresponsive_members().count()
        console.print(f"[yellow]Dry run: {count} member(s) would be marked no_response[/yellow]")
        return

    count = expire_unresponsive_members()
    console.print(f"[green]Marked {count} member(s) as no_response[/green]")


@cli.command()
def seed():
    """Seed default vaccines, clinic days and pools."""
    from django_vaccine_booking.services import seed_defaults

    console.print("[bold]Seeding default data...[/bold]")
    result = seed_defaults()
    if not result.seeded:
        console.print("[yellow]Already initialized, nothing to do[/yellow]")
        return

    console.print(
        f"[green]Created {len(result.vaccines)} vaccines, "
        f"{len(result.clinic_days)} clinic days, {len(result.pools)} pools[/green]"
    )
    console.print("[bold green]Seed complete![/bold green]")


@cli.command()
def verify():
    """Run capacity invariant checks."""
    from .selectors import run_integrity_checks

    console.print("[bold]Running verification checks...[/bold]")

    checks_passed = 0
    checks_failed = 0

    for name, passed, detail in run_integrity_checks():
        if passed:
            checks_passed += 1
        else:
            checks_failed += 1
            console.print(f"[red]FAIL:[/red] {name} ({detail})")

    if checks_failed == 0:
        console.print(f"[bold green]Verification complete: {checks_passed} checks passed[/bold green]")
    else:
        console.print(f"[bold red]Verification failed: {checks_failed} checks failed[/bold red]")
        raise SystemExit(1)


def main():
    """Entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
