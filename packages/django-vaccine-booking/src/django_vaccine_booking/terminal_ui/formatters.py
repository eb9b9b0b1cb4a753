"""Rich table and panel formatters for terminal UI."""

from uuid import UUID

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

STATUS_STYLES = {
    "filling": "cyan",
    "open": "green",
    "full": "yellow",
    "completed": "dim",
    "pending": "yellow",
    "confirmed": "green",
    "declined": "red",
    "moved": "magenta",
    "no_response": "red",
    "cancelled": "red",
    "waiting": "yellow",
    "notified": "cyan",
    "booked": "green",
    "removed": "dim",
}


def short_uuid(uuid_val: UUID | str | None) -> str:
    """Shorten a UUID to first 8 characters for readability.

    Args:
        uuid_val: UUID object, string, or None

    Returns:
        First 8 characters of UUID, or "-" if None
    """
    if uuid_val is None:
        return "-"
    return str(uuid_val)[:8]


def styled_status(status: str | None) -> Text:
    if not status:
        return Text("-")
    return Text(status, style=STATUS_STYLES.get(status, ""))


def _fmt_dt(value) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else "-"


def format_vaccines_table(vaccines: list) -> Table:
    """Format vaccines with their stock counters as a Rich table.

    Args:
        vaccines: List of Vaccine objects with stock selected

    Returns:
        Rich Table ready for display
    """
    table = Table(title="Vaccines")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="green")
    table.add_column("Type", style="cyan")
    table.add_column("Doses/Vial", justify="right")
    table.add_column("Stock", justify="right")
    table.add_column("Allocated", justify="right")
    table.add_column("Available", justify="right", style="bold")
    table.add_column("Active")

    for vaccine in vaccines:
        stock = getattr(vaccine, "stock", None)
        table.add_row(
            short_uuid(vaccine.pk),
            vaccine.name,
            vaccine.vaccine_type,
            str(vaccine.doses_per_vial),
            str(stock.total_stock) if stock else "-",
            str(stock.allocated_stock) if stock else "-",
            str(stock.available) if stock else "-",
            "yes" if vaccine.is_active else "no",
        )

    return table


def format_clinic_days_table(days: list) -> Table:
    table = Table(title="Clinic Days")
    table.add_column("ID", style="dim")
    table.add_column("Date", style="green")
    table.add_column("Vaccine", style="cyan")
    table.add_column("Booked", justify="right")
    table.add_column("Remaining", justify="right", style="bold")
    table.add_column("Walk-in Windows")
    table.add_column("Active")

    for day in days:
        windows = ", ".join(str(window) for window in day.walk_in_windows.all())
        table.add_row(
            short_uuid(day.pk),
            day.clinic_date.isoformat(),
            day.vaccine.name,
            f"{day.booked_doses}/{day.allocated_doses}",
            str(day.remaining_doses),
            windows or "-",
            "yes" if day.is_active else "no",
        )

    return table


def format_pools_table(pools: list) -> Table:
    """Format pools as a Rich table.

    Args:
        pools: Pools annotated with member_count and confirmed_count

    Returns:
        Rich Table ready for display
    """
    table = Table(title="Pools")
    table.add_column("ID", style="dim")
    table.add_column("Vaccine", style="cyan")
    table.add_column("Status")
    table.add_column("Members", justify="right")
    table.add_column("Confirmed", justify="right")
    table.add_column("Proposed Date")
    table.add_column("Deadline", style="dim")

    for pool in pools:
        table.add_row(
            short_uuid(pool.pk),
            pool.vaccine.name,
            styled_status(pool.status),
            str(getattr(pool, "member_count", "-")),
            f"{getattr(pool, 'confirmed_count', '-')}/{pool.vaccine.doses_per_vial}",
            pool.proposed_date.isoformat() if pool.proposed_date else "-",
            _fmt_dt(pool.confirmation_deadline),
        )

    return table


def format_members_table(members: list) -> Table:
    table = Table(title="Members")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="green")
    table.add_column("Contact")
    table.add_column("Status")
    table.add_column("Original")
    table.add_column("Joined", style="dim")
    table.add_column("Responded", style="dim")

    for member in members:
        contact = member.patient_email or member.patient_phone or "-"
        table.add_row(
            short_uuid(member.pk),
            member.patient_name,
            contact,
            styled_status(member.status),
            "yes" if member.is_original_member else "late",
            _fmt_dt(member.joined_at),
            _fmt_dt(member.responded_at),
        )

    return table


def format_pool_detail(pool, members: list, confirmed: int) -> Panel:
    """Format a pool with its members as a Rich panel.

    Args:
        pool: Pool object
        members: Pool members in join order
        confirmed: Confirmed member count

    Returns:
        Rich Panel ready for display
    """
    summary = Table.grid(padding=(0, 2))
    summary.add_column(style="bold")
    summary.add_column()
    summary.add_row("Vaccine", pool.vaccine.name)
    summary.add_row("Status", styled_status(pool.status))
    summary.add_row("Confirmed", f"{confirmed}/{pool.vaccine.doses_per_vial}")
    summary.add_row("Proposed Date", pool.proposed_date.isoformat() if pool.proposed_date else "-")
    summary.add_row("Clinic Day", str(pool.clinic_day) if pool.clinic_day else "-")
    summary.add_row("Deadline", _fmt_dt(pool.confirmation_deadline))
    summary.add_row("Opened", _fmt_dt(pool.opened_at))
    summary.add_row("Closed", _fmt_dt(pool.closed_at))

    body = Table.grid()
    body.add_row(summary)
    body.add_row(format_members_table(members))
    return Panel(body, title=f"Pool {short_uuid(pool.pk)}", border_style="blue")


def format_bookings_table(bookings: list) -> Table:
    table = Table(title="Bookings")
    table.add_column("ID", style="dim")
    table.add_column("Patient", style="green")
    table.add_column("Vaccine", style="cyan")
    table.add_column("Date")
    table.add_column("Type")
    table.add_column("Status")
    table.add_column("Created", style="dim")

    for booking in bookings:
        table.add_row(
            short_uuid(booking.pk),
            booking.patient_name,
            booking.vaccine.name,
            booking.clinic_day.clinic_date.isoformat(),
            booking.booking_type,
            styled_status(booking.status),
            _fmt_dt(booking.created_at),
        )

    return table


def format_waitlist_table(entries: list) -> Table:
    table = Table(title="Waitlist")
    table.add_column("#", justify="right", style="dim")
    table.add_column("ID", style="dim")
    table.add_column("Patient", style="green")
    table.add_column("Vaccine", style="cyan")
    table.add_column("Status")
    table.add_column("Added", style="dim")

    for position, entry in enumerate(entries, start=1):
        table.add_row(
            str(position),
            short_uuid(entry.pk),
            entry.patient_name,
            entry.vaccine.name,
            styled_status(entry.status),
            _fmt_dt(entry.created_at),
        )

    return table


def format_dashboard(stats) -> Panel:
    """Format DashboardStats as a Rich panel."""
    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold")
    table.add_column(justify="right")
    table.add_row("Total bookings", str(stats.total_bookings))
    table.add_row("Bookings today", str(stats.today_bookings))
    table.add_row("Active pools", str(stats.active_pools))
    table.add_row("Pending pool members", str(stats.pending_members))
    table.add_row("Doses in stock", str(stats.total_stock))
    table.add_row("Waiting on waitlist", str(stats.waitlist_count))
    return Panel(table, title="Vaccine Booking Dashboard", border_style="green")
