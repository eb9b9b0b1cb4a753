"""Read-optimized selectors for terminal UI.

Ids may be given in full or as the short prefix shown in tables.
"""

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db.models import Count, Q


def _get_by_id_or_prefix(queryset, value: str):
    """Return the single row whose id is or starts with value, else None."""
    value = (value or "").strip()
    if not value:
        return None
    try:
        if len(value) >= 32:
            return queryset.filter(pk=value).first()
        matches = list(queryset.filter(pk__startswith=value)[:2])
    except (DjangoValidationError, ValueError):
        return None
    if len(matches) != 1:
        return None
    return matches[0]


def get_vaccine(vaccine_id: str):
    from django_vaccine_booking.models import Vaccine

    return _get_by_id_or_prefix(Vaccine.objects.select_related("stock"), vaccine_id)


def list_vaccines(include_inactive: bool = False) -> list:
    """List vaccines with their stock counters.

    Args:
        include_inactive: Also list vaccines patients cannot pick

    Returns:
        List of Vaccine objects
    """
    from django_vaccine_booking.models import Vaccine

    qs = Vaccine.objects.select_related("stock").order_by("created_at")
    if not include_inactive:
        qs = qs.filter(is_active=True)
    return list(qs)


def list_clinic_days(limit: int = 50, vaccine_id: str | None = None) -> list:
    """List clinic days, soonest first.

    Args:
        limit: Maximum number of records to return
        vaccine_id: Restrict to one vaccine (id or prefix)

    Returns:
        List of ClinicDay objects, empty if the vaccine is unknown
    """
    from django_vaccine_booking.models import ClinicDay

    qs = ClinicDay.objects.select_related("vaccine").prefetch_related("walk_in_windows")
    if vaccine_id:
        vaccine = get_vaccine(vaccine_id)
        if vaccine is None:
            return []
        qs = qs.filter(vaccine=vaccine)
    return list(qs.order_by("clinic_date", "created_at")[:limit])


def list_pools(limit: int = 50, status: str | None = None) -> list:
    """List pools annotated with member counts."""
    from django_vaccine_booking.models import Pool
    from django_vaccine_booking.services.pools import HELD_BOOKING_STATUSES

    qs = Pool.objects.select_related("vaccine", "clinic_day").annotate(
        member_count=Count("members", distinct=True),
        confirmed_count=Count(
            "members",
            filter=Q(members__bookings__status__in=HELD_BOOKING_STATUSES),
            distinct=True,
        ),
    )
    if status:
        qs = qs.filter(status=status)
    return list(qs.order_by("-created_at")[:limit])


def get_pool(pool_id: str):
    from django_vaccine_booking.models import Pool

    return _get_by_id_or_prefix(Pool.objects.select_related("vaccine", "clinic_day"), pool_id)


def list_bookings(limit: int = 50, status: str | None = None) -> list:
    from django_vaccine_booking.models import Booking

    qs = Booking.objects.select_related("vaccine", "clinic_day")
    if status:
        qs = qs.filter(status=status)
    return list(qs.order_by("-created_at")[:limit])


def list_waitlist(limit: int = 50, status: str | None = None) -> list:
    """List waitlist entries in FIFO order."""
    from django_vaccine_booking.models import WaitlistEntry

    qs = WaitlistEntry.objects.select_related("vaccine")
    if status:
        qs = qs.filter(status=status)
    return list(qs.order_by("created_at", "id")[:limit])


def run_integrity_checks() -> list[tuple[str, bool, str]]:
    """Re-check the capacity invariants against current rows.

    Returns:
        List of (check name, passed, detail) tuples
    """
    from django_vaccine_booking.models import (
        Booking,
        BookingStatus,
        ClinicDay,
        Pool,
        Stock,
    )

    results = []
    held = ~Q(status=BookingStatus.CANCELLED)

    for day in ClinicDay.all_objects.select_related("vaccine"):
        ok = 0 <= day.booked_doses <= day.allocated_doses
        results.append((
            f"Clinic day {day.clinic_date} ({day.vaccine}) within capacity",
            ok,
            f"{day.booked_doses}/{day.allocated_doses}",
        ))
        bookings = Booking.objects.filter(held, clinic_day=day).count()
        results.append((
            f"Clinic day {day.clinic_date} ({day.vaccine}) matches bookings",
            bookings == day.booked_doses,
            f"booked_doses={day.booked_doses}, bookings={bookings}",
        ))

    for stock in Stock.objects.select_related("vaccine"):
        ok = 0 <= stock.allocated_stock <= stock.total_stock
        results.append((
            f"Stock for {stock.vaccine} not over-allocated",
            ok,
            f"{stock.allocated_stock}/{stock.total_stock}",
        ))
        bookings = Booking.objects.filter(held, vaccine=stock.vaccine).count()
        results.append((
            f"Stock for {stock.vaccine} matches bookings",
            bookings == stock.allocated_stock,
            f"allocated_stock={stock.allocated_stock}, bookings={bookings}",
        ))

    duplicates = (
        Pool.objects.filter(status__in=Pool.ACTIVE_STATUSES)
        .values("vaccine")
        .annotate(n=Count("id"))
        .filter(n__gt=1)
        .count()
    )
    results.append((
        "At most one active pool per vaccine",
        duplicates == 0,
        f"{duplicates} vaccine(s) with more than one active pool",
    ))
    return results
