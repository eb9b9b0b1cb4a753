"""Clinic calendar services.

A ClinicDay is the per-day dose budget for one vaccine. booked_doses is
only changed by the booking services; this module owns creation,
capacity edits and (soft) deletion.
"""

import logging
from datetime import date, datetime, time

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from ..exceptions import CapacityExceeded, StateConflict, ValidationError
from ..models import BookingStatus, ClinicDay, Pool, Vaccine, WalkInWindow
from .lookups import get_or_not_found

logger = logging.getLogger(__name__)


def _parse_time(value, field: str) -> time:
    if isinstance(value, time):
        return value
    if isinstance(value, str):
        try:
            return datetime.strptime(value.strip(), "%H:%M").time()
        except ValueError:
            pass
    raise ValidationError(f"Invalid time {value!r}, expected HH:MM", field=field)


def _parse_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            pass
    raise ValidationError(f"Invalid date {value!r}, expected YYYY-MM-DD", field="clinic_date")


def parse_windows(windows) -> list[tuple[time, time]]:
    """Normalise and validate walk-in windows.

    Accepts (start, end) pairs or dicts with start_time/end_time keys.
    Values may be datetime.time or "HH:MM" strings.

    Returns:
        Windows sorted by start time

    Raises:
        ValidationError: Empty list, start >= end, or overlapping windows
    """
    if not windows:
        raise ValidationError("At least one walk-in window is required", field="windows")

    parsed = []
    for window in windows:
        if isinstance(window, dict):
            start = window.get("start_time", window.get("start"))
            end = window.get("end_time", window.get("end"))
        else:
            try:
                start, end = window
            except (TypeError, ValueError):
                raise ValidationError(f"Invalid walk-in window: {window!r}", field="windows")
        start = _parse_time(start, "windows")
        end = _parse_time(end, "windows")
        if start >= end:
            raise ValidationError(
                f"Walk-in window {start:%H:%M}-{end:%H:%M} must start before it ends",
                field="windows",
            )
        parsed.append((start, end))

    parsed.sort()
    for (_, prev_end), (next_start, next_end) in zip(parsed, parsed[1:]):
        if next_start < prev_end:
            raise ValidationError(
                f"Walk-in window {next_start:%H:%M}-{next_end:%H:%M} overlaps "
                f"a window ending at {prev_end:%H:%M}",
                field="windows",
            )
    return parsed


@transaction.atomic
def create_clinic_day(
    vaccine: Vaccine,
    clinic_date,
    capacity: int,
    windows,
    *,
    is_active: bool = True,
) -> ClinicDay:
    """Open a clinic day for a vaccine.

    Args:
        vaccine: The vaccine administered that day
        clinic_date: date or "YYYY-MM-DD"
        capacity: Doses allocated to the day (>= 1)
        windows: Non-overlapping walk-in windows, see parse_windows()
        is_active: Whether the day is bookable

    Returns:
        The created ClinicDay with its WalkInWindow rows

    Raises:
        ValidationError: Bad capacity, date or windows
    """
    if capacity is None or capacity < 1:
        raise ValidationError("Clinic day capacity must be at least 1", field="capacity")
    clinic_date = _parse_date(clinic_date)
    parsed = parse_windows(windows)

    day = ClinicDay.objects.create(
        vaccine=vaccine,
        clinic_date=clinic_date,
        allocated_doses=capacity,
        is_active=is_active,
    )
    WalkInWindow.objects.bulk_create(
        [WalkInWindow(clinic_day=day, start_time=start, end_time=end) for start, end in parsed]
    )
    logger.info("Clinic day %s created for %s with %d doses", clinic_date, vaccine, capacity)
    return day


# Name used by the booking front end
add_clinic_day = create_clinic_day


def get_clinic_day(clinic_day_id) -> ClinicDay:
    """Raises NotFound for unknown or deleted days."""
    return get_or_not_found(ClinicDay.objects.all(), "ClinicDay", pk=clinic_day_id)


def get_clinic_days(vaccine: Vaccine = None, *, active_only: bool = False):
    """Clinic days ordered by date, optionally for one vaccine."""
    qs = ClinicDay.objects.select_related("vaccine").prefetch_related("walk_in_windows")
    if vaccine is not None:
        qs = qs.filter(vaccine=vaccine)
    if active_only:
        qs = qs.filter(is_active=True)
    return list(qs.order_by("clinic_date", "created_at"))


def get_available_clinic_days(vaccine: Vaccine, today: date = None):
    """Bookable days for a vaccine.

    Active, dated today or later (pharmacy local date) and with spare
    capacity, ordered by date ascending.
    """
    today = today or timezone.localdate()
    qs = (
        ClinicDay.objects.filter(
            vaccine=vaccine,
            is_active=True,
            clinic_date__gte=today,
            booked_doses__lt=F("allocated_doses"),
        )
        .prefetch_related("walk_in_windows")
        .order_by("clinic_date", "created_at")
    )
    return list(qs)


def get_clinic_day_for_date(vaccine: Vaccine, clinic_date) -> ClinicDay | None:
    """The active clinic day for a vaccine on a date, if one exists."""
    return (
        ClinicDay.objects.filter(
            vaccine=vaccine,
            clinic_date=_parse_date(clinic_date),
            is_active=True,
        )
        .order_by("created_at")
        .first()
    )


@transaction.atomic
def update_clinic_day(
    clinic_day: ClinicDay,
    *,
    allocated_doses: int = None,
    is_active: bool = None,
) -> ClinicDay:
    """Change capacity or bookability of a day.

    Raises:
        ValidationError: allocated_doses < 1
        CapacityExceeded: allocated_doses below doses already booked
    """
    day = get_or_not_found(ClinicDay.objects.select_for_update(), "ClinicDay", pk=clinic_day.pk)
    update_fields = []

    if allocated_doses is not None:
        if allocated_doses < 1:
            raise ValidationError("Clinic day capacity must be at least 1", field="allocated_doses")
        if allocated_doses < day.booked_doses:
            raise CapacityExceeded(
                f"Cannot reduce capacity to {allocated_doses}: "
                f"{day.booked_doses} doses are already booked",
                entity="clinic_day",
                entity_id=day.pk,
            )
        day.allocated_doses = allocated_doses
        update_fields.append("allocated_doses")

    if is_active is not None:
        day.is_active = is_active
        update_fields.append("is_active")

    if update_fields:
        day.save(update_fields=update_fields + ["updated_at"])
    return day


@transaction.atomic
def delete_clinic_day(clinic_day: ClinicDay, today: date = None) -> ClinicDay:
    """Soft-delete a clinic day that has not happened yet.

    Raises:
        StateConflict: The day has elapsed, or still has confirmed bookings
    """
    day = get_or_not_found(ClinicDay.objects.select_for_update(), "ClinicDay", pk=clinic_day.pk)

    if day.is_elapsed(today):
        raise StateConflict(
            f"Clinic day {day.clinic_date} has already elapsed and is kept for audit history"
        )
    if day.bookings.filter(status=BookingStatus.CONFIRMED).exists():
        raise StateConflict(
            f"Clinic day {day.clinic_date} has confirmed bookings; cancel them first"
        )

    Pool.objects.filter(clinic_day=day).update(clinic_day=None)
    day.is_active = False
    day.deleted_at = timezone.now()
    day.save(update_fields=["is_active", "deleted_at", "updated_at"])
    logger.info("Clinic day %s for %s deleted", day.clinic_date, day.vaccine)
    return day
