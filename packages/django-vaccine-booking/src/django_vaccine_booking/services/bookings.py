"""Slot booking services.

Every booking consumes one dose of clinic-day capacity and one dose of
stock. Both counters are locked, checked, and then bumped with a
conditional UPDATE inside one transaction. The conditional UPDATE is
the compare-and-increment that keeps capacity safe on backends where
select_for_update() is a no-op.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from ..exceptions import CapacityExceeded, StateConflict, ValidationError
from ..models import (
    Booking,
    BookingStatus,
    BookingType,
    ClinicDay,
    MemberStatus,
    NotificationKind,
    PoolMember,
    PoolStatus,
    Stock,
    Vaccine,
)
from ..patients import PatientContact
from ..tokens import generate_token
from .calendar import get_clinic_day_for_date
from .catalog import allocate_stock, release_stock
from .lookups import get_or_not_found
from .notifications import queue_for_record
from .pools import add_pool_member, has_held_booking, refresh_pool_capacity

logger = logging.getLogger(__name__)


@dataclass
class CancellationResult:
    """Outcome of cancel_booking().

    Attributes:
        booking: The booking, now cancelled
        already_cancelled: True if the booking was cancelled before this
            call and nothing was changed
    """

    booking: Booking
    already_cancelled: bool = False


def _booking_payload(booking: Booking, clinic_day: ClinicDay) -> dict:
    return {
        "booking_id": str(booking.pk),
        "vaccine": booking.vaccine.name,
        "clinic_date": clinic_day.clinic_date.isoformat(),
        "booking_type": booking.booking_type,
        "walk_in_windows": [str(window) for window in clinic_day.walk_in_windows.all()],
        "cancellation_token": booking.cancellation_token,
    }


@transaction.atomic
def book_slot(
    vaccine: Vaccine,
    clinic_day: ClinicDay,
    patient: PatientContact,
    *,
    booking_type: str = BookingType.SLOT,
    pool_member: PoolMember = None,
    today: date = None,
) -> Booking:
    """Book one dose on a clinic day.

    Capacity is checked after the day and stock rows are locked and
    before anything is written. The increments themselves are
    conditional, so a concurrent request that slipped past the check
    still cannot overshoot.

    Args:
        vaccine: Vaccine to administer
        clinic_day: Day to book against (must belong to the vaccine)
        patient: Contact details, validated here
        booking_type: BookingType value
        pool_member: Pool member this booking fulfils, if any
        today: Override for the pharmacy's local date

    Returns:
        The confirmed Booking

    Raises:
        ValidationError: Bad contact details, or a day that is for another
            vaccine, inactive or elapsed
        NotFound: Clinic day or stock row missing
        CapacityExceeded: Day fully booked or no stock available
    """
    patient = patient.validate()
    if booking_type not in BookingType.values:
        raise ValidationError(f"Unknown booking type: {booking_type}", field="booking_type")

    day = get_or_not_found(ClinicDay.objects.select_for_update(), "ClinicDay", pk=clinic_day.pk)
    if day.vaccine_id != vaccine.pk:
        raise ValidationError(
            f"Clinic day {day.clinic_date} is not scheduled for {vaccine}",
            field="clinic_day",
        )
    if not day.is_active:
        raise ValidationError(f"Clinic day {day.clinic_date} is not active", field="clinic_day")
    if day.is_elapsed(today):
        raise ValidationError(f"Clinic day {day.clinic_date} has already passed", field="clinic_day")

    stock = get_or_not_found(Stock.objects.select_for_update(), "Stock", vaccine=vaccine)
    if not day.has_capacity:
        raise CapacityExceeded(
            f"Clinic day {day.clinic_date} is fully booked",
            entity="clinic_day",
            entity_id=day.pk,
        )
    if stock.available < 1:
        raise CapacityExceeded(
            f"{vaccine} is out of stock",
            entity="stock",
            entity_id=stock.pk,
        )

    updated = ClinicDay.objects.filter(
        pk=day.pk,
        booked_doses__lt=F("allocated_doses"),
    ).update(booked_doses=F("booked_doses") + 1, updated_at=timezone.now())
    if not updated:
        raise CapacityExceeded(
            f"Clinic day {day.clinic_date} is fully booked",
            entity="clinic_day",
            entity_id=day.pk,
        )
    allocate_stock(vaccine)

    booking = Booking.objects.create(
        vaccine=vaccine,
        clinic_day=day,
        pool_member=pool_member,
        booking_type=booking_type,
        cancellation_token=generate_token(),
        **patient.as_model_fields(),
    )
    queue_for_record(
        NotificationKind.BOOKING_CONFIRMED,
        booking,
        payload=_booking_payload(booking, day),
        booking=booking,
        pool_member=pool_member,
    )
    logger.info("Booked %s on %s (%s booking %s)", vaccine, day.clinic_date, booking_type, booking.pk)
    return booking


# Name used by the booking front end
create_booking = book_slot


BOOKABLE_MEMBER_STATUSES = (MemberStatus.PENDING, MemberStatus.NO_RESPONSE, MemberStatus.CONFIRMED)


@transaction.atomic
def book_pool_member(
    member: PoolMember,
    clinic_day: ClinicDay = None,
    *,
    now: datetime = None,
) -> Booking:
    """Confirm a pool member and book them on the pool's landing day.

    Members the deadline sweep already marked no_response may still
    confirm while the pool is open, and members who confirmed through
    update_pool_member_status are booked here. The landing day is always
    the clinic day on the pool's proposed date.

    Raises:
        ValidationError: clinic_day is not on the proposed date
        StateConflict: Pool not open, member declined or already booked,
            or no clinic day exists for the proposed date
        CapacityExceeded: Landing day or stock exhausted
    """
    now = now or timezone.now()
    member = get_or_not_found(PoolMember.objects.select_for_update(), "PoolMember", pk=member.pk)
    pool = member.pool
    if pool.status != PoolStatus.OPEN:
        raise StateConflict(
            f"Pool {pool.pk} is {pool.status}; bookings need an open pool",
            from_state=pool.status,
        )
    if member.status not in BOOKABLE_MEMBER_STATUSES:
        raise StateConflict(
            f"Pool member {member.pk} is already {member.status}",
            from_state=member.status,
            to_state=MemberStatus.CONFIRMED,
        )
    if has_held_booking(member):
        raise StateConflict(
            f"Pool member {member.pk} already has a booking",
            from_state=member.status,
        )

    day = clinic_day or pool.clinic_day
    if day is None and pool.proposed_date is not None:
        day = get_clinic_day_for_date(pool.vaccine, pool.proposed_date)
    if day is None:
        raise StateConflict(
            f"No clinic day is scheduled for pool {pool.pk} on {pool.proposed_date}"
        )
    if day.clinic_date != pool.proposed_date:
        raise ValidationError(
            f"Pool {pool.pk} lands on {pool.proposed_date}, not {day.clinic_date}",
            field="clinic_day",
        )

    booking = book_slot(
        pool.vaccine,
        day,
        PatientContact.from_record(member),
        booking_type=BookingType.POOL,
        pool_member=member,
        today=timezone.localdate(now),
    )

    if member.status != MemberStatus.CONFIRMED:
        member.status = MemberStatus.CONFIRMED
        member.responded_at = now
        member.save(update_fields=["status", "responded_at", "updated_at"])
    refresh_pool_capacity(pool)
    return booking


@transaction.atomic
def book_open_pool(
    pool,
    patient: PatientContact,
    clinic_day: ClinicDay = None,
) -> Booking:
    """Late joiner instant booking on an open pool.

    Adds the patient as a member and books them in one transaction, so a
    failed booking leaves no dangling member behind.
    """
    if pool.status != PoolStatus.OPEN:
        raise StateConflict(
            f"Pool {pool.pk} is {pool.status}; instant booking needs an open pool",
            from_state=pool.status,
        )
    member = add_pool_member(pool, patient)
    return book_pool_member(member, clinic_day)


@transaction.atomic
def cancel_booking(booking: Booking, *, now: datetime = None) -> CancellationResult:
    """Cancel a booking and give its dose back.

    Cancelling an already cancelled booking succeeds without touching
    any counter. Counters are floored at zero; a floor hit is logged as
    a data-consistency warning.

    Raises:
        NotFound: Unknown booking
        StateConflict: Booking was already administered
    """
    now = now or timezone.now()
    booking = get_or_not_found(
        Booking.objects.select_for_update(), "Booking", pk=booking.pk
    )

    if booking.status == BookingStatus.CANCELLED:
        logger.info("Booking %s already cancelled", booking.pk)
        return CancellationResult(booking=booking, already_cancelled=True)
    if booking.status == BookingStatus.COMPLETED:
        raise StateConflict(
            f"Booking {booking.pk} has been administered and cannot be cancelled",
            from_state=booking.status,
            to_state=BookingStatus.CANCELLED,
        )

    day = ClinicDay.all_objects.select_for_update().get(pk=booking.clinic_day_id)
    released = ClinicDay.all_objects.filter(
        pk=day.pk,
        booked_doses__gte=1,
    ).update(booked_doses=F("booked_doses") - 1, updated_at=now)
    if not released:
        logger.warning(
            "Data consistency: cancelling booking %s found clinic day %s with no booked doses",
            booking.pk,
            day.pk,
        )
    release_stock(booking.vaccine)

    booking.status = BookingStatus.CANCELLED
    booking.cancelled_at = now
    booking.save(update_fields=["status", "cancelled_at", "updated_at"])

    if booking.pool_member_id:
        PoolMember.objects.filter(pk=booking.pool_member_id).update(
            status=MemberStatus.CANCELLED,
            responded_at=now,
            updated_at=now,
        )

    queue_for_record(
        NotificationKind.BOOKING_CANCELLED,
        booking,
        payload={
            "booking_id": str(booking.pk),
            "vaccine": booking.vaccine.name,
            "clinic_date": day.clinic_date.isoformat(),
        },
        booking=booking,
    )
    logger.info("Booking %s cancelled", booking.pk)
    return CancellationResult(booking=booking)


def cancel_booking_by_token(token: str, *, now: datetime = None) -> CancellationResult:
    """Cancel through the link sent to the patient."""
    booking = get_booking_by_token(token)
    return cancel_booking(booking, now=now)


@transaction.atomic
def complete_booking(booking: Booking) -> Booking:
    """Record that the dose was administered.

    Raises:
        StateConflict: Booking is not confirmed
    """
    booking = get_or_not_found(Booking.objects.select_for_update(), "Booking", pk=booking.pk)
    if booking.status != BookingStatus.CONFIRMED:
        raise StateConflict(
            f"Only confirmed bookings can be completed, booking {booking.pk} is {booking.status}",
            from_state=booking.status,
            to_state=BookingStatus.COMPLETED,
        )

    booking.status = BookingStatus.COMPLETED
    booking.save(update_fields=["status", "updated_at"])
    if booking.pool_member_id:
        PoolMember.objects.filter(pk=booking.pool_member_id).update(
            status=MemberStatus.COMPLETED,
            updated_at=timezone.now(),
        )
    logger.info("Booking %s completed", booking.pk)
    return booking


def get_booking(booking_id) -> Booking:
    """Raises NotFound for unknown ids."""
    return get_or_not_found(
        Booking.objects.select_related("vaccine", "clinic_day"), "Booking", pk=booking_id
    )


def get_booking_by_token(token: str) -> Booking:
    """Raises NotFound for unknown tokens."""
    return get_or_not_found(
        Booking.objects.select_related("vaccine", "clinic_day"),
        "Booking",
        cancellation_token=token,
    )


def get_bookings(vaccine: Vaccine = None, status: str = None, clinic_day: ClinicDay = None):
    """Bookings, newest first."""
    qs = Booking.objects.select_related("vaccine", "clinic_day")
    if vaccine is not None:
        qs = qs.filter(vaccine=vaccine)
    if status is not None:
        qs = qs.filter(status=status)
    if clinic_day is not None:
        qs = qs.filter(clinic_day=clinic_day)
    return list(qs.order_by("-created_at"))
