"""Intake routing.

Turns a patient's request for a vaccine into exactly one outcome: a
booking, a pool membership or a waitlist entry.
"""

import logging
from dataclasses import dataclass
from datetime import date

from django.db import models, transaction

from ..exceptions import CapacityExceeded, ValidationError
from ..models import Booking, ClinicDay, PoolMember, PoolStatus, Vaccine, WaitlistEntry
from ..patients import PatientContact
from .bookings import book_open_pool, book_slot
from .calendar import get_available_clinic_days, get_clinic_day_for_date
from .catalog import available
from .pools import get_active_pool, join_pool
from .waitlist import add_to_waitlist

logger = logging.getLogger(__name__)


class IntakeRoute(models.TextChoices):
    BOOKED = "booked", "Booked"
    POOLED = "pooled", "Joined pool"
    WAITLISTED = "waitlisted", "Waitlisted"


@dataclass
class IntakeOutcome:
    """Where a request ended up. Exactly one of the records is set."""

    route: str
    booking: Booking = None
    pool_member: PoolMember = None
    waitlist_entry: WaitlistEntry = None

    @property
    def is_booked(self) -> bool:
        return self.route == IntakeRoute.BOOKED


def _waitlist(vaccine, patient, reason):
    logger.info("Routing request for %s to the waitlist: %s", vaccine, reason)
    return IntakeOutcome(
        route=IntakeRoute.WAITLISTED,
        waitlist_entry=add_to_waitlist(vaccine, patient),
    )


@transaction.atomic
def request_vaccination(
    vaccine: Vaccine,
    patient: PatientContact,
    clinic_day: ClinicDay = None,
    *,
    today: date = None,
) -> IntakeOutcome:
    """Route a patient request.

    Vial vaccines book instantly when the active pool is open and has a
    landing day, otherwise the patient joins (or starts) the filling pool.
    Pre-filled vaccines book the chosen day, or the earliest day with
    capacity, and fall back to the waitlist when stock or capacity has
    run out, including when a concurrent booking took the last dose.

    Args:
        vaccine: Requested vaccine
        patient: Contact details
        clinic_day: Preferred day for pre-filled vaccines
        today: Override for the pharmacy's local date

    Returns:
        IntakeOutcome

    Raises:
        ValidationError: Inactive vaccine or invalid contact details
    """
    patient = patient.validate()
    if not vaccine.is_active:
        raise ValidationError(f"{vaccine} is not currently offered", field="vaccine")

    if vaccine.is_vial:
        pool = get_active_pool(vaccine)
        if pool is not None and pool.status == PoolStatus.OPEN:
            landing = pool.clinic_day or get_clinic_day_for_date(vaccine, pool.proposed_date)
            if landing is not None:
                try:
                    booking = book_open_pool(pool, patient, landing)
                except CapacityExceeded as exc:
                    return _waitlist(vaccine, patient, exc)
                return IntakeOutcome(
                    route=IntakeRoute.BOOKED,
                    booking=booking,
                    pool_member=booking.pool_member,
                )
        return IntakeOutcome(route=IntakeRoute.POOLED, pool_member=join_pool(vaccine, patient))

    if available(vaccine) < 1:
        return _waitlist(vaccine, patient, "out of stock")

    day = clinic_day
    if day is None:
        days = get_available_clinic_days(vaccine, today=today)
        if not days:
            return _waitlist(vaccine, patient, "no clinic day with capacity")
        day = days[0]

    try:
        booking = book_slot(vaccine, day, patient, today=today)
    except CapacityExceeded as exc:
        return _waitlist(vaccine, patient, exc)
    return IntakeOutcome(route=IntakeRoute.BOOKED, booking=booking)
