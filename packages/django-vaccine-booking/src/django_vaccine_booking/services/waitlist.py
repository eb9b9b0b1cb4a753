"""Waitlist services.

Demand that cannot be satisfied is queued per vaccine and offered
strictly first-in first-out by creation time.
"""

import logging
from datetime import datetime

from django.db import transaction
from django.utils import timezone

from ..exceptions import StateConflict
from ..models import NotificationKind, Vaccine, WaitlistEntry, WaitlistStatus
from ..patients import PatientContact
from .lookups import get_or_not_found
from .notifications import queue_for_record

logger = logging.getLogger(__name__)


def _fifo(qs):
    return qs.order_by("created_at", "id")


@transaction.atomic
def add_to_waitlist(vaccine: Vaccine, patient: PatientContact) -> WaitlistEntry:
    """Queue a patient for a vaccine.

    Raises:
        ValidationError: Invalid contact details
    """
    patient = patient.validate()
    entry = WaitlistEntry.objects.create(vaccine=vaccine, **patient.as_model_fields())
    position = WaitlistEntry.objects.filter(
        vaccine=vaccine,
        status=WaitlistStatus.WAITING,
        created_at__lte=entry.created_at,
    ).count()
    queue_for_record(
        NotificationKind.WAITLIST_JOINED,
        entry,
        payload={"vaccine": vaccine.name, "position": position},
        waitlist_entry=entry,
    )
    logger.info("Waitlist entry %s added for %s at position %d", entry.pk, vaccine, position)
    return entry


def get_waitlist_entry(entry_id) -> WaitlistEntry:
    return get_or_not_found(WaitlistEntry.objects.select_related("vaccine"), "WaitlistEntry", pk=entry_id)


def get_waiting_entries(vaccine: Vaccine = None, as_of: datetime = None):
    """Waiting entries in offer order.

    Args:
        vaccine: Restrict to one vaccine
        as_of: Only entries created at or before this instant
    """
    qs = WaitlistEntry.objects.filter(status=WaitlistStatus.WAITING).select_related("vaccine")
    if vaccine is not None:
        qs = qs.filter(vaccine=vaccine)
    if as_of is not None:
        qs = qs.filter(created_at__lte=as_of)
    return list(_fifo(qs))


def get_waitlist_entries(vaccine: Vaccine = None, status: str = None):
    """All entries regardless of status, oldest first."""
    qs = WaitlistEntry.objects.select_related("vaccine")
    if vaccine is not None:
        qs = qs.filter(vaccine=vaccine)
    if status is not None:
        qs = qs.filter(status=status)
    return list(_fifo(qs))


@transaction.atomic
def remove_from_waitlist(entry: WaitlistEntry, *, now: datetime = None) -> WaitlistEntry:
    """Take a patient off the waitlist. Removing twice is a no-op.

    Raises:
        StateConflict: The entry already turned into a booking
    """
    entry = get_or_not_found(WaitlistEntry.objects.select_for_update(), "WaitlistEntry", pk=entry.pk)
    if entry.status == WaitlistStatus.REMOVED:
        return entry
    if entry.status == WaitlistStatus.BOOKED:
        raise StateConflict(
            f"Waitlist entry {entry.pk} was already booked",
            from_state=entry.status,
            to_state=WaitlistStatus.REMOVED,
        )

    entry.status = WaitlistStatus.REMOVED
    entry.resolved_at = now or timezone.now()
    entry.save(update_fields=["status", "resolved_at", "updated_at"])
    logger.info("Waitlist entry %s removed", entry.pk)
    return entry


@transaction.atomic
def notify_next_waiting(vaccine: Vaccine, count: int = 1, *, now: datetime = None):
    """Offer freed capacity to the head of the queue.

    Returns:
        The entries that were notified, in FIFO order
    """
    if count < 1:
        return []

    now = now or timezone.now()
    entries = list(
        _fifo(
            WaitlistEntry.objects.select_for_update().filter(
                vaccine=vaccine, status=WaitlistStatus.WAITING
            )
        )[:count]
    )
    for entry in entries:
        entry.status = WaitlistStatus.NOTIFIED
        entry.notified_at = now
        entry.save(update_fields=["status", "notified_at", "updated_at"])
        queue_for_record(
            NotificationKind.WAITLIST_OFFER,
            entry,
            payload={"vaccine": vaccine.name, "waitlist_entry_id": str(entry.pk)},
            waitlist_entry=entry,
        )

    if entries:
        logger.info("Notified %d waitlist entries for %s", len(entries), vaccine)
    return entries


@transaction.atomic
def mark_waitlist_booked(entry: WaitlistEntry, *, now: datetime = None) -> WaitlistEntry:
    """Close an entry whose patient got a booking.

    Raises:
        StateConflict: The entry was removed
    """
    entry = get_or_not_found(WaitlistEntry.objects.select_for_update(), "WaitlistEntry", pk=entry.pk)
    if entry.status == WaitlistStatus.BOOKED:
        return entry
    if entry.status == WaitlistStatus.REMOVED:
        raise StateConflict(
            f"Waitlist entry {entry.pk} was removed",
            from_state=entry.status,
            to_state=WaitlistStatus.BOOKED,
        )

    entry.status = WaitlistStatus.BOOKED
    entry.resolved_at = now or timezone.now()
    entry.save(update_fields=["status", "resolved_at", "updated_at"])
    return entry
