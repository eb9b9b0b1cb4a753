"""Pool allocator services.

A pool collects patients for one multi-dose vial vaccine so the vial is
only opened once enough people are committed.

State graph:

    filling -> open | completed
    open    -> full | completed
    full    -> completed
    completed (terminal)

At most one pool per vaccine may be filling or open. The check happens
under a lock on the vaccine row and is backed by the
pool_one_active_per_vaccine unique constraint.
"""

import logging
from datetime import date, datetime

from django.db import IntegrityError, transaction
from django.utils import timezone

from ..conf import get_confirmation_window
from ..exceptions import StateConflict, ValidationError
from ..models import (
    BookingStatus,
    MemberStatus,
    NotificationKind,
    Pool,
    PoolMember,
    PoolStatus,
    Vaccine,
)
from ..patients import PatientContact
from ..tokens import generate_token
from .calendar import get_clinic_day_for_date
from .lookups import get_or_not_found
from .notifications import queue_for_record

logger = logging.getLogger(__name__)


POOL_TRANSITIONS = {
    PoolStatus.FILLING: {PoolStatus.OPEN, PoolStatus.COMPLETED},
    PoolStatus.OPEN: {PoolStatus.FULL, PoolStatus.COMPLETED},
    PoolStatus.FULL: {PoolStatus.COMPLETED},
    PoolStatus.COMPLETED: set(),
}

# Bookings that hold a dose of the vial
HELD_BOOKING_STATUSES = (BookingStatus.CONFIRMED, BookingStatus.COMPLETED)


# =============================================================================
# Pools
# =============================================================================


def get_active_pool(vaccine: Vaccine) -> Pool | None:
    """The filling or open pool for a vaccine, if any."""
    return (
        Pool.objects.filter(vaccine=vaccine, status__in=Pool.ACTIVE_STATUSES)
        .select_related("vaccine", "clinic_day")
        .first()
    )


def get_pool(pool_id) -> Pool:
    """Raises NotFound for unknown ids."""
    return get_or_not_found(Pool.objects.select_related("vaccine", "clinic_day"), "Pool", pk=pool_id)


def get_pools(vaccine: Vaccine = None, status: str = None):
    """Pools, newest first."""
    qs = Pool.objects.select_related("vaccine", "clinic_day")
    if vaccine is not None:
        qs = qs.filter(vaccine=vaccine)
    if status is not None:
        qs = qs.filter(status=status)
    return list(qs.order_by("-created_at"))


def _lock_vaccine(vaccine: Vaccine) -> Vaccine:
    return get_or_not_found(Vaccine.objects.select_for_update(), "Vaccine", pk=vaccine.pk)


@transaction.atomic
def create_pool(vaccine: Vaccine) -> Pool:
    """Start a new filling pool for a vial vaccine.

    Raises:
        ValidationError: Vaccine is not a vial vaccine
        StateConflict: The vaccine already has an active pool; reuse it
    """
    vaccine = _lock_vaccine(vaccine)
    if not vaccine.is_vial:
        raise ValidationError(f"{vaccine} is not a vial vaccine", field="vaccine")

    existing = get_active_pool(vaccine)
    if existing is not None:
        raise StateConflict(
            f"{vaccine} already has an active pool ({existing.pk})",
            from_state=existing.status,
        )

    try:
        with transaction.atomic():
            pool = Pool.objects.create(vaccine=vaccine)
    except IntegrityError as exc:
        raise StateConflict(f"{vaccine} already has an active pool") from exc

    logger.info("Pool %s created for %s", pool.pk, vaccine)
    return pool


@transaction.atomic
def get_or_create_active_pool(vaccine: Vaccine) -> Pool:
    """Reuse the active pool for a vaccine or start a new one."""
    locked = _lock_vaccine(vaccine)
    pool = get_active_pool(locked)
    if pool is not None:
        return pool
    return create_pool(locked)


def is_past_deadline(pool: Pool, now: datetime = None) -> bool:
    """Pure time comparison against the confirmation deadline."""
    return pool.is_past_deadline(now)


def _parse_proposed_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            pass
    raise ValidationError(f"Invalid proposed date: {value!r}", field="proposed_date")


@transaction.atomic
def update_pool_status(
    pool: Pool,
    status: str,
    proposed_date=None,
    *,
    now: datetime = None,
) -> Pool:
    """Move a pool along its state graph.

    Opening a pool sets the proposed date and the confirmation deadline,
    links the clinic day for that date when one exists and queues a
    pool_opened notification for every pending member.

    Args:
        pool: Pool to transition
        status: Target PoolStatus
        proposed_date: Required when opening (date or "YYYY-MM-DD")
        now: Override for the current time

    Returns:
        The updated Pool

    Raises:
        ValidationError: Unknown status, or opening without a proposed date
        StateConflict: Transition not allowed from the current state
    """
    if status not in PoolStatus.values:
        raise ValidationError(f"Unknown pool status: {status}", field="status")

    pool = get_or_not_found(Pool.objects.select_for_update(), "Pool", pk=pool.pk)
    from_status = pool.status
    if status not in POOL_TRANSITIONS[from_status]:
        raise StateConflict(
            f"Cannot move pool from '{from_status}' to '{status}'",
            from_state=from_status,
            to_state=status,
        )

    now = now or timezone.now()
    update_fields = ["status"]

    if status == PoolStatus.OPEN:
        if proposed_date is None:
            raise ValidationError("A proposed date is required to open a pool", field="proposed_date")
        proposed_date = _parse_proposed_date(proposed_date)
        if proposed_date < timezone.localdate(now):
            raise ValidationError(
                f"Proposed date {proposed_date} is in the past", field="proposed_date"
            )
        pool.proposed_date = proposed_date
        pool.opened_at = now
        pool.confirmation_deadline = now + get_confirmation_window()
        pool.clinic_day = get_clinic_day_for_date(pool.vaccine, proposed_date)
        update_fields += ["proposed_date", "opened_at", "confirmation_deadline", "clinic_day"]

    if status == PoolStatus.COMPLETED:
        pool.closed_at = now
        update_fields.append("closed_at")

    pool.status = status
    pool.save(update_fields=update_fields + ["updated_at"])

    if status == PoolStatus.OPEN:
        pending = pool.members.filter(status=MemberStatus.PENDING)
        for member in pending:
            queue_for_record(
                NotificationKind.POOL_OPENED,
                member,
                payload={
                    "pool_id": str(pool.pk),
                    "vaccine": pool.vaccine.name,
                    "proposed_date": pool.proposed_date.isoformat(),
                    "confirmation_deadline": pool.confirmation_deadline.isoformat(),
                    "confirmation_token": member.confirmation_token,
                },
                pool_member=member,
            )

    logger.info("Pool %s moved from %s to %s", pool.pk, from_status, status)
    return pool


def open_pool(pool: Pool, proposed_date, *, now: datetime = None) -> Pool:
    return update_pool_status(pool, PoolStatus.OPEN, proposed_date, now=now)


def mark_pool_full(pool: Pool) -> Pool:
    """Operator override for open -> full."""
    return update_pool_status(pool, PoolStatus.FULL)


def complete_pool(pool: Pool, *, now: datetime = None) -> Pool:
    return update_pool_status(pool, PoolStatus.COMPLETED, now=now)


@transaction.atomic
def refresh_pool_capacity(pool: Pool) -> Pool:
    """Move an open pool to full once its vial is spoken for.

    The vial is spoken for when members holding a booking reach
    doses_per_vial.
    """
    pool = get_or_not_found(
        Pool.objects.select_for_update().select_related("vaccine"), "Pool", pk=pool.pk
    )
    if pool.status != PoolStatus.OPEN:
        return pool

    confirmed = confirmed_member_count(pool)
    if confirmed >= pool.vaccine.doses_per_vial:
        pool.status = PoolStatus.FULL
        pool.save(update_fields=["status", "updated_at"])
        logger.info(
            "Pool %s is full: %d of %d doses confirmed",
            pool.pk,
            confirmed,
            pool.vaccine.doses_per_vial,
        )
    return pool


# =============================================================================
# Members
# =============================================================================


@transaction.atomic
def add_pool_member(pool: Pool, patient: PatientContact) -> PoolMember:
    """Add a patient to an active pool.

    Never rejects for capacity: pools may overflow while filling and the
    operator decides how to split them. Members joining an open pool are
    late joiners.

    Args:
        pool: Filling or open pool
        patient: Contact details, validated here

    Returns:
        The new pending PoolMember with a fresh confirmation token

    Raises:
        ValidationError: Invalid contact details
        StateConflict: Pool is full or completed
    """
    patient = patient.validate()
    pool = get_or_not_found(
        Pool.objects.select_for_update().select_related("vaccine"), "Pool", pk=pool.pk
    )
    if not pool.is_active:
        raise StateConflict(
            f"Pool {pool.pk} is {pool.status} and no longer accepts members",
            from_state=pool.status,
        )

    member = PoolMember.objects.create(
        pool=pool,
        is_original_member=pool.status == PoolStatus.FILLING,
        confirmation_token=generate_token(),
        **patient.as_model_fields(),
    )
    queue_for_record(
        NotificationKind.POOL_JOINED,
        member,
        payload={
            "pool_id": str(pool.pk),
            "vaccine": pool.vaccine.name,
            "pool_status": pool.status,
            "confirmation_token": member.confirmation_token,
        },
        pool_member=member,
    )
    logger.info(
        "%s member joined pool %s for %s",
        "Original" if member.is_original_member else "Late",
        pool.pk,
        pool.vaccine,
    )
    return member


@transaction.atomic
def join_pool(vaccine: Vaccine, patient: PatientContact) -> PoolMember:
    """Join the active pool for a vial vaccine, starting one if needed."""
    pool = get_or_create_active_pool(vaccine)
    return add_pool_member(pool, patient)


@transaction.atomic
def update_pool_member_status(
    member: PoolMember,
    status: str,
    *,
    now: datetime = None,
) -> PoolMember:
    """Record a member's response.

    Late responses after the confirmation deadline are still recorded;
    the deadline sweep decides what to do with silent members. The pool
    itself is not transitioned here; booking the member does that.

    Raises:
        ValidationError: Unknown status, or an attempt to reset to pending
        StateConflict: Moving a member away from confirmed while a booking
            still holds their dose
    """
    if status not in MemberStatus.values:
        raise ValidationError(f"Unknown member status: {status}", field="status")
    if status == MemberStatus.PENDING:
        raise ValidationError("A member cannot be reset to pending", field="status")

    now = now or timezone.now()
    member = get_or_not_found(
        PoolMember.objects.select_for_update().select_related("pool"),
        "PoolMember",
        pk=member.pk,
    )
    if member.pool.is_past_deadline(now):
        logger.info("Late response from member %s of pool %s", member.pk, member.pool_id)
    if status != MemberStatus.CONFIRMED and has_held_booking(member):
        raise StateConflict(
            f"Pool member {member.pk} holds a booking; cancel the booking first",
            from_state=member.status,
            to_state=status,
        )

    member.status = status
    member.responded_at = now
    member.save(update_fields=["status", "responded_at", "updated_at"])
    return member


def get_pool_members(pool: Pool):
    """Members of a pool in join order."""
    return list(PoolMember.objects.filter(pool=pool).order_by("joined_at", "created_at"))


# Name used by the booking front end
get_pool_members_by_pool = get_pool_members


def get_member_by_token(token: str) -> PoolMember:
    """Raises NotFound for unknown tokens."""
    return get_or_not_found(
        PoolMember.objects.select_related("pool", "pool__vaccine"),
        "PoolMember",
        confirmation_token=token,
    )


def has_held_booking(member: PoolMember) -> bool:
    """True while a confirmed or completed booking holds the member's dose."""
    return member.bookings.filter(status__in=HELD_BOOKING_STATUSES).exists()


def confirmed_member_count(pool: Pool) -> int:
    """Members whose dose is held by a pool booking."""
    return (
        PoolMember.objects.filter(pool=pool, bookings__status__in=HELD_BOOKING_STATUSES)
        .distinct()
        .count()
    )


# =============================================================================
# Deadline sweep
# =============================================================================


def get_unresponsive_members(now: datetime = None):
    """Pending members of open pools whose confirmation deadline has passed."""
    now = now or timezone.now()
    return PoolMember.objects.filter(
        status=MemberStatus.PENDING,
        pool__status=PoolStatus.OPEN,
        pool__confirmation_deadline__lt=now,
    )


@transaction.atomic
def expire_unresponsive_members(now: datetime = None) -> int:
    """Mark silent members of expired open pools as no_response.

    Called periodically by an external scheduler.

    Returns:
        Number of members marked
    """
    now = now or timezone.now()
    member_ids = list(
        get_unresponsive_members(now).select_for_update().values_list("pk", flat=True)
    )
    if not member_ids:
        return 0

    count = PoolMember.objects.filter(pk__in=member_ids, status=MemberStatus.PENDING).update(
        status=MemberStatus.NO_RESPONSE,
        updated_at=now,
    )
    logger.info("Deadline sweep marked %d pool members as no_response", count)
    return count
