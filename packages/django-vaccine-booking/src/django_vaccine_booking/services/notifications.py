"""Notification outbox.

The engine never sends anything itself. Services call queue_notification()
inside their own transaction, so a notification exists if and only if the
state change that caused it was committed. A dispatcher running outside
the engine reads get_queued_notifications() and reports back.
"""

import logging

from django.db import transaction
from django.utils import timezone

from ..models import Notification, NotificationStatus

logger = logging.getLogger(__name__)


def queue_notification(
    kind: str,
    *,
    name: str = "",
    email: str = "",
    phone: str = "",
    payload: dict = None,
    booking=None,
    pool_member=None,
    waitlist_entry=None,
) -> Notification:
    """Record that a notification should be sent.

    Args:
        kind: A NotificationKind value
        name: Recipient display name
        email: Recipient email (may be blank)
        phone: Recipient phone (may be blank)
        payload: JSON-serialisable context for the message template
        booking: Booking that caused the notification, if any
        pool_member: PoolMember that caused the notification, if any
        waitlist_entry: WaitlistEntry that caused the notification, if any

    Returns:
        The queued Notification
    """
    return Notification.objects.create(
        kind=kind,
        recipient_name=name,
        recipient_email=email,
        recipient_phone=phone,
        payload=payload or {},
        booking=booking,
        pool_member=pool_member,
        waitlist_entry=waitlist_entry,
    )


def queue_for_record(kind: str, record, payload: dict = None, **links) -> Notification:
    """Queue a notification addressed to a PatientContactModel row."""
    return queue_notification(
        kind,
        name=record.patient_name,
        email=record.patient_email,
        phone=record.patient_phone,
        payload=payload,
        **links,
    )


def get_queued_notifications(limit: int = None):
    """Queued notifications, oldest first."""
    qs = Notification.objects.filter(status=NotificationStatus.QUEUED).order_by("created_at")
    if limit is not None:
        qs = qs[:limit]
    return list(qs)


@transaction.atomic
def mark_dispatched(notification: Notification) -> Notification:
    """Record successful delivery."""
    notification.status = NotificationStatus.DISPATCHED
    notification.dispatched_at = timezone.now()
    notification.last_error = ""
    notification.save(update_fields=["status", "dispatched_at", "last_error", "updated_at"])
    return notification


@transaction.atomic
def mark_failed(notification: Notification, error: str) -> Notification:
    """Record a delivery failure reported by the dispatcher."""
    logger.warning("Notification %s (%s) failed: %s", notification.pk, notification.kind, error)
    notification.status = NotificationStatus.FAILED
    notification.last_error = error
    notification.save(update_fields=["status", "last_error", "updated_at"])
    return notification
