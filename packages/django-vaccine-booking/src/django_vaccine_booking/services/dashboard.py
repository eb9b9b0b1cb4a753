"""Read-only operational statistics.

Everything is recomputed from current rows on each call.
"""

from dataclasses import asdict, dataclass
from datetime import date, datetime, time, timedelta

from django.db.models import Sum
from django.utils import timezone

from ..models import (
    Booking,
    BookingStatus,
    MemberStatus,
    Pool,
    PoolMember,
    Stock,
    WaitlistEntry,
    WaitlistStatus,
)


@dataclass(frozen=True)
class DashboardStats:
    """Snapshot shown on the pharmacy dashboard."""

    total_bookings: int
    today_bookings: int
    active_pools: int
    pending_members: int
    total_stock: int
    waitlist_count: int

    def as_dict(self) -> dict:
        return asdict(self)


def _local_day_bounds(day: date) -> tuple[datetime, datetime]:
    start = timezone.make_aware(datetime.combine(day, time.min))
    return start, start + timedelta(days=1)


def get_dashboard_stats(today: date = None) -> DashboardStats:
    """Compute dashboard statistics.

    Args:
        today: Override for the pharmacy's local date

    Returns:
        DashboardStats
    """
    today = today or timezone.localdate()
    start, end = _local_day_bounds(today)
    bookings = Booking.objects.exclude(status=BookingStatus.CANCELLED)

    return DashboardStats(
        total_bookings=bookings.count(),
        today_bookings=bookings.filter(created_at__gte=start, created_at__lt=end).count(),
        active_pools=Pool.objects.filter(status__in=Pool.ACTIVE_STATUSES).count(),
        pending_members=PoolMember.objects.filter(status=MemberStatus.PENDING).count(),
        total_stock=Stock.objects.aggregate(total=Sum("total_stock"))["total"] or 0,
        waitlist_count=WaitlistEntry.objects.filter(status=WaitlistStatus.WAITING).count(),
    )
