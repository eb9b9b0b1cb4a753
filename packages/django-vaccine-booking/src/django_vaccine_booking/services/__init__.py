"""django-vaccine-booking services.

Re-exports all services for convenient importing.
"""

from .bookings import (
    CancellationResult,
    book_open_pool,
    book_pool_member,
    book_slot,
    cancel_booking,
    cancel_booking_by_token,
    complete_booking,
    create_booking,
    get_booking,
    get_booking_by_token,
    get_bookings,
)
from .calendar import (
    add_clinic_day,
    create_clinic_day,
    delete_clinic_day,
    get_available_clinic_days,
    get_clinic_day,
    get_clinic_day_for_date,
    get_clinic_days,
    parse_windows,
    update_clinic_day,
)
from .catalog import (
    adjust_stock,
    allocate_stock,
    available,
    create_vaccine,
    get_active_vaccines,
    get_stock,
    get_stock_by_vaccine_id,
    get_vaccine,
    get_vaccines,
    release_stock,
    update_stock,
    update_vaccine,
)
from .dashboard import DashboardStats, get_dashboard_stats
from .intake import IntakeOutcome, IntakeRoute, request_vaccination
from .notifications import (
    get_queued_notifications,
    mark_dispatched,
    mark_failed,
    queue_notification,
)
from .pools import (
    add_pool_member,
    complete_pool,
    confirmed_member_count,
    create_pool,
    expire_unresponsive_members,
    get_active_pool,
    get_member_by_token,
    get_or_create_active_pool,
    get_pool,
    get_pool_members,
    get_pool_members_by_pool,
    get_pools,
    get_unresponsive_members,
    has_held_booking,
    is_past_deadline,
    join_pool,
    mark_pool_full,
    open_pool,
    refresh_pool_capacity,
    update_pool_member_status,
    update_pool_status,
)
from .seeding import (
    SeedResult,
    get_pharmacy_settings,
    seed_defaults,
    update_pharmacy_settings,
)
from .waitlist import (
    add_to_waitlist,
    get_waiting_entries,
    get_waitlist_entries,
    get_waitlist_entry,
    mark_waitlist_booked,
    notify_next_waiting,
    remove_from_waitlist,
)

__all__ = [
    # Catalog & stock
    "adjust_stock",
    "allocate_stock",
    "available",
    "create_vaccine",
    "get_active_vaccines",
    "get_stock",
    "get_stock_by_vaccine_id",
    "get_vaccine",
    "get_vaccines",
    "release_stock",
    "update_stock",
    "update_vaccine",
    # Clinic calendar
    "add_clinic_day",
    "create_clinic_day",
    "delete_clinic_day",
    "get_available_clinic_days",
    "get_clinic_day",
    "get_clinic_day_for_date",
    "get_clinic_days",
    "parse_windows",
    "update_clinic_day",
    # Pools
    "add_pool_member",
    "complete_pool",
    "confirmed_member_count",
    "create_pool",
    "expire_unresponsive_members",
    "get_active_pool",
    "get_member_by_token",
    "get_or_create_active_pool",
    "get_pool",
    "get_pool_members",
    "get_pool_members_by_pool",
    "get_pools",
    "get_unresponsive_members",
    "has_held_booking",
    "is_past_deadline",
    "join_pool",
    "mark_pool_full",
    "open_pool",
    "refresh_pool_capacity",
    "update_pool_member_status",
    "update_pool_status",
    # Bookings
    "CancellationResult",
    "book_open_pool",
    "book_pool_member",
    "book_slot",
    "cancel_booking",
    "cancel_booking_by_token",
    "complete_booking",
    "create_booking",
    "get_booking",
    "get_booking_by_token",
    "get_bookings",
    # Waitlist
    "add_to_waitlist",
    "get_waiting_entries",
    "get_waitlist_entries",
    "get_waitlist_entry",
    "mark_waitlist_booked",
    "notify_next_waiting",
    "remove_from_waitlist",
    # Dashboard
    "DashboardStats",
    "get_dashboard_stats",
    # Intake
    "IntakeOutcome",
    "IntakeRoute",
    "request_vaccination",
    # Notification outbox
    "get_queued_notifications",
    "mark_dispatched",
    "mark_failed",
    "queue_notification",
    # Settings & seeding
    "SeedResult",
    "get_pharmacy_settings",
    "seed_defaults",
    "update_pharmacy_settings",
]
