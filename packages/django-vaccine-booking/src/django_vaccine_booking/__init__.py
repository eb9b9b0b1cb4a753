"""Django Vaccine Booking - Pool-based vaccine allocation and slot booking.

Provides:
- Vaccine / Stock: catalog of vaccines and their dose counters
- ClinicDay / WalkInWindow: per-day dose capacity
- Pool / PoolMember: grouping of vial-type demand with a confirmation workflow
- Booking: committed appointments against clinic-day capacity
- WaitlistEntry: FIFO demand that cannot currently be satisfied
- Notification: outbox of notifications the engine wants sent

Usage:
    INSTALLED_APPS = [
        ...
        'django_vaccine_booking',
    ]

    from django_vaccine_booking.patients import PatientContact
    from django_vaccine_booking.services import request_vaccination

See conf.py for all configuration options.
"""

__version__ = "0.1.0"

__all__ = [
    "VaccineBookingError",
    "ValidationError",
    "CapacityExceeded",
    "NotFound",
    "StateConflict",
]


def __getattr__(name):
    """Lazy import exceptions to avoid AppRegistryNotReady errors."""
    if name in __all__:
        from . import exceptions

        return getattr(exceptions, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
