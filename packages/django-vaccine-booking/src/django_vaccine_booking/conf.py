"""Django Vaccine Booking configuration.

All settings can be overridden in your Django settings.py.

Example:
    # settings.py
    VACCINE_BOOKING_CONFIRMATION_WINDOW_HOURS = 48
    VACCINE_BOOKING_TOKEN_BYTES = 32
"""

from datetime import timedelta

from django.conf import settings


DEFAULT_CONFIRMATION_WINDOW_HOURS = 24

DEFAULT_TOKEN_BYTES = 32

DEFAULT_PHARMACY = {
    "pharmacy_name": "Medixly Pharmacy",
    "pharmacy_email": "",
    "pharmacy_phone": "416-731-3400",
    "pharmacy_address": "10 Denarius Cres, Richmond Hill, Toronto, ON",
}


def get_setting(name: str, default=None):
    """Get a setting with VACCINE_BOOKING_ prefix.

    Read at call time so override_settings() is honoured.
    """
    return getattr(settings, f"VACCINE_BOOKING_{name}", default)


def get_confirmation_window() -> timedelta:
    """How long pool members have to respond once a pool is opened."""
    hours = get_setting("CONFIRMATION_WINDOW_HOURS", DEFAULT_CONFIRMATION_WINDOW_HOURS)
    return timedelta(hours=hours)


def get_token_bytes() -> int:
    """Entropy, in bytes, of confirmation and cancellation tokens."""
    return int(get_setting("TOKEN_BYTES", DEFAULT_TOKEN_BYTES))


def get_pharmacy_defaults() -> dict:
    """Default PharmacySettings values used when seeding."""
    defaults = dict(DEFAULT_PHARMACY)
    defaults.update(get_setting("PHARMACY_DEFAULTS", {}) or {})
    return defaults


# =============================================================================
# DEFAULT SETTINGS REFERENCE
# =============================================================================

# VACCINE_BOOKING_CONFIRMATION_WINDOW_HOURS = 24  # Pool response window
# VACCINE_BOOKING_TOKEN_BYTES = 32  # Bytes of entropy for link tokens
# VACCINE_BOOKING_PHARMACY_DEFAULTS = {"pharmacy_name": "..."}  # Seeded settings
