"""Django settings for django-vaccine-booking tests."""

import os
import tempfile

SECRET_KEY = "test-secret-key-not-for-production"

DEBUG = True

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django_vaccine_booking",
]

# File-backed so threaded tests share one database. IMMEDIATE makes each
# transaction take the write lock up front; writers queue on the timeout.
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.path.join(tempfile.gettempdir(), "vaccine_booking.sqlite3"),
        "OPTIONS": {
            "timeout": 20,
            "transaction_mode": "IMMEDIATE",
        },
        "TEST": {
            "NAME": os.path.join(tempfile.gettempdir(), "test_vaccine_booking.sqlite3"),
        },
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

USE_TZ = True

TIME_ZONE = "America/Toronto"

VACCINE_BOOKING_CONFIRMATION_WINDOW_HOURS = 24
