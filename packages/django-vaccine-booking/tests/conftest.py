"""Pytest configuration for django-vaccine-booking tests."""

from datetime import timedelta

import pytest
from django.utils import timezone


@pytest.fixture
def today():
    """The pharmacy's local date."""
    return timezone.localdate()


@pytest.fixture
def patient():
    """A valid patient contact."""
    from django_vaccine_booking.patients import PatientContact

    return PatientContact(name="Jane Doe", email="jane@example.com", phone="416-555-0101")


@pytest.fixture
def make_patient():
    """Factory for distinct patients."""
    from django_vaccine_booking.patients import PatientContact

    def _make(n):
        return PatientContact(name=f"Patient {n}", email=f"patient{n}@example.com")

    return _make


@pytest.fixture
def prefilled(db):
    """A pre-filled vaccine with 10 doses on the shelf."""
    from django_vaccine_booking.models import VaccineType
    from django_vaccine_booking.services import create_vaccine

    return create_vaccine("Flu Standard Dose", VaccineType.PREFILLED, total_stock=10)


@pytest.fixture
def vial(db):
    """A vial vaccine with 5 doses per vial and 40 doses on the shelf."""
    from django_vaccine_booking.models import VaccineType
    from django_vaccine_booking.services import create_vaccine

    return create_vaccine("Moderna COVID-19 (Vial)", VaccineType.VIAL, 5, total_stock=40)


@pytest.fixture
def clinic_day(prefilled, today):
    """A clinic day two days out with capacity 5."""
    from django_vaccine_booking.services import create_clinic_day

    return create_clinic_day(
        prefilled,
        today + timedelta(days=2),
        5,
        [("09:00", "12:00"), ("14:00", "17:00")],
    )


@pytest.fixture
def single_dose_day(prefilled, today):
    """A clinic day with capacity 1."""
    from django_vaccine_booking.services import create_clinic_day

    return create_clinic_day(prefilled, today + timedelta(days=1), 1, [("10:00", "11:00")])


@pytest.fixture
def vial_day(vial, today):
    """A clinic day for the vial vaccine three days out."""
    from django_vaccine_booking.services import create_clinic_day

    return create_clinic_day(vial, today + timedelta(days=3), 10, [("09:00", "17:00")])


@pytest.fixture
def open_pool(vial, vial_day, make_patient):
    """An open pool with three original members landing on vial_day."""
    from django_vaccine_booking.services import get_active_pool, join_pool
    from django_vaccine_booking.services import open_pool as do_open

    for n in range(3):
        join_pool(vial, make_patient(n))

    return do_open(get_active_pool(vial), vial_day.clinic_date)
