"""Tests for clinic calendar services."""

from datetime import time, timedelta

import pytest
from django.db.models import F

from django_vaccine_booking.exceptions import (
    CapacityExceeded,
    NotFound,
    StateConflict,
    ValidationError,
)
from django_vaccine_booking.models import ClinicDay, VaccineType
from django_vaccine_booking.services import (
    book_slot,
    create_clinic_day,
    create_vaccine,
    delete_clinic_day,
    get_available_clinic_days,
    get_clinic_day,
    get_clinic_day_for_date,
    get_clinic_days,
    update_clinic_day,
)


@pytest.mark.django_db
class TestCreateClinicDay:
    """Tests for create_clinic_day service."""

    def test_creates_day_with_windows(self, prefilled, today):
        """Windows given as strings are stored sorted by start time."""
        day = create_clinic_day(
            prefilled,
            today + timedelta(days=1),
            8,
            [("14:00", "17:00"), ("09:00", "12:00")],
        )

        windows = list(day.walk_in_windows.all())
        assert day.allocated_doses == 8
        assert day.booked_doses == 0
        assert [(w.start_time, w.end_time) for w in windows] == [
            (time(9, 0), time(12, 0)),
            (time(14, 0), time(17, 0)),
        ]

    def test_accepts_time_objects_and_iso_date(self, prefilled, today):
        """datetime.time windows and YYYY-MM-DD dates are accepted."""
        date_str = (today + timedelta(days=1)).isoformat()
        day = create_clinic_day(prefilled, date_str, 2, [(time(9, 0), time(10, 0))])

        assert day.clinic_date == today + timedelta(days=1)

    def test_touching_windows_are_allowed(self, prefilled, today):
        """A window may start exactly when the previous one ends."""
        day = create_clinic_day(
            prefilled, today, 4, [("09:00", "12:00"), ("12:00", "13:00")]
        )

        assert day.walk_in_windows.count() == 2

    def test_rejects_empty_windows(self, prefilled, today):
        with pytest.raises(ValidationError) as exc_info:
            create_clinic_day(prefilled, today, 5, [])

        assert exc_info.value.field == "windows"
        assert not ClinicDay.objects.exists()

    def test_rejects_window_ending_before_start(self, prefilled, today):
        with pytest.raises(ValidationError):
            create_clinic_day(prefilled, today, 5, [("12:00", "09:00")])

    def test_rejects_zero_length_window(self, prefilled, today):
        with pytest.raises(ValidationError):
            create_clinic_day(prefilled, today, 5, [("09:00", "09:00")])

    def test_rejects_overlapping_windows(self, prefilled, today):
        with pytest.raises(ValidationError):
            create_clinic_day(prefilled, today, 5, [("09:00", "12:00"), ("11:00", "13:00")])

    def test_rejects_capacity_below_one(self, prefilled, today):
        with pytest.raises(ValidationError) as exc_info:
            create_clinic_day(prefilled, today, 0, [("09:00", "12:00")])

        assert exc_info.value.field == "capacity"

    def test_rejects_malformed_time(self, prefilled, today):
        with pytest.raises(ValidationError):
            create_clinic_day(prefilled, today, 5, [("9am", "12:00")])

    def test_rejects_malformed_date(self, prefilled):
        with pytest.raises(ValidationError):
            create_clinic_day(prefilled, "next tuesday", 5, [("09:00", "12:00")])


@pytest.mark.django_db
class TestAvailableClinicDays:
    """Tests for get_available_clinic_days."""

    def test_filters_and_orders(self, prefilled, today):
        """Only active, upcoming days with capacity are returned, soonest first."""
        windows = [("09:00", "12:00")]
        later = create_clinic_day(prefilled, today + timedelta(days=5), 3, windows)
        sooner = create_clinic_day(prefilled, today, 3, windows)
        create_clinic_day(prefilled, today - timedelta(days=1), 3, windows)
        create_clinic_day(prefilled, today + timedelta(days=2), 3, windows, is_active=False)
        full = create_clinic_day(prefilled, today + timedelta(days=3), 3, windows)
        ClinicDay.objects.filter(pk=full.pk).update(booked_doses=F("allocated_doses"))
        other = create_vaccine("Flu High Dose (65+)", VaccineType.PREFILLED)
        create_clinic_day(other, today + timedelta(days=1), 3, windows)

        assert get_available_clinic_days(prefilled, today=today) == [sooner, later]

    def test_day_with_capacity_left_after_booking(self, single_dose_day, prefilled, patient, today):
        """A day drops out of the list once it is fully booked."""
        assert get_available_clinic_days(prefilled) == [single_dose_day]

        book_slot(prefilled, single_dose_day, patient)

        assert get_available_clinic_days(prefilled) == []


@pytest.mark.django_db
class TestClinicDayQueries:
    """Tests for clinic day lookups."""

    def test_get_clinic_day_for_date(self, prefilled, clinic_day):
        assert get_clinic_day_for_date(prefilled, clinic_day.clinic_date) == clinic_day
        assert get_clinic_day_for_date(prefilled, clinic_day.clinic_date + timedelta(days=1)) is None

    def test_get_clinic_days_by_vaccine(self, prefilled, vial, clinic_day, vial_day):
        assert get_clinic_days(prefilled) == [clinic_day]
        assert len(get_clinic_days()) == 2

    def test_get_clinic_day_not_found(self, db):
        with pytest.raises(NotFound):
            get_clinic_day("00000000-0000-0000-0000-000000000000")


@pytest.mark.django_db
class TestUpdateClinicDay:
    """Tests for update_clinic_day service."""

    def test_raise_capacity(self, clinic_day):
        day = update_clinic_day(clinic_day, allocated_doses=9)

        assert day.allocated_doses == 9

    def test_capacity_below_booked_fails(self, clinic_day, prefilled, make_patient):
        """Capacity cannot drop below doses already booked."""
        for n in range(3):
            book_slot(prefilled, clinic_day, make_patient(n))

        with pytest.raises(CapacityExceeded):
            update_clinic_day(clinic_day, allocated_doses=2)

        clinic_day.refresh_from_db()
        assert clinic_day.allocated_doses == 5

    def test_capacity_below_one_fails(self, clinic_day):
        with pytest.raises(ValidationError):
            update_clinic_day(clinic_day, allocated_doses=0)

    def test_deactivate(self, clinic_day):
        day = update_clinic_day(clinic_day, is_active=False)

        assert day.is_active is False


@pytest.mark.django_db
class TestDeleteClinicDay:
    """Tests for delete_clinic_day service."""

    def test_soft_deletes_upcoming_day(self, clinic_day):
        """Deleted days disappear from the default manager but are kept."""
        delete_clinic_day(clinic_day)

        assert not ClinicDay.objects.filter(pk=clinic_day.pk).exists()
        assert ClinicDay.all_objects.get(pk=clinic_day.pk).is_deleted

    def test_elapsed_day_is_rejected(self, prefilled, today):
        """Past days are kept for audit history."""
        past = create_clinic_day(prefilled, today - timedelta(days=1), 3, [("09:00", "10:00")])

        with pytest.raises(StateConflict):
            delete_clinic_day(past)

        assert ClinicDay.objects.filter(pk=past.pk).exists()

    def test_day_with_confirmed_bookings_is_rejected(self, clinic_day, prefilled, patient):
        book_slot(prefilled, clinic_day, patient)

        with pytest.raises(StateConflict):
            delete_clinic_day(clinic_day)
