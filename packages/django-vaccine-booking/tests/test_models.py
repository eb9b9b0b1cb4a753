"""Tests for model constraints and helpers."""

from datetime import timedelta

import pytest
from django.db import IntegrityError, transaction
from django.db.models import F

from django_vaccine_booking.exceptions import StateConflict
from django_vaccine_booking.models import (
    ClinicDay,
    PharmacySettings,
    Pool,
    PoolStatus,
    Stock,
    Vaccine,
    WalkInWindow,
)
from django_vaccine_booking.services import book_slot


@pytest.mark.django_db
class TestCapacityConstraints:
    """Database constraints back up the service-level checks."""

    def test_stock_cannot_be_over_allocated(self, prefilled):
        with pytest.raises(IntegrityError):
            with transaction.atomic():
                Stock.objects.filter(vaccine=prefilled).update(
                    allocated_stock=F("total_stock") + 1
                )

    def test_clinic_day_cannot_be_overbooked(self, clinic_day):
        with pytest.raises(IntegrityError):
            with transaction.atomic():
                ClinicDay.objects.filter(pk=clinic_day.pk).update(
                    booked_doses=F("allocated_doses") + 1
                )

    def test_clinic_day_capacity_must_be_positive(self, clinic_day):
        with pytest.raises(IntegrityError):
            with transaction.atomic():
                ClinicDay.objects.filter(pk=clinic_day.pk).update(allocated_doses=0)

    def test_window_must_start_before_end(self, clinic_day):
        window = clinic_day.walk_in_windows.first()

        with pytest.raises(IntegrityError):
            with transaction.atomic():
                WalkInWindow.objects.filter(pk=window.pk).update(end_time=F("start_time"))

    def test_one_active_pool_per_vaccine(self, vial):
        Pool.objects.create(vaccine=vial)

        with pytest.raises(IntegrityError):
            with transaction.atomic():
                Pool.objects.create(vaccine=vial, status=PoolStatus.OPEN)

    def test_completed_pools_do_not_count_as_active(self, vial):
        Pool.objects.create(vaccine=vial, status=PoolStatus.COMPLETED)
        Pool.objects.create(vaccine=vial, status=PoolStatus.FULL)

        Pool.objects.create(vaccine=vial)

        assert Pool.objects.filter(vaccine=vial).count() == 3


@pytest.mark.django_db
class TestSoftDelete:
    """Tests for the soft-delete managers."""

    def test_soft_deleted_rows_hidden_from_default_manager(self, prefilled):
        prefilled.soft_delete()

        assert prefilled.is_deleted
        assert not Vaccine.objects.filter(pk=prefilled.pk).exists()
        assert Vaccine.all_objects.filter(pk=prefilled.pk).exists()

    def test_restore(self, prefilled):
        prefilled.soft_delete()
        prefilled.restore()

        assert Vaccine.objects.filter(pk=prefilled.pk).exists()


@pytest.mark.django_db
class TestModelHelpers:
    """Tests for small model properties."""

    def test_stock_available(self, prefilled):
        stock = Stock.objects.get(vaccine=prefilled)

        assert stock.available == 10
        assert str(stock) == "Flu Standard Dose: 10/10"

    def test_clinic_day_remaining(self, prefilled, clinic_day, patient):
        book_slot(prefilled, clinic_day, patient)
        clinic_day.refresh_from_db()

        assert clinic_day.remaining_doses == 4
        assert clinic_day.has_capacity

    def test_clinic_day_elapsed(self, clinic_day, today):
        assert not clinic_day.is_elapsed(today)
        assert clinic_day.is_elapsed(today + timedelta(days=3))

    def test_window_str(self, clinic_day):
        assert [str(w) for w in clinic_day.walk_in_windows.all()] == ["09:00-12:00", "14:00-17:00"]

    def test_pool_without_deadline_is_never_past_it(self, vial):
        pool = Pool.objects.create(vaccine=vial)

        assert pool.is_active
        assert pool.is_past_deadline() is False

    def test_pool_past_deadline(self, open_pool):
        assert not open_pool.is_past_deadline()
        assert open_pool.is_past_deadline(open_pool.confirmation_deadline + timedelta(seconds=1))

    def test_booking_is_cancelled(self, prefilled, clinic_day, patient):
        from django_vaccine_booking.services import cancel_booking

        booking = book_slot(prefilled, clinic_day, patient)
        assert not booking.is_cancelled

        result = cancel_booking(booking)

        assert result.booking.is_cancelled

    def test_vaccine_is_referenced(self, prefilled, vial, clinic_day):
        assert prefilled.is_referenced()
        assert not vial.is_referenced()


@pytest.mark.django_db
class TestPharmacySettingsSingleton:
    """Tests for the PharmacySettings singleton."""

    def test_get_instance_creates_once(self):
        first = PharmacySettings.get_instance()
        second = PharmacySettings.get_instance()

        assert first.pk == second.pk == 1
        assert PharmacySettings.objects.count() == 1

    def test_save_forces_pk(self):
        obj = PharmacySettings(pharmacy_name="Other")
        obj.save()

        assert obj.pk == 1
        assert PharmacySettings.objects.count() == 1

    def test_cannot_delete(self):
        obj = PharmacySettings.get_instance()

        with pytest.raises(StateConflict):
            obj.delete()

        assert PharmacySettings.objects.filter(pk=1).exists()

    def test_initialized_defaults_false(self):
        obj = PharmacySettings.get_instance()

        assert obj.initialized is False
        assert obj.initialized_at is None
