"""Tests for catalog and stock services."""

import logging
from datetime import timedelta

import pytest

from django_vaccine_booking.exceptions import (
    CapacityExceeded,
    NotFound,
    StateConflict,
    ValidationError,
)
from django_vaccine_booking.models import Stock, Vaccine, VaccineType
from django_vaccine_booking.services import (
    adjust_stock,
    allocate_stock,
    available,
    create_clinic_day,
    create_vaccine,
    get_active_vaccines,
    get_stock,
    get_stock_by_vaccine_id,
    get_vaccine,
    release_stock,
    update_stock,
    update_vaccine,
)


@pytest.mark.django_db
class TestCreateVaccine:
    """Tests for create_vaccine service."""

    def test_creates_zeroed_stock_row(self):
        """A new vaccine gets a stock row with no doses."""
        vaccine = create_vaccine("Flu Standard Dose", VaccineType.PREFILLED)

        stock = Stock.objects.get(vaccine=vaccine)
        assert stock.total_stock == 0
        assert stock.allocated_stock == 0

    def test_prefilled_forces_single_dose(self):
        """Pre-filled vaccines always hold one dose per unit."""
        vaccine = create_vaccine("Flu High Dose (65+)", VaccineType.PREFILLED, doses_per_vial=6)

        assert vaccine.doses_per_vial == 1
        assert not vaccine.is_vial

    def test_vial_requires_multiple_doses(self):
        """Vial vaccines need at least two doses per vial."""
        with pytest.raises(ValidationError) as exc_info:
            create_vaccine("Pfizer COVID-19 (Vial)", VaccineType.VIAL, doses_per_vial=1)

        assert exc_info.value.field == "doses_per_vial"
        assert not Vaccine.objects.exists()

    def test_rejects_empty_name(self):
        """Name is required."""
        with pytest.raises(ValidationError) as exc_info:
            create_vaccine("   ", VaccineType.PREFILLED)

        assert exc_info.value.field == "name"

    def test_rejects_unknown_type(self):
        """Only vial and prefilled are valid types."""
        with pytest.raises(ValidationError):
            create_vaccine("Mystery", "nasal")

    def test_initial_stock(self):
        """Initial shelf stock can be given at creation."""
        vaccine = create_vaccine("Flu Standard Dose", VaccineType.PREFILLED, total_stock=25)

        assert available(vaccine) == 25


@pytest.mark.django_db
class TestVaccineQueries:
    """Tests for vaccine lookups."""

    def test_active_vaccines_in_creation_order(self):
        """Inactive vaccines are excluded and order follows creation."""
        first = create_vaccine("First", VaccineType.PREFILLED)
        create_vaccine("Hidden", VaccineType.PREFILLED, is_active=False)
        third = create_vaccine("Third", VaccineType.VIAL, 6)

        assert get_active_vaccines() == [first, third]

    def test_get_vaccine_not_found(self):
        """Unknown and malformed ids raise NotFound."""
        with pytest.raises(NotFound):
            get_vaccine("00000000-0000-0000-0000-000000000000")
        with pytest.raises(NotFound):
            get_vaccine("not-a-uuid")

    def test_get_stock_by_vaccine_id(self, prefilled):
        """Stock can be looked up by vaccine id."""
        assert get_stock_by_vaccine_id(prefilled.pk) == get_stock(prefilled)


@pytest.mark.django_db
class TestUpdateVaccine:
    """Tests for update_vaccine service."""

    def test_packaging_editable_before_use(self, vial):
        """An unreferenced vaccine can change packaging."""
        updated = update_vaccine(vial, doses_per_vial=6)

        assert updated.doses_per_vial == 6

    def test_packaging_frozen_once_referenced(self, prefilled, today):
        """A clinic day freezes the vaccine type."""
        create_clinic_day(prefilled, today + timedelta(days=1), 3, [("09:00", "10:00")])

        with pytest.raises(StateConflict):
            update_vaccine(prefilled, vaccine_type=VaccineType.VIAL, doses_per_vial=6)

        prefilled.refresh_from_db()
        assert prefilled.vaccine_type == VaccineType.PREFILLED

    def test_name_and_active_flag_stay_editable(self, prefilled, clinic_day):
        """Name and is_active can change on a referenced vaccine."""
        updated = update_vaccine(prefilled, name="Flu Standard", is_active=False)

        assert updated.name == "Flu Standard"
        assert updated.is_active is False


@pytest.mark.django_db
class TestAdjustStock:
    """Tests for adjust_stock service."""

    def test_adds_doses(self, prefilled):
        """Positive delta adds to the shelf."""
        stock = adjust_stock(prefilled, 5)

        assert stock.total_stock == 15

    def test_floors_total_at_zero(self, prefilled):
        """Removing more than the shelf holds clamps to zero."""
        stock = adjust_stock(prefilled, -50)

        assert stock.total_stock == 0
        assert available(prefilled) == 0

    def test_refuses_to_drop_below_allocated(self, prefilled):
        """Allocated doses cannot be removed from the shelf."""
        allocate_stock(prefilled, 4)

        with pytest.raises(CapacityExceeded):
            adjust_stock(prefilled, -8)

        stock = get_stock(prefilled)
        assert stock.total_stock == 10
        assert stock.allocated_stock == 4

    def test_update_stock_alias(self):
        """update_stock is the front end name for adjust_stock."""
        assert update_stock is adjust_stock

    def test_available_never_negative(self, prefilled):
        """No sequence of adjustments and allocations makes availability negative."""
        operations = [
            ("allocate", 3),
            ("adjust", -20),
            ("allocate", 7),
            ("allocate", 1),
            ("adjust", 2),
            ("release", 2),
            ("adjust", -100),
            ("allocate", 4),
        ]
        for op, amount in operations:
            try:
                if op == "allocate":
                    allocate_stock(prefilled, amount)
                elif op == "release":
                    release_stock(prefilled, amount)
                else:
                    adjust_stock(prefilled, amount)
            except CapacityExceeded:
                pass

            stock = get_stock(prefilled)
            assert 0 <= stock.allocated_stock <= stock.total_stock
            assert available(prefilled) >= 0


@pytest.mark.django_db
class TestAllocateStock:
    """Tests for allocate_stock and release_stock."""

    def test_allocation_beyond_available_fails(self, prefilled):
        """Over-allocation raises instead of clamping."""
        allocate_stock(prefilled, 10)

        with pytest.raises(CapacityExceeded):
            allocate_stock(prefilled, 1)

        assert get_stock(prefilled).allocated_stock == 10

    def test_release_returns_doses(self, prefilled):
        """Releasing gives doses back."""
        allocate_stock(prefilled, 3)

        floor_hit = release_stock(prefilled)

        assert floor_hit is False
        assert get_stock(prefilled).allocated_stock == 2

    def test_release_floor_logs_warning(self, prefilled, caplog):
        """Releasing with nothing allocated floors at zero and warns."""
        with caplog.at_level(logging.WARNING, logger="django_vaccine_booking.services.catalog"):
            floor_hit = release_stock(prefilled)

        assert floor_hit is True
        assert get_stock(prefilled).allocated_stock == 0
        assert "Data consistency" in caplog.text
