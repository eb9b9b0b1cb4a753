"""Catalog & stock services.

Vaccines are created together with their Stock row. Stock counters are
only changed here (and by bookings through allocate_stock/release_stock),
always under a row lock or a conditional UPDATE so that
0 <= allocated_stock <= total_stock holds under concurrent requests.
"""

import logging

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from ..exceptions import CapacityExceeded, StateConflict, ValidationError
from ..models import Stock, Vaccine, VaccineType
from .lookups import get_or_not_found

logger = logging.getLogger(__name__)


# =============================================================================
# Vaccines
# =============================================================================


def _validate_packaging(vaccine_type: str, doses_per_vial: int) -> int:
    """Return the effective doses_per_vial for a vaccine type."""
    if vaccine_type not in VaccineType.values:
        raise ValidationError(f"Unknown vaccine type: {vaccine_type}", field="vaccine_type")
    if vaccine_type == VaccineType.PREFILLED:
        return 1
    if doses_per_vial is None or doses_per_vial < 2:
        raise ValidationError(
            "Vial vaccines need at least 2 doses per vial", field="doses_per_vial"
        )
    return doses_per_vial


@transaction.atomic
def create_vaccine(
    name: str,
    vaccine_type: str,
    doses_per_vial: int = 1,
    *,
    is_active: bool = True,
    total_stock: int = 0,
) -> Vaccine:
    """Create a vaccine and its stock counters.

    Args:
        name: Display name
        vaccine_type: VaccineType value
        doses_per_vial: Doses per vial (ignored and forced to 1 for pre-filled)
        is_active: Whether patients can pick the vaccine
        total_stock: Initial doses on the shelf

    Returns:
        The created Vaccine (with vaccine.stock populated)

    Raises:
        ValidationError: Empty name, unknown type, bad dose count or stock
    """
    name = (name or "").strip()
    if not name:
        raise ValidationError("Vaccine name is required", field="name")
    doses_per_vial = _validate_packaging(vaccine_type, doses_per_vial)
    if total_stock < 0:
        raise ValidationError("Initial stock cannot be negative", field="total_stock")

    vaccine = Vaccine.objects.create(
        name=name,
        vaccine_type=vaccine_type,
        doses_per_vial=doses_per_vial,
        is_active=is_active,
    )
    Stock.objects.create(vaccine=vaccine, total_stock=total_stock)
    return vaccine


@transaction.atomic
def update_vaccine(
    vaccine: Vaccine,
    *,
    name: str = None,
    is_active: bool = None,
    vaccine_type: str = None,
    doses_per_vial: int = None,
) -> Vaccine:
    """Update a vaccine.

    name and is_active can always change. vaccine_type and doses_per_vial
    are frozen once any pool, clinic day or booking references the vaccine.

    Raises:
        ValidationError: Empty name or invalid packaging
        StateConflict: Changing packaging of a referenced vaccine
    """
    vaccine = Vaccine.objects.select_for_update().get(pk=vaccine.pk)
    update_fields = []

    if name is not None:
        name = name.strip()
        if not name:
            raise ValidationError("Vaccine name is required", field="name")
        vaccine.name = name
        update_fields.append("name")

    if is_active is not None:
        vaccine.is_active = is_active
        update_fields.append("is_active")

    new_type = vaccine_type if vaccine_type is not None else vaccine.vaccine_type
    new_doses = doses_per_vial if doses_per_vial is not None else vaccine.doses_per_vial
    if new_type != vaccine.vaccine_type or new_doses != vaccine.doses_per_vial:
        if vaccine.is_referenced():
            raise StateConflict(
                f"Cannot change packaging of {vaccine}: it is already in use"
            )
        vaccine.doses_per_vial = _validate_packaging(new_type, new_doses)
        vaccine.vaccine_type = new_type
        update_fields.extend(["vaccine_type", "doses_per_vial"])

    if update_fields:
        vaccine.save(update_fields=update_fields + ["updated_at"])
        logger.info("Vaccine %s updated: %s", vaccine.pk, ", ".join(update_fields))
    return vaccine


def get_vaccines():
    """All vaccines in creation order."""
    return list(Vaccine.objects.order_by("created_at"))


def get_active_vaccines():
    """Vaccines patients can currently choose, in creation order."""
    return list(Vaccine.objects.filter(is_active=True).order_by("created_at"))


def get_vaccine(vaccine_id) -> Vaccine:
    """Raises NotFound for unknown ids."""
    return get_or_not_found(Vaccine.objects.all(), "Vaccine", pk=vaccine_id)


# =============================================================================
# Stock
# =============================================================================


def get_stock(vaccine: Vaccine) -> Stock:
    """Stock counters for a vaccine. Raises NotFound if missing."""
    return get_or_not_found(Stock.objects.all(), "Stock", vaccine=vaccine)


def get_stock_by_vaccine_id(vaccine_id) -> Stock:
    return get_or_not_found(Stock.objects.all(), "Stock", vaccine_id=vaccine_id)


def available(vaccine: Vaccine) -> int:
    """Doses on the shelf not yet committed: total_stock - allocated_stock."""
    return get_stock(vaccine).available


@transaction.atomic
def adjust_stock(vaccine: Vaccine, delta: int) -> Stock:
    """Add or remove doses from the shelf.

    total_stock is floored at zero. Removing doses that are already
    allocated is refused rather than clamped.

    Raises:
        NotFound: Vaccine has no stock row
        CapacityExceeded: Result would drop below allocated_stock
    """
    stock = get_or_not_found(Stock.objects.select_for_update(), "Stock", vaccine=vaccine)

    new_total = max(0, stock.total_stock + delta)
    if new_total < stock.allocated_stock:
        raise CapacityExceeded(
            f"Cannot reduce {vaccine} stock to {new_total}: "
            f"{stock.allocated_stock} doses are allocated",
            entity="stock",
            entity_id=stock.pk,
        )

    stock.total_stock = new_total
    stock.save(update_fields=["total_stock", "updated_at"])
    logger.info("Stock for %s adjusted by %+d to %d", vaccine, delta, new_total)
    return stock


# Name used by the booking front end
update_stock = adjust_stock


def allocate_stock(vaccine: Vaccine, doses: int = 1) -> None:
    """Commit doses to a booking.

    A single conditional UPDATE acts as an atomic compare-and-increment.
    Callers run it inside their own transaction.

    Raises:
        ValidationError: doses < 1
        NotFound: Vaccine has no stock row
        CapacityExceeded: Fewer than `doses` doses available
    """
    if doses < 1:
        raise ValidationError("Doses to allocate must be positive", field="doses")

    updated = Stock.objects.filter(
        vaccine=vaccine,
        allocated_stock__lte=F("total_stock") - doses,
    ).update(allocated_stock=F("allocated_stock") + doses, updated_at=timezone.now())

    if not updated:
        stock = get_stock(vaccine)
        raise CapacityExceeded(
            f"Only {stock.available} doses of {vaccine} available, {doses} requested",
            entity="stock",
            entity_id=stock.pk,
        )


def release_stock(vaccine: Vaccine, doses: int = 1) -> bool:
    """Return committed doses to the available pool.

    Returns:
        True if the zero floor was hit, which means the counters had
        drifted. This is logged as a data-consistency warning.
    """
    updated = Stock.objects.filter(
        vaccine=vaccine,
        allocated_stock__gte=doses,
    ).update(allocated_stock=F("allocated_stock") - doses, updated_at=timezone.now())

    if updated:
        return False

    get_stock(vaccine)
    Stock.objects.filter(vaccine=vaccine).update(allocated_stock=0, updated_at=timezone.now())
    logger.warning(
        "Data consistency: releasing %d doses of %s hit the zero floor",
        doses,
        vaccine,
    )
    return True
