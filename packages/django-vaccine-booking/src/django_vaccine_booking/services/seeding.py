"""Pharmacy settings and one-time seeding of default rows."""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta

from django.db import transaction
from django.utils import timezone

from ..conf import get_pharmacy_defaults
from ..exceptions import ValidationError
from ..models import PharmacySettings, VaccineType
from .calendar import create_clinic_day
from .catalog import create_vaccine
from .pools import create_pool

logger = logging.getLogger(__name__)


DEFAULT_VACCINES = [
    {"key": "pfizer-vial", "name": "Pfizer COVID-19 (Vial)", "vaccine_type": VaccineType.VIAL,
     "doses_per_vial": 6, "total_stock": 60},
    {"key": "moderna-vial", "name": "Moderna COVID-19 (Vial)", "vaccine_type": VaccineType.VIAL,
     "doses_per_vial": 5, "total_stock": 40},
    {"key": "flu-standard", "name": "Flu Standard Dose", "vaccine_type": VaccineType.PREFILLED,
     "doses_per_vial": 1, "total_stock": 100},
    {"key": "flu-high-dose", "name": "Flu High Dose (65+)", "vaccine_type": VaccineType.PREFILLED,
     "doses_per_vial": 1, "total_stock": 30},
    {"key": "pfizer-prefilled", "name": "Pfizer COVID-19 (Pre-filled)",
     "vaccine_type": VaccineType.PREFILLED, "doses_per_vial": 1, "total_stock": 50},
]

# (vaccine key, days from today, capacity, walk-in windows)
DEFAULT_CLINIC_DAYS = [
    ("flu-standard", 2, 10, [("09:00", "12:00"), ("14:00", "17:00")]),
    ("flu-high-dose", 3, 8, [("10:00", "14:00")]),
    ("pfizer-prefilled", 4, 12, [("09:00", "11:00"), ("15:00", "18:00")]),
]

PHARMACY_FIELDS = ("pharmacy_name", "pharmacy_email", "pharmacy_phone", "pharmacy_address")


@dataclass
class SeedResult:
    """What seed_defaults() did."""

    seeded: bool
    vaccines: list = field(default_factory=list)
    clinic_days: list = field(default_factory=list)
    pools: list = field(default_factory=list)


def get_pharmacy_settings() -> PharmacySettings:
    return PharmacySettings.get_instance()


@transaction.atomic
def update_pharmacy_settings(**fields) -> PharmacySettings:
    """Update pharmacy contact details.

    Raises:
        ValidationError: Unknown field name
    """
    unknown = set(fields) - set(PHARMACY_FIELDS)
    if unknown:
        raise ValidationError(
            f"Unknown pharmacy setting(s): {', '.join(sorted(unknown))}",
            field=sorted(unknown)[0],
        )

    PharmacySettings.get_instance()
    settings_obj = PharmacySettings.objects.select_for_update().get(pk=1)
    for name, value in fields.items():
        setattr(settings_obj, name, value or "")
    settings_obj.save()
    return settings_obj


@transaction.atomic
def seed_defaults(today: date = None) -> SeedResult:
    """Create the default catalog once.

    Guarded by PharmacySettings.initialized under a row lock, so running
    it again (or concurrently) is a no-op.

    Args:
        today: Base date for the sample clinic days

    Returns:
        SeedResult with seeded=False when the data was already there
    """
    PharmacySettings.get_instance()
    settings_obj = PharmacySettings.objects.select_for_update().get(pk=1)
    if settings_obj.initialized:
        logger.warning("Default data already seeded on %s, skipping", settings_obj.initialized_at)
        return SeedResult(seeded=False)

    today = today or timezone.localdate()
    result = SeedResult(seeded=True)

    for name, value in get_pharmacy_defaults().items():
        if name in PHARMACY_FIELDS and not getattr(settings_obj, name):
            setattr(settings_obj, name, value)

    by_key = {}
    for entry in DEFAULT_VACCINES:
        vaccine = create_vaccine(
            entry["name"],
            entry["vaccine_type"],
            entry["doses_per_vial"],
            total_stock=entry["total_stock"],
        )
        by_key[entry["key"]] = vaccine
        result.vaccines.append(vaccine)

    for key, offset, capacity, windows in DEFAULT_CLINIC_DAYS:
        result.clinic_days.append(
            create_clinic_day(by_key[key], today + timedelta(days=offset), capacity, windows)
        )

    for vaccine in result.vaccines:
        if vaccine.is_vial:
            result.pools.append(create_pool(vaccine))

    settings_obj.initialized = True
    settings_obj.initialized_at = timezone.now()
    settings_obj.save()

    logger.info(
        "Seeded %d vaccines, %d clinic days and %d pools",
        len(result.vaccines),
        len(result.clinic_days),
        len(result.pools),
    )
    return result
