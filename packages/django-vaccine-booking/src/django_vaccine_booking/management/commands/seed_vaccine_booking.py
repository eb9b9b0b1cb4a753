"""Management command to seed the default vaccine catalog."""

from django.core.management.base import BaseCommand

from django_vaccine_booking.services import seed_defaults


class Command(BaseCommand):
    help = 'Create default vaccines, stock, clinic days and pools (runs once)'

    def handle(self, *args, **options):
        result = seed_defaults()

        if not result.seeded:
            self.stdout.write(self.style.WARNING('Already initialized, nothing seeded'))
            return

        for vaccine in result.vaccines:
            self.stdout.write(f'  - {vaccine.name} ({vaccine.vaccine_type})')
        self.stdout.write(
            self.style.SUCCESS(
                f'Seeded {len(result.vaccines)} vaccines, '
                f'{len(result.clinic_days)} clinic days and {len(result.pools)} pools'
            )
        )
