"""Management command to expire silent pool members after their deadline."""

from django.core.management.base import BaseCommand

from django_vaccine_booking.models import PoolStatus
from django_vaccine_booking.services import (
    expire_unresponsive_members,
    get_unresponsive_members,
)


class Command(BaseCommand):
    help = 'Mark pending members of open pools past their confirmation deadline as no_response'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show how many members would be marked without changing anything'
        )

    def handle(self, *args, **options):
        if options['dry_run']:
            qs = get_unresponsive_members()
            count = qs.count()
            self.stdout.write(f'Would mark {count} pool members as no_response')
            pools = qs.order_by().values_list('pool_id', flat=True).distinct()
            for pool_id in pools:
                pool_count = qs.filter(pool_id=pool_id).count()
                self.stdout.write(f'  - pool {pool_id} ({PoolStatus.OPEN.label}): {pool_count}')
            return

        count = expire_unresponsive_members()
        self.stdout.write(
            self.style.SUCCESS(f'Marked {count} pool members as no_response')
        )
