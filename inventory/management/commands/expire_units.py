from django.core.management.base import BaseCommand

from inventory.services import expire_stale


class Command(BaseCommand):
    help = 'Mark available or reserved blood units past their expiration date as expired'

    def handle(self, *args, **options):
        expired = expire_stale()
        for serial_number in expired:
            self.stdout.write(f'Expired: {serial_number}')
        self.stdout.write(self.style.SUCCESS(f'{len(expired)} unit(s) expired'))
