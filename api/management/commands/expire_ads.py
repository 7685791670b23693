from django.core.management.base import BaseCommand
from api.services.ads import update_expired_ads


class Command(BaseCommand):
    help = 'Mark active ads past their expiry date as expired.'

    def handle(self, *args, **options):
        count = update_expired_ads()
        self.stdout.write(self.style.SUCCESS(f'Expired {count} ad(s)'))
