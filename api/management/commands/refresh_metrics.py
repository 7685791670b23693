from django.core.management.base import BaseCommand
from api.models import Startup
from api.services.founders import sync_all_founders
from api.services.startups import metrics_are_stale, refresh_startup_metrics


class Command(BaseCommand):
    help = 'Pull Stripe metrics for startups and store them (runs inline, no Celery needed).'

    def add_arguments(self, parser):
        parser.add_argument('--slug', type=str, help='Only refresh the startup with this slug')
        parser.add_argument('--stale-only', action='store_true', help='Skip startups refreshed within TRUSTMRR_METRICS_MAX_AGE')
        parser.add_argument('--sync-founders', action='store_true', help='Also refresh founder X profiles')

    def handle(self, *args, **options):
        qs = Startup.objects.order_by('pk')
        if options.get('slug'):
            qs = qs.filter(slug=options['slug'])
        refreshed = failed = 0
        for startup in qs:
            if options.get('stale_only') and not metrics_are_stale(startup):
                continue
            if refresh_startup_metrics(startup) is None:
                failed += 1
                self.stderr.write(f'Metrics unavailable for {startup.slug}')
            else:
                refreshed += 1
        self.stdout.write(self.style.SUCCESS(f'Refreshed {refreshed} startup(s), {failed} failed'))

        if options.get('sync_founders'):
            synced, total = sync_all_founders()
            self.stdout.write(self.style.SUCCESS(f'Synced {synced} of {total} founder(s)'))
