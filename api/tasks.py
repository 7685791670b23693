from __future__ import annotations
from celery import shared_task
from celery.utils.log import get_task_logger

from .models import Startup
from .services import startups as startup_service
from .services.ads import update_expired_ads
from .services.founders import sync_all_founders
from .stripe_client import MetricsUnavailable

logger = get_task_logger(__name__)


@shared_task(bind=True, autoretry_for=(MetricsUnavailable,), retry_backoff=True, retry_kwargs={'max_retries': 3})
def refresh_startup_metrics_task(self, startup_id: int) -> bool:
    """Pull and store Stripe metrics for one startup.

    A failed pull is recorded on the startup and then retried up to 3 times
    with exponential backoff. Returns True when metrics were stored.
    """
    try:
        startup = Startup.objects.get(pk=startup_id)
    except Startup.DoesNotExist:
        logger.warning('Startup id=%s does not exist; skipping metrics refresh', startup_id)
        return False

    metrics = startup_service.refresh_startup_metrics(startup)
    if metrics is None:
        raise MetricsUnavailable(f'Metrics unavailable for startup id={startup_id}')
    return True


@shared_task
def refresh_all_metrics_task() -> int:
    """Enqueue one refresh per startup. Returns the number enqueued."""
    ids = list(Startup.objects.values_list('pk', flat=True))
    for startup_id in ids:
        refresh_startup_metrics_task.delay(startup_id)
    logger.info('Enqueued metrics refresh for %s startup(s)', len(ids))
    return len(ids)


@shared_task
def expire_ads_task() -> int:
    return update_expired_ads()


@shared_task
def sync_founders_task() -> dict:
    synced, total = sync_all_founders()
    return {'synced': synced, 'total': total}
