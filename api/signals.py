from django.db.models.signals import post_save
from django.dispatch import receiver
from django.conf import settings
import logging
import threading

from django.db import close_old_connections, transaction
from kombu.exceptions import OperationalError as BrokerError

from .models import Startup

logger = logging.getLogger(__name__)


def _refresh_in_thread(startup_id):
    # the thread opens its own DB connection
    close_old_connections()
    from .services.startups import refresh_startup_metrics
    try:
        startup = Startup.objects.get(pk=startup_id)
        refresh_startup_metrics(startup)
    except Startup.DoesNotExist:
        logger.warning('Startup %s was deleted before its first metrics refresh', startup_id)
    finally:
        close_old_connections()


def _enqueue_refresh(startup_id):
    from .tasks import refresh_startup_metrics_task
    try:
        refresh_startup_metrics_task.delay(startup_id)
        return
    except BrokerError:
        logger.warning('Broker unavailable; refreshing metrics for startup %s in a thread', startup_id)
    except Exception:
        # eager runs surface task failures here; the failure is already stored on the startup
        logger.exception('Initial metrics refresh failed for startup %s', startup_id)
        return

    t = threading.Thread(target=_refresh_in_thread, args=(startup_id,))
    t.daemon = True
    t.start()


@receiver(post_save, sender=Startup)
def on_startup_created(sender, instance: Startup, created, **kwargs):
    """Pull metrics for a newly registered startup once its row is committed."""
    if not created or not getattr(settings, 'TRUSTMRR_REFRESH_ON_CREATE', True):
        return
    startup_id = instance.pk
    transaction.on_commit(lambda: _enqueue_refresh(startup_id))
