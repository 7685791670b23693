import os
from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'trustmrr.settings')

# worker and beat share one app; the metrics/ads/founders schedule lives in
# settings.CELERY_BEAT_SCHEDULE
app = Celery('trustmrr')
app.config_from_object('django.conf:settings', namespace='CELERY')

# picks up api.tasks
app.autodiscover_tasks()
