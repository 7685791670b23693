"""Startup service: registration, edits, metrics refresh and leaderboard reads.

Views and Celery tasks go through these functions so the Stripe calls and
the metrics bookkeeping live in one place.
"""
import logging
from datetime import timedelta
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Q
from django.db.models.functions import Lower
from django.utils import timezone

from analysis.leaderboard import METRIC_KEYS, sort_startups
from analysis.mrr import get_field, subscriptions_mrr
from analysis.revenue import daily_revenue_points, recent_revenue, time_range_start
from .. import stripe_client
from ..models import Founder, MetricsSnapshot, Startup
from ..slugs import slug_from_website_or_name, unique_startup_slug
from ..x_api import clean_username

logger = logging.getLogger(__name__)

DUPLICATE_KEY_MESSAGE = 'This API key is already registered'
INVALID_KEY_MESSAGE = 'Invalid Stripe API key or insufficient permissions'
METRICS_ERROR_MESSAGE = 'Failed to fetch metrics'


class StartupError(Exception):
    """A startup action was rejected; the message is safe to show users."""


def create_startup(api_key: str, website: Optional[str] = None, founders: Optional[Iterable[str]] = None) -> Startup:
    """Register a startup from its restricted Stripe key.

    The key is validated by reading the Stripe account, whose business name
    becomes the startup name. One founder row is created per X handle.
    """
    try:
        info = stripe_client.fetch_business_info(api_key)
    except stripe_client.StripeKeyError as exc:
        raise StartupError(str(exc)) from exc

    if Startup.objects.filter(api_key=api_key).exists():
        raise StartupError(DUPLICATE_KEY_MESSAGE)

    slug = unique_startup_slug(slug_from_website_or_name(website, info['name']))
    try:
        with transaction.atomic():
            startup = Startup.objects.create(
                name=info['name'],
                description=info.get('support_url'),
                api_key=api_key,
                website=website or None,
                slug=slug,
            )
            for handle in founders or []:
                handle = clean_username(handle)
                if handle:
                    Founder.objects.create(startup=startup, x_username=handle)
    except IntegrityError:
        logger.exception('IntegrityError while creating startup %s', slug)
        raise StartupError(DUPLICATE_KEY_MESSAGE)

    logger.info('Created startup %s (%s)', startup.pk, startup.slug)
    return startup


def update_startup(startup: Startup, name=None, description=None, api_key=None, website=None) -> Startup:
    """Update editable fields. A new API key must yield metrics first."""
    metrics = None
    if api_key and api_key != startup.api_key:
        metrics = stripe_client.fetch_stripe_metrics(api_key)
        if metrics is None:
            raise StartupError(INVALID_KEY_MESSAGE)
        startup.api_key = api_key

    for field, value in (('name', name), ('description', description), ('website', website)):
        if value is not None:
            setattr(startup, field, value)

    try:
        with transaction.atomic():
            startup.save()
    except IntegrityError:
        raise StartupError(DUPLICATE_KEY_MESSAGE)

    if metrics is not None:
        _store_metrics(startup, metrics)
    return startup


def delete_startup(startup: Startup) -> None:
    logger.info('Deleting startup %s (%s)', startup.pk, startup.slug)
    startup.delete()


def add_founder(startup: Startup, x_username: str) -> Founder:
    handle = clean_username(x_username)
    if not handle:
        raise StartupError('x_username is required')
    return Founder.objects.create(startup=startup, x_username=handle)


def remove_founder(founder: Founder) -> None:
    founder.delete()


def _store_metrics(startup: Startup, metrics: Dict[str, Any]) -> None:
    startup.mrr = Decimal(str(metrics['monthly_recurring_revenue']))
    startup.total_revenue = Decimal(str(metrics['total_revenue']))
    startup.total_customers = metrics['total_customers']
    startup.currency = metrics['currency']
    startup.metrics_updated_at = timezone.now()
    startup.metrics_error = ''
    startup.save(update_fields=['mrr', 'total_revenue', 'total_customers', 'currency', 'metrics_updated_at', 'metrics_error', 'updated_at'])
    MetricsSnapshot.objects.create(
        startup=startup,
        mrr=startup.mrr,
        total_revenue=startup.total_revenue,
        total_customers=startup.total_customers,
        currency=startup.currency,
        success=True,
    )


def refresh_startup_metrics(startup: Startup) -> Optional[Dict[str, Any]]:
    """Pull metrics from Stripe and store them on the startup.

    On failure the previous figures are kept but flagged with
    `metrics_error`, so they are reported as unavailable rather than zero.
    """
    metrics = stripe_client.fetch_stripe_metrics(startup.api_key)
    if metrics is None:
        startup.metrics_error = METRICS_ERROR_MESSAGE
        startup.save(update_fields=['metrics_error', 'updated_at'])
        MetricsSnapshot.objects.create(startup=startup, success=False, error=METRICS_ERROR_MESSAGE)
        logger.warning('Metrics unavailable for startup %s', startup.pk)
        return None
    _store_metrics(startup, metrics)
    logger.info('Refreshed metrics for startup %s mrr=%s', startup.pk, startup.mrr)
    return metrics


def metrics_are_stale(startup: Startup, now=None) -> bool:
    if startup.metrics_updated_at is None:
        return True
    now = now or timezone.now()
    max_age = getattr(settings, 'TRUSTMRR_METRICS_MAX_AGE', 3600)
    return now - startup.metrics_updated_at > timedelta(seconds=max_age)


def ensure_metrics(startup: Startup) -> Optional[Dict[str, Any]]:
    """Stored metrics, pulled on demand when missing or stale."""
    if metrics_are_stale(startup):
        refresh_startup_metrics(startup)
    return startup.metrics_bundle()


def startups_with_metrics(search: Optional[str] = None, sort_field: Optional[str] = None, sort_order: Optional[str] = None) -> List[Startup]:
    """Leaderboard rows with their stored metrics.

    Name and creation-date sorts happen in the database; metric sorts treat
    startups without metrics as 0.
    """
    qs = Startup.objects.prefetch_related('founders')
    if search:
        qs = qs.filter(
            Q(name__icontains=search) | Q(description__icontains=search) | Q(website__icontains=search)
        )

    if sort_field == 'name':
        qs = qs.order_by(Lower('name').desc() if sort_order == 'desc' else Lower('name'))
    elif sort_field == 'createdAt':
        qs = qs.order_by('created_at' if sort_order == 'asc' else '-created_at')
    else:
        qs = qs.order_by('-created_at')

    startups = list(qs)
    if sort_field in METRIC_KEYS:
        rows = [{'startup': s, 'name': s.name, 'created_at': s.created_at, 'metrics': s.metrics_bundle()} for s in startups]
        startups = [r['startup'] for r in sort_startups(rows, sort_field, sort_order)]
    return startups


def startup_detail(slug: str) -> Startup:
    """Startup by slug with fresh-enough metrics. Raises Startup.DoesNotExist."""
    startup = Startup.objects.prefetch_related('founders').get(slug=slug)
    ensure_metrics(startup)
    return startup


def startup_revenue_data(slug: str, time_range: str = '30d') -> Dict[str, Any]:
    """Daily revenue and MRR points for the revenue chart.

    Raises Startup.DoesNotExist, ValueError for an unknown range and
    MetricsUnavailable when Stripe cannot be read.
    """
    startup = Startup.objects.get(slug=slug)
    now = timezone.now()
    start = time_range_start(time_range, now, startup.created_at)
    try:
        charges = stripe_client.fetch_charges(startup.api_key, start.timestamp(), now.timestamp())
        subscriptions = stripe_client.fetch_active_subscriptions(startup.api_key, created_gte=start.timestamp())
    except Exception as exc:
        logger.exception('Error fetching revenue data for startup %s', startup.pk)
        raise stripe_client.MetricsUnavailable('Failed to fetch revenue data') from exc

    mrr, _ = subscriptions_mrr(subscriptions)
    currency = (get_field(charges[0], 'currency') or 'usd').upper() if charges else 'USD'
    return {
        'data_points': daily_revenue_points(charges, start, now, mrr),
        'currency': currency,
    }


def last_30_days_revenue(api_key: str) -> float:
    """Revenue of the last 30 days; 0 when Stripe cannot be read."""
    since = timezone.now() - timedelta(days=30)
    try:
        charges = stripe_client.fetch_charges(api_key, since.timestamp())
    except Exception:
        logger.exception('Error fetching last 30 days revenue')
        return 0.0
    return recent_revenue(charges)
