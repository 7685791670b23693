"""Stripe access for startup metrics and ad checkout.

Every startup call uses that startup's restricted key as a per-request
`api_key`; the platform key (`STRIPE_SECRET_KEY`) is only used for ad
checkout and the platform's own /api/stripe-data/ summary.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Iterator, List, Optional

import stripe
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.utils import timezone

from analysis.mrr import get_field, summarize

logger = logging.getLogger(__name__)

PAGE_SIZE = 100
UNKNOWN_BUSINESS = 'Unknown Business'
SUBSCRIPTION_EXPAND = ['data.items.data.price']


class StripeKeyError(Exception):
    """The key was rejected or lacks the permissions we need."""


class MetricsUnavailable(Exception):
    """Metrics could not be pulled; never treat this as zero revenue."""


def configure_stripe() -> None:
    """Apply SDK-wide settings (API version, network retries, app info)."""
    stripe.api_version = settings.STRIPE_API_VERSION
    stripe.max_network_retries = settings.STRIPE_MAX_NETWORK_RETRIES
    stripe.set_app_info('TrustMyMRR', version='1.0.0')


def platform_key() -> str:
    key = getattr(settings, 'STRIPE_SECRET_KEY', '')
    if not key:
        raise ImproperlyConfigured('STRIPE_SECRET_KEY is not set. Add it to your environment or .env file.')
    return key


def list_all(resource, api_key: str, **params) -> Iterator[Any]:
    """Yield every object of a Stripe list call, following `has_more`.

    Pages are requested with `starting_after` set to the last id of the
    previous page until the provider reports no more results.
    """
    params.setdefault('limit', PAGE_SIZE)
    while True:
        page = resource.list(api_key=api_key, **params)
        data = list(get_field(page, 'data', []) or [])
        for obj in data:
            yield obj
        if not get_field(page, 'has_more', False) or not data:
            return
        params['starting_after'] = get_field(data[-1], 'id')


def _collect(resource, api_key: str, **params) -> List[Any]:
    return list(list_all(resource, api_key, **params))


def _count(resource, api_key: str, **params) -> int:
    return sum(1 for _ in list_all(resource, api_key, **params))


def fetch_stripe_metrics(api_key: str) -> Optional[Dict[str, Any]]:
    """Pull and summarise metrics for one Stripe account.

    Active subscriptions, charges and customers are listed in parallel and
    each is paginated until exhausted. Any provider error aborts the whole
    aggregation and returns None.
    """
    configure_stripe()
    try:
        with ThreadPoolExecutor(max_workers=3) as pool:
            subs_future = pool.submit(
                _collect, stripe.Subscription, api_key, status='active', expand=SUBSCRIPTION_EXPAND,
            )
            charges_future = pool.submit(_collect, stripe.Charge, api_key)
            customers_future = pool.submit(_count, stripe.Customer, api_key)
            subscriptions = subs_future.result()
            charges = charges_future.result()
            customer_count = customers_future.result()
    except Exception:
        logger.exception('Error fetching Stripe metrics')
        return None
    return summarize(subscriptions, charges, customer_count)


def fetch_business_info(api_key: str) -> Dict[str, Optional[str]]:
    """Return name, logo, url and support_url for the key's account.

    Raises StripeKeyError when the account cannot be read. A failing logo
    lookup only drops the logo.
    """
    configure_stripe()
    try:
        account = stripe.Account.retrieve(api_key=api_key)
    except Exception as exc:
        logger.warning('Stripe account lookup failed: %s', exc)
        raise StripeKeyError('Invalid Stripe API key or insufficient permissions') from exc

    profile = get_field(account, 'business_profile', {})
    dashboard = get_field(get_field(account, 'settings', {}), 'dashboard', {})

    logo = None
    icon = get_field(profile, 'icon')
    if icon:
        try:
            logo = get_field(stripe.File.retrieve(icon, api_key=api_key), 'url')
        except Exception:
            logger.exception('Error retrieving logo file %s', icon)

    return {
        'name': get_field(profile, 'name') or get_field(dashboard, 'display_name') or UNKNOWN_BUSINESS,
        'logo': logo,
        'url': get_field(profile, 'url'),
        'support_url': get_field(profile, 'support_url'),
    }


def get_business_data(api_key: str) -> Dict[str, Any]:
    """Business info and metrics for one account as a single bundle.

    Business info falls back to placeholders; missing metrics raise
    MetricsUnavailable.
    """
    with ThreadPoolExecutor(max_workers=2) as pool:
        info_future = pool.submit(fetch_business_info, api_key)
        metrics_future = pool.submit(fetch_stripe_metrics, api_key)
        try:
            info = info_future.result()
        except StripeKeyError:
            info = {'name': UNKNOWN_BUSINESS, 'logo': None, 'url': None}
        metrics = metrics_future.result()

    if metrics is None:
        raise MetricsUnavailable('Failed to fetch Stripe data')

    return {
        'business_name': info['name'],
        'business_logo': info['logo'],
        'business_url': info['url'],
        'monthly_recurring_revenue': metrics['monthly_recurring_revenue'],
        'total_customers': metrics['total_customers'],
        'total_revenue': metrics['total_revenue'],
        'currency': metrics['currency'],
        'last_updated': timezone.now().isoformat(),
    }


def fetch_charges(api_key: str, created_gte: int, created_lte: Optional[int] = None) -> List[Any]:
    """All charges created in [created_gte, created_lte] (unix seconds)."""
    configure_stripe()
    created = {'gte': int(created_gte)}
    if created_lte is not None:
        created['lte'] = int(created_lte)
    return _collect(stripe.Charge, api_key, created=created)


def fetch_active_subscriptions(api_key: str, created_gte: Optional[int] = None) -> List[Any]:
    configure_stripe()
    params: Dict[str, Any] = {'status': 'active', 'expand': SUBSCRIPTION_EXPAND}
    if created_gte is not None:
        params['created'] = {'gte': int(created_gte)}
    return _collect(stripe.Subscription, api_key, **params)


def create_ad_checkout_session(spot_id: str, price_id: str, base_url: str) -> Dict[str, Any]:
    """Create a subscription Checkout Session for an ad spot on the platform account."""
    configure_stripe()
    session = stripe.checkout.Session.create(
        api_key=platform_key(),
        payment_method_types=['card'],
        line_items=[{'price': price_id, 'quantity': 1}],
        mode='subscription',
        success_url=f'{base_url}?ad_purchase=success&session_id={{CHECKOUT_SESSION_ID}}',
        cancel_url=f'{base_url}?ad_purchase=cancelled',
        metadata={'spotId': spot_id, 'type': 'ad_purchase'},
    )
    return {'session_id': get_field(session, 'id'), 'url': get_field(session, 'url')}
