"""Ad service: ad purchases, status changes and expiry."""
import calendar
import logging
from datetime import datetime
from typing import Optional

from django.db.models import QuerySet
from django.utils import timezone

from ..models import Ad, Startup

logger = logging.getLogger(__name__)

SPOT_TAKEN_MESSAGE = 'This ad spot is already taken for the selected period'


class AdError(Exception):
    pass


def add_months(dt: datetime, months: int) -> datetime:
    """Same day `months` calendar months later, clamped to the month's last day."""
    month_index = dt.month - 1 + months
    year = dt.year + month_index // 12
    month = month_index % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def _live(now=None) -> QuerySet:
    now = now or timezone.now()
    return Ad.objects.filter(status=Ad.STATUS_ACTIVE, expires_at__gt=now).select_related('startup')


def active_ads(now=None) -> QuerySet:
    """Active, unexpired ads, newest first."""
    return _live(now).order_by('-created_at', '-pk')


def active_ad_for_spot(spot_id: str, now=None) -> Optional[Ad]:
    return _live(now).filter(spot_id=spot_id).order_by('-expires_at').first()


def is_ad_spot_available(spot_id: str, now=None) -> bool:
    return not _live(now).filter(spot_id=spot_id).exists()


def create_ad_purchase(spot_id: str, startup: Startup, tagline: Optional[str] = None, duration_months: int = 1,
                       stripe_session_id: Optional[str] = None, now=None) -> Ad:
    """Create a pending ad unless an active ad on the spot overlaps the period."""
    if duration_months < 1:
        raise AdError('duration_months must be at least 1')
    starts_at = now or timezone.now()
    expires_at = add_months(starts_at, duration_months)

    # closed intervals: touching periods count as overlapping
    overlapping = Ad.objects.filter(
        spot_id=spot_id,
        status=Ad.STATUS_ACTIVE,
        starts_at__lte=expires_at,
        expires_at__gte=starts_at,
    )
    if overlapping.exists():
        raise AdError(SPOT_TAKEN_MESSAGE)

    ad = Ad.objects.create(
        spot_id=spot_id,
        startup=startup,
        tagline=tagline or None,
        stripe_session_id=stripe_session_id or None,
        status=Ad.STATUS_PENDING,
        starts_at=starts_at,
        expires_at=expires_at,
    )
    logger.info('Created pending ad %s on spot %s for startup %s', ad.pk, spot_id, startup.pk)
    return ad


def update_ad_status(ad: Ad, status: str, stripe_payment_id: Optional[str] = None) -> Ad:
    valid = {choice for choice, _ in Ad.STATUS_CHOICES}
    if status not in valid:
        raise AdError(f"Invalid status '{status}'")
    ad.status = status
    fields = ['status', 'updated_at']
    if stripe_payment_id:
        ad.stripe_payment_id = stripe_payment_id
        fields.append('stripe_payment_id')
    ad.save(update_fields=fields)
    return ad


def cancel_ad(ad: Ad) -> Ad:
    return update_ad_status(ad, Ad.STATUS_CANCELLED)


def startup_ads(startup: Startup) -> QuerySet:
    return startup.ads.select_related('startup').order_by('-created_at')


def update_expired_ads(now=None) -> int:
    """Mark active ads past their expiry as expired. Returns the count."""
    now = now or timezone.now()
    count = Ad.objects.filter(status=Ad.STATUS_ACTIVE, expires_at__lte=now).update(status=Ad.STATUS_EXPIRED, updated_at=now)
    if count:
        logger.info('Expired %s ad(s)', count)
    return count
