"""Founder service: founder list, founder pages and X profile sync."""
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional, Tuple

from analysis.leaderboard import aggregate_founder_metrics, group_founders
from ..models import Founder, Startup
from ..x_api import fetch_multiple_x_user_profiles, fetch_x_user_profile
from .startups import ensure_metrics, last_30_days_revenue

logger = logging.getLogger(__name__)

MAX_STRIPE_WORKERS = 4


class FounderError(Exception):
    pass


def all_founders() -> List[Dict[str, Any]]:
    """One entry per X handle with the number of startups listing it."""
    rows = Founder.objects.order_by('display_name', 'pk').values(
        'id', 'x_username', 'profile_image_url', 'display_name',
    )
    return group_founders(rows)


def founder_by_username(username: str) -> Dict[str, Any]:
    """The founder row for a handle plus every startup listing that handle.

    Matching is case-insensitive. Raises Founder.DoesNotExist.
    """
    founder = Founder.objects.filter(x_username__iexact=username).order_by('pk').first()
    if founder is None:
        raise Founder.DoesNotExist(username)

    startups = list(
        Startup.objects.filter(founders__x_username__iexact=username)
        .distinct()
        .prefetch_related('founders')
        .order_by('-created_at')
    )
    for startup in startups:
        ensure_metrics(startup)
    return {'founder': founder, 'startups': startups}


def founder_aggregated_metrics(username: str, startups: Optional[List[Startup]] = None) -> Dict[str, Any]:
    """Totals across a founder's startups; zeros for an unknown handle.

    Pass ``startups`` when they are already loaded (and their metrics
    ensured) to skip the lookup.
    """
    if startups is None:
        try:
            startups = founder_by_username(username)['startups']
        except Founder.DoesNotExist:
            return {
                'total_revenue': 0.0,
                'last_30_days_revenue': 0.0,
                'total_mrr': 0.0,
                'total_customers': 0,
                'startups_count': 0,
                'currency': 'usd',
            }

    with_metrics = [s for s in startups if s.has_metrics]
    out = aggregate_founder_metrics(s.metrics_bundle() for s in with_metrics)
    recent = 0.0
    if with_metrics:
        with ThreadPoolExecutor(max_workers=min(MAX_STRIPE_WORKERS, len(with_metrics))) as pool:
            recent = sum(pool.map(last_30_days_revenue, [s.api_key for s in with_metrics]))
    out['last_30_days_revenue'] = round(recent, 2)
    return out


def _apply_profile(founder: Founder, profile: Dict[str, str]) -> None:
    founder.profile_image_url = profile['profile_image_url'] or None
    founder.display_name = profile['display_name']
    founder.save(update_fields=['profile_image_url', 'display_name', 'updated_at'])


def sync_founder_profile(founder: Founder) -> Founder:
    profile = fetch_x_user_profile(founder.x_username)
    if not profile:
        raise FounderError('Failed to fetch X profile')
    _apply_profile(founder, profile)
    return founder


def _sync_rows(founders: List[Founder]) -> Tuple[int, int]:
    if not founders:
        return 0, 0
    profiles = fetch_multiple_x_user_profiles(f.x_username for f in founders)
    synced = 0
    for founder in founders:
        profile = profiles.get(founder.x_username.lower())
        if not profile:
            continue
        try:
            _apply_profile(founder, profile)
            synced += 1
        except Exception:
            logger.exception('Failed to save X profile for founder %s', founder.pk)
    return synced, len(founders)


def sync_startup_founders(startup: Startup) -> Tuple[int, int]:
    """Refresh X profiles of one startup's founders. Returns (synced, total)."""
    return _sync_rows(list(startup.founders.all()))


def sync_all_founders() -> Tuple[int, int]:
    synced, total = _sync_rows(list(Founder.objects.all()))
    logger.info('Synced %s of %s founder(s)', synced, total)
    return synced, total
