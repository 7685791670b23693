"""X (Twitter) API v2 lookups for founder avatars and display names.

Profiles are cached for a day in the Django cache, keyed by the
lower-cased handle.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Iterable, Optional

import requests
from django.conf import settings
from django.core.cache import cache

logger = logging.getLogger(__name__)

X_API_URL = 'https://api.x.com/2/users/by/username/{username}'
CACHE_SECONDS = 24 * 60 * 60
CACHE_PREFIX = 'x_profile:'
CACHE_INDEX_KEY = CACHE_PREFIX + '__keys__'
REQUEST_TIMEOUT = 10


def clean_username(username: str) -> str:
    return (username or '').replace('@', '').strip()


def _cache_key(username: str) -> str:
    return CACHE_PREFIX + clean_username(username).lower()


def _request_profile(name: str) -> Optional[Dict[str, str]]:
    token = getattr(settings, 'X_BEARER_TOKEN', '')
    if not token:
        logger.warning('X_BEARER_TOKEN is not set; skipping profile lookup for @%s', name)
        return None

    try:
        resp = requests.get(
            X_API_URL.format(username=name),
            params={'user.fields': 'profile_image_url,name'},
            headers={'Authorization': f'Bearer {token}'},
            timeout=REQUEST_TIMEOUT,
        )
        resp.raise_for_status()
        data = resp.json().get('data')
    except (requests.RequestException, ValueError):
        logger.exception('Error fetching X profile for @%s', name)
        return None

    if not data:
        return None

    image = data.get('profile_image_url') or ''
    # _normal avatars are 48px; ask for the large variant
    return {
        'profile_image_url': image.replace('_normal', '_400x400'),
        'display_name': data.get('name') or name,
    }


def _remember(profiles: Dict[str, Dict[str, str]]) -> None:
    """Cache profiles by handle and record their keys in the index.

    The index is a read-modify-write, so only call this from one thread.
    """
    if not profiles:
        return
    keys = [_cache_key(name) for name in profiles]
    cache.set_many(dict(zip(keys, profiles.values())), timeout=CACHE_SECONDS)
    known = set(cache.get(CACHE_INDEX_KEY) or [])
    known.update(keys)
    cache.set(CACHE_INDEX_KEY, sorted(known), timeout=None)


def fetch_x_user_profile(username: str) -> Optional[Dict[str, str]]:
    """Return {'profile_image_url', 'display_name'} for a handle, or None."""
    name = clean_username(username)
    if not name:
        return None
    cached = cache.get(_cache_key(name))
    if cached:
        return cached

    profile = _request_profile(name)
    if profile:
        _remember({name: profile})
    return profile


def fetch_multiple_x_user_profiles(usernames: Iterable[str]) -> Dict[str, Dict[str, str]]:
    """Profiles keyed by lower-cased handle; handles that fail are left out."""
    results = {}
    uncached = []
    for username in usernames:
        name = clean_username(username)
        if not name:
            continue
        cached = cache.get(_cache_key(name))
        if cached:
            results[name.lower()] = cached
        elif name.lower() not in {u.lower() for u in uncached}:
            uncached.append(name)

    if uncached:
        fetched = {}
        with ThreadPoolExecutor(max_workers=min(8, len(uncached))) as pool:
            for name, profile in zip(uncached, pool.map(_request_profile, uncached)):
                if profile:
                    fetched[name] = profile
        _remember(fetched)
        results.update((name.lower(), profile) for name, profile in fetched.items())
    return results


def clear_x_user_cache(username: Optional[str] = None) -> None:
    """Drop the cached profile for one handle, or every cached profile."""
    if username is not None:
        cache.delete(_cache_key(username))
        return
    keys = cache.get(CACHE_INDEX_KEY) or []
    cache.delete_many(list(keys) + [CACHE_INDEX_KEY])
