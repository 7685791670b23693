"""Slug helpers for startup URLs (e.g. https://uara.ai -> uara-ai)."""
import re
import secrets
import string

SLUG_MAX_LENGTH = 255

_NON_WORD_RE = re.compile(r'[^\w\s-]')
_SEPARATORS_RE = re.compile(r'[\s_-]+')
_ALPHABET = string.ascii_lowercase + string.digits


def generate_slug(text):
    """Lower-case, strip punctuation and collapse separators into hyphens."""
    slug = _NON_WORD_RE.sub('', (text or '').lower().strip())
    slug = _SEPARATORS_RE.sub('-', slug)
    return slug.strip('-')


def generate_slug_from_url(url):
    domain = re.sub(r'^https?://', '', (url or '').strip())
    domain = domain.rstrip('/')
    domain = re.sub(r'^www\.', '', domain)
    for sep in ('/', '?', '#'):
        domain = domain.split(sep)[0]
    slug = domain.replace('.', '-').lower()
    return slug or generate_slug(url)


def generate_unique_slug(text):
    suffix = ''.join(secrets.choice(_ALPHABET) for _ in range(6))
    base = generate_slug(text)
    return f'{base}-{suffix}' if base else suffix


def slug_from_website_or_name(website, name):
    """Website domain when one is given, else the name plus a random suffix."""
    if website and website.strip() not in ('https://', 'http://'):
        return generate_slug_from_url(website)
    return generate_unique_slug(name)


def unique_startup_slug(base):
    """Append -1, -2, ... to `base` until no startup uses it."""
    from .models import Startup

    base = (base or 'startup')[:SLUG_MAX_LENGTH - 10]
    candidate = base
    counter = 1
    while Startup.objects.filter(slug=candidate).exists():
        candidate = f'{base}-{counter}'
        counter += 1
    return candidate
