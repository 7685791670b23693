"""Favicon URL strategies for startup websites.

The frontend tries `primary`, then each of `fallbacks`, and finally the
generated `local_fallback` SVG with the domain initials.
"""
import base64
from urllib.parse import urlparse

FALLBACK_COLORS = [
    '#3B82F6', '#EF4444', '#10B981', '#F59E0B',
    '#8B5CF6', '#EC4899', '#06B6D4', '#84CC16',
]


def normalize_url(url):
    if not url.startswith('http://') and not url.startswith('https://'):
        return f'https://{url}'
    return url


def extract_domain(website_url):
    host = urlparse(normalize_url(website_url.strip())).hostname
    return host or 'example.com'


def domain_from_url(website_url):
    """Domain without protocol or www. for display."""
    try:
        host = urlparse(normalize_url(website_url)).hostname
    except ValueError:
        return website_url
    return host.replace('www.', '') if host else website_url


def local_fallback(domain, size=32):
    """Data URI of an SVG tile with the domain initials."""
    main = domain.replace('www.', '', 1).split('.')[0] or 'X'
    initials = main[:2].upper() if len(main) >= 2 else main[:1].upper()
    color = FALLBACK_COLORS[sum(ord(c) for c in domain) % len(FALLBACK_COLORS)]
    svg = (
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{size}" height="{size}" viewBox="0 0 {size} {size}">'
        f'<rect width="{size}" height="{size}" rx="6" fill="{color}"/>'
        f'<text x="50%" y="50%" font-family="system-ui, sans-serif" font-size="{size * 0.4:g}" '
        f'font-weight="600" fill="white" text-anchor="middle" dominant-baseline="central">{initials}</text>'
        '</svg>'
    )
    return 'data:image/svg+xml;base64,' + base64.b64encode(svg.encode('utf-8')).decode('ascii')


def favicon_urls(website_url, size=32):
    domain = extract_domain(website_url)
    site = normalize_url(website_url.strip()).rstrip('/')
    strategies = [
        f'{site}/favicon.ico',
        f'{site}/favicon.png',
        f'{site}/favicon.svg',
        f'{site}/apple-touch-icon.png',
        f'{site}/android-chrome-192x192.png',
        f'https://{domain}/favicon.ico',
        f'https://{domain}/favicon.png',
        f'https://icon.horse/icon/{domain}',
        f'https://www.google.com/s2/favicons?domain={domain}&sz={size}',
        f'https://favicons.githubusercontent.com/{domain}',
        f'https://api.faviconkit.com/{domain}/{size}',
        f'https://external-content.duckduckgo.com/ip3/{domain}.ico',
    ]
    return {
        'primary': strategies[0],
        'fallbacks': strategies[1:],
        'local_fallback': local_fallback(domain, size),
    }
