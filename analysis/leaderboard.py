"""Leaderboard helpers.

Sorting of startup rows by their metrics and aggregation of metrics per
founder. A row is a dict with at least 'name', 'created_at' and 'metrics'
(the bundle from `analysis.mrr.summarize`, or None when unavailable).
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from .mrr import DEFAULT_CURRENCY, round_money


METRIC_KEYS = {
    'mrr': 'monthly_recurring_revenue',
    'revenue': 'total_revenue',
    'customers': 'total_customers',
}
SORT_FIELDS = tuple(METRIC_KEYS) + ('name', 'createdAt')


def metric_value(row: Dict[str, Any], sort_field: str) -> float:
    metrics = row.get('metrics') or {}
    return metrics.get(METRIC_KEYS[sort_field]) or 0


def sort_startups(rows: Iterable[Dict[str, Any]], sort_field: Optional[str] = None, sort_order: Optional[str] = None) -> List[Dict[str, Any]]:
    """Sort leaderboard rows.

    Metric fields treat missing metrics as 0 and default to descending.
    'name' defaults to ascending, 'createdAt' (and no field) to newest first.
    """
    rows = list(rows)
    if sort_field in METRIC_KEYS:
        reverse = sort_order != 'asc'
        return sorted(rows, key=lambda r: metric_value(r, sort_field), reverse=reverse)
    if sort_field == 'name':
        reverse = sort_order == 'desc'
        return sorted(rows, key=lambda r: (r.get('name') or '').lower(), reverse=reverse)
    reverse = sort_order != 'asc'
    return sorted(rows, key=lambda r: r.get('created_at'), reverse=reverse)


def aggregate_founder_metrics(bundles: Iterable[Optional[Dict[str, Any]]]) -> Dict[str, Any]:
    """Sum metrics across a founder's startups.

    Startups without metrics are skipped and not counted. The currency is
    the first counted startup's.
    """
    out = {
        'total_revenue': 0.0,
        'total_mrr': 0.0,
        'total_customers': 0,
        'startups_count': 0,
        'currency': '',
    }
    for m in bundles:
        if not m:
            continue
        out['total_revenue'] += m.get('total_revenue') or 0
        out['total_mrr'] += m.get('monthly_recurring_revenue') or 0
        out['total_customers'] += m.get('total_customers') or 0
        out['startups_count'] += 1
        if not out['currency']:
            out['currency'] = m.get('currency') or ''
    out['total_revenue'] = round_money(out['total_revenue'])
    out['total_mrr'] = round_money(out['total_mrr'])
    out['currency'] = out['currency'] or DEFAULT_CURRENCY
    return out


def group_founders(founders: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Collapse founder rows sharing an X handle (case-insensitive).

    The first row seen for a handle is kept and `startups_count` counts
    every row for that handle.
    """
    by_handle: Dict[str, Dict[str, Any]] = {}
    for f in founders:
        key = (f.get('x_username') or '').lower()
        if key in by_handle:
            by_handle[key]['startups_count'] += 1
            continue
        by_handle[key] = {
            'id': f.get('id'),
            'x_username': f.get('x_username'),
            'profile_image_url': f.get('profile_image_url'),
            'display_name': f.get('display_name'),
            'startups_count': 1,
        }
    return sorted(by_handle.values(), key=lambda f: (f.get('display_name') or f.get('x_username') or '').lower())
