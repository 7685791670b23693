from datetime import datetime, timezone

from analysis.leaderboard import sort_startups, aggregate_founder_metrics, group_founders


def _row(name, day, mrr=None, revenue=0, customers=0):
    metrics = None
    if mrr is not None:
        metrics = {'monthly_recurring_revenue': mrr, 'total_revenue': revenue, 'total_customers': customers, 'currency': 'usd'}
    return {'name': name, 'created_at': datetime(2025, 1, day, tzinfo=timezone.utc), 'metrics': metrics}


ROWS = [
    _row('beta', 1, mrr=200, revenue=1000, customers=3),
    _row('Alpha', 2, mrr=500, revenue=100, customers=9),
    _row('gamma', 3),
]


def test_metric_sort_defaults_to_descending_and_missing_is_zero():
    assert [r['name'] for r in sort_startups(ROWS, 'mrr')] == ['Alpha', 'beta', 'gamma']
    assert [r['name'] for r in sort_startups(ROWS, 'revenue', 'asc')] == ['gamma', 'Alpha', 'beta']
    assert [r['name'] for r in sort_startups(ROWS, 'customers')] == ['Alpha', 'beta', 'gamma']


def test_name_sort_is_case_insensitive():
    assert [r['name'] for r in sort_startups(ROWS, 'name')] == ['Alpha', 'beta', 'gamma']
    assert [r['name'] for r in sort_startups(ROWS, 'name', 'desc')] == ['gamma', 'beta', 'Alpha']


def test_default_sort_is_newest_first():
    assert [r['name'] for r in sort_startups(ROWS)] == ['gamma', 'Alpha', 'beta']
    assert [r['name'] for r in sort_startups(ROWS, 'createdAt', 'asc')] == ['beta', 'Alpha', 'gamma']


def test_aggregate_founder_metrics_skips_unavailable():
    bundles = [r['metrics'] for r in ROWS]
    out = aggregate_founder_metrics(bundles)
    assert out == {
        'total_revenue': 1100.0,
        'total_mrr': 700.0,
        'total_customers': 12,
        'startups_count': 2,
        'currency': 'usd',
    }


def test_aggregate_founder_metrics_empty():
    out = aggregate_founder_metrics([])
    assert out['startups_count'] == 0
    assert out['total_mrr'] == 0
    assert out['currency'] == 'usd'


def test_group_founders_collapses_handles_case_insensitively():
    founders = [
        {'id': 1, 'x_username': 'Jane', 'display_name': 'Jane Doe', 'profile_image_url': None},
        {'id': 2, 'x_username': 'jane', 'display_name': None, 'profile_image_url': None},
        {'id': 3, 'x_username': 'adam', 'display_name': None, 'profile_image_url': 'https://img/a.png'},
    ]
    out = group_founders(founders)
    assert [f['x_username'] for f in out] == ['adam', 'Jane']
    assert out[1]['startups_count'] == 2
    assert out[1]['id'] == 1
