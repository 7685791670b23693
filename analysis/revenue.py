"""Daily revenue series for the startup revenue chart.

Charges are bucketed by UTC calendar day with pandas; every day in the
requested window gets a point, zero-filled when nothing was charged.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional

import numpy as np
import pandas as pd

from .mrr import get_field, round_money


RANGE_DAYS = {'7d': 7, '14d': 14, '30d': 30}
TIME_RANGES = tuple(RANGE_DAYS) + ('all',)


def time_range_start(time_range: str, now: datetime, created_at: Optional[datetime] = None) -> datetime:
    """Return the first instant of the chart window for a time range key."""
    if time_range == 'all':
        return created_at or now
    try:
        days = RANGE_DAYS[time_range]
    except KeyError:
        raise ValueError(f"Unknown time range '{time_range}'. Expected one of {', '.join(TIME_RANGES)}")
    return now - timedelta(days=days)


def counts_toward_chart(charge: Any) -> bool:
    return get_field(charge, 'status') == 'succeeded' and (get_field(charge, 'amount', 0) or 0) > 0


def recent_revenue(charges: Iterable[Any]) -> float:
    """Sum of succeeded, positive charges (major units)."""
    return round_money(sum(get_field(c, 'amount', 0) / 100 for c in charges if counts_toward_chart(c)))


def _to_python_scalar(v):
    if isinstance(v, np.generic):
        return v.item()
    return v


def daily_revenue_points(charges: Iterable[Any], start: datetime, end: datetime, mrr: float) -> List[Dict[str, Any]]:
    """Build one {date, revenue, mrr} point per day from start to end inclusive.

    MRR is the current figure repeated on every day.
    """
    rows = []
    for c in charges:
        if not counts_toward_chart(c):
            continue
        created = datetime.fromtimestamp(int(get_field(c, 'created', 0)), tz=timezone.utc)
        rows.append({'date': created.strftime('%Y-%m-%d'), 'revenue': get_field(c, 'amount', 0) / 100})

    days = pd.date_range(start.date(), end.date(), freq='D').strftime('%Y-%m-%d')
    if rows:
        by_day = pd.DataFrame(rows).groupby('date')['revenue'].sum()
    else:
        by_day = pd.Series(dtype='float64')
    series = by_day.reindex(days, fill_value=0.0)

    points = []
    for day, revenue in series.items():
        points.append({
            'date': day,
            'revenue': round_money(_to_python_scalar(revenue)),
            'mrr': round_money(mrr),
        })
    return points
