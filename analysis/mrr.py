"""MRR and revenue calculation utilities.

Pure functions that turn pages of billing-provider objects (subscriptions,
charges) into the metrics bundle shown on the leaderboard. Objects may be
Stripe objects or plain dicts; both support ``.get``.
All monetary values are returned in major currency units.
"""
import math
from typing import Iterable, Dict, Any, Tuple, Optional


DEFAULT_CURRENCY = 'usd'

# Multipliers that convert one billing interval into a monthly amount.
INTERVAL_MULTIPLIERS = {
    'day': 30,
    'week': 4.33,
    'month': 1,
}


def get_field(obj: Any, key: str, default: Any = None) -> Any:
    if obj is None:
        return default
    try:
        val = obj.get(key, default)
    except AttributeError:
        val = getattr(obj, key, default)
    return default if val is None else val


def round_money(value: float) -> float:
    """Round half-up to two decimals on the scaled float, so 1.005 gives 1.0."""
    return math.floor(value * 100 + 0.5) / 100


def monthly_amount(unit_amount: Optional[int], quantity: Optional[int], interval: Optional[str]) -> float:
    """Convert one line item to its monthly-equivalent amount in major units.

    Unknown or missing intervals are treated as monthly.
    """
    amount = ((unit_amount or 0) * (quantity or 1)) / 100
    if interval == 'year':
        return amount / 12
    return amount * INTERVAL_MULTIPLIERS.get(interval, 1)


def _line_items(subscription: Any) -> list:
    # `items` clashes with dict.items on Stripe objects, so go through the key
    items = get_field(subscription, 'items')
    if items is None or callable(items):
        try:
            items = subscription['items']
        except (KeyError, TypeError):
            return []
    return list(get_field(items, 'data', []) or [])


def subscriptions_mrr(subscriptions: Iterable[Any]) -> Tuple[float, Optional[str]]:
    """Sum the monthly-equivalent value of every subscription line item.

    Returns (mrr, currency) where currency is the last subscription's that
    had line items, or None when no subscription had any.
    """
    total = 0.0
    currency = None
    for sub in subscriptions:
        items = _line_items(sub)
        if not items:
            continue
        currency = get_field(sub, 'currency', currency)
        for item in items:
            price = get_field(item, 'price', {})
            recurring = get_field(price, 'recurring', {})
            total += monthly_amount(
                get_field(price, 'unit_amount', 0),
                get_field(item, 'quantity', 1),
                get_field(recurring, 'interval'),
            )
    return total, currency


def is_paid_charge(charge: Any) -> bool:
    return get_field(charge, 'status') == 'succeeded' and get_field(charge, 'paid', False) is True


def charges_revenue(charges: Iterable[Any]) -> Tuple[float, Optional[str]]:
    """Sum succeeded and paid charges. Returns (revenue, last currency seen)."""
    total = 0.0
    currency = None
    for charge in charges:
        if not is_paid_charge(charge):
            continue
        currency = get_field(charge, 'currency', currency)
        total += get_field(charge, 'amount', 0) / 100
    return total, currency


def summarize(subscriptions: Iterable[Any], charges: Iterable[Any], customer_count: int) -> Dict[str, Any]:
    """Build the metrics bundle for one billing account.

    Currency starts as usd, then the last subscription with items, then the
    last paid charge overrides it.
    """
    mrr, sub_currency = subscriptions_mrr(subscriptions)
    revenue, charge_currency = charges_revenue(charges)
    currency = charge_currency or sub_currency or DEFAULT_CURRENCY
    return {
        'monthly_recurring_revenue': round_money(mrr),
        'total_revenue': round_money(revenue),
        'total_customers': int(customer_count),
        'currency': currency,
    }
