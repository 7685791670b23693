from django.test import TestCase, override_settings
from django.core.exceptions import ImproperlyConfigured
from unittest.mock import patch, MagicMock

from api import stripe_client


def _paged(objects, page_size=100):
    """side_effect for a Stripe `list` honouring limit/starting_after."""
    calls = []

    def list_(api_key=None, limit=100, starting_after=None, **params):
        calls.append({'api_key': api_key, 'limit': limit, 'starting_after': starting_after, **params})
        start = 0
        if starting_after is not None:
            start = next(i for i, o in enumerate(objects) if o['id'] == starting_after) + 1
        data = objects[start:start + min(limit, page_size)]
        return {'data': data, 'has_more': start + len(data) < len(objects)}

    list_.calls = calls
    return list_


def _charges(n, amount=100):
    return [{'id': f'ch_{i}', 'status': 'succeeded', 'paid': True, 'amount': amount, 'currency': 'usd'} for i in range(n)]


def _subs(n, unit_amount=1000):
    return [
        {'id': f'sub_{i}', 'currency': 'usd', 'items': {'data': [{'quantity': 1, 'price': {'unit_amount': unit_amount, 'recurring': {'interval': 'month'}}}]}}
        for i in range(n)
    ]


class ListAllTests(TestCase):
    def test_follows_has_more_and_visits_every_page_once(self):
        objects = [{'id': f'obj_{i}'} for i in range(250)]
        resource = MagicMock()
        resource.list.side_effect = _paged(objects)
        out = list(stripe_client.list_all(resource, 'rk_test'))
        self.assertEqual([o['id'] for o in out], [o['id'] for o in objects])
        self.assertEqual(resource.list.call_count, 3)
        cursors = [c.kwargs.get('starting_after') for c in resource.list.call_args_list]
        self.assertEqual(cursors, [None, 'obj_99', 'obj_199'])
        for c in resource.list.call_args_list:
            self.assertEqual(c.kwargs['api_key'], 'rk_test')
            self.assertEqual(c.kwargs['limit'], 100)

    def test_stops_on_empty_page_even_if_has_more(self):
        resource = MagicMock()
        resource.list.return_value = {'data': [], 'has_more': True}
        self.assertEqual(list(stripe_client.list_all(resource, 'rk_test')), [])
        self.assertEqual(resource.list.call_count, 1)


class FetchStripeMetricsTests(TestCase):
    def _patch_lists(self, subs, charges, customers):
        return (
            patch('stripe.Subscription.list', side_effect=_paged(subs)),
            patch('stripe.Charge.list', side_effect=_paged(charges)),
            patch('stripe.Customer.list', side_effect=_paged(customers)),
        )

    def test_aggregates_across_multiple_pages(self):
        customers = [{'id': f'cus_{i}'} for i in range(205)]
        p_subs, p_charges, p_customers = self._patch_lists(_subs(150), _charges(230), customers)
        with p_subs as m_subs, p_charges, p_customers:
            out = stripe_client.fetch_stripe_metrics('rk_test')
        self.assertEqual(out, {
            'monthly_recurring_revenue': 1500.0,
            'total_revenue': 230.0,
            'total_customers': 205,
            'currency': 'usd',
        })
        first = m_subs.call_args_list[0].kwargs
        self.assertEqual(first['status'], 'active')
        self.assertEqual(first['expand'], ['data.items.data.price'])

    def test_any_provider_error_returns_none(self):
        p_subs, p_charges, _ = self._patch_lists(_subs(3), _charges(3), [])
        failing = patch('stripe.Customer.list', side_effect=Exception('rate limited'))
        with p_subs, p_charges, failing:
            self.assertIsNone(stripe_client.fetch_stripe_metrics('rk_test'))

    def test_error_on_a_later_page_returns_none(self):
        pages = [{'data': _charges(100), 'has_more': True}, Exception('boom')]
        p_subs, _, p_customers = self._patch_lists(_subs(1), [], [])
        with p_subs, p_customers, patch('stripe.Charge.list', side_effect=pages):
            self.assertIsNone(stripe_client.fetch_stripe_metrics('rk_test'))

    def test_same_fixtures_give_identical_output(self):
        results = []
        for _ in range(2):
            p_subs, p_charges, p_customers = self._patch_lists(_subs(5), _charges(7), [{'id': 'cus_1'}])
            with p_subs, p_charges, p_customers:
                results.append(stripe_client.fetch_stripe_metrics('rk_test'))
        self.assertEqual(results[0], results[1])


class BusinessInfoTests(TestCase):
    @patch('stripe.File.retrieve')
    @patch('stripe.Account.retrieve')
    def test_name_logo_and_urls(self, m_account, m_file):
        m_account.return_value = {
            'business_profile': {'name': 'Acme', 'icon': 'file_1', 'url': 'https://acme.io', 'support_url': 'https://acme.io/help'},
            'settings': {'dashboard': {'display_name': 'Acme Dash'}},
        }
        m_file.return_value = {'url': 'https://files.stripe.com/logo.png'}
        info = stripe_client.fetch_business_info('rk_test')
        self.assertEqual(info, {
            'name': 'Acme',
            'logo': 'https://files.stripe.com/logo.png',
            'url': 'https://acme.io',
            'support_url': 'https://acme.io/help',
        })
        m_file.assert_called_once_with('file_1', api_key='rk_test')

    @patch('stripe.File.retrieve', side_effect=Exception('no access'))
    @patch('stripe.Account.retrieve')
    def test_falls_back_to_dashboard_name_and_drops_logo_on_error(self, m_account, m_file):
        m_account.return_value = {'business_profile': {'icon': 'file_1'}, 'settings': {'dashboard': {'display_name': 'Acme Dash'}}}
        info = stripe_client.fetch_business_info('rk_test')
        self.assertEqual(info['name'], 'Acme Dash')
        self.assertIsNone(info['logo'])

    @patch('stripe.Account.retrieve')
    def test_unknown_business_when_unnamed(self, m_account):
        m_account.return_value = {'business_profile': None, 'settings': None}
        self.assertEqual(stripe_client.fetch_business_info('rk_test')['name'], 'Unknown Business')

    @patch('stripe.Account.retrieve', side_effect=Exception('Invalid API Key provided'))
    def test_account_failure_raises_key_error(self, m_account):
        with self.assertRaises(stripe_client.StripeKeyError):
            stripe_client.fetch_business_info('rk_bad')


class BusinessDataTests(TestCase):
    METRICS = {'monthly_recurring_revenue': 10.0, 'total_revenue': 50.0, 'total_customers': 2, 'currency': 'usd'}

    @patch('api.stripe_client.fetch_stripe_metrics')
    @patch('api.stripe_client.fetch_business_info', side_effect=stripe_client.StripeKeyError('nope'))
    def test_business_info_failure_uses_placeholders(self, m_info, m_metrics):
        m_metrics.return_value = self.METRICS
        out = stripe_client.get_business_data('sk_test')
        self.assertEqual(out['business_name'], 'Unknown Business')
        self.assertIsNone(out['business_logo'])
        self.assertEqual(out['monthly_recurring_revenue'], 10.0)
        self.assertIn('last_updated', out)

    @patch('api.stripe_client.fetch_stripe_metrics', return_value=None)
    @patch('api.stripe_client.fetch_business_info')
    def test_missing_metrics_raise(self, m_info, m_metrics):
        m_info.return_value = {'name': 'Acme', 'logo': None, 'url': None, 'support_url': None}
        with self.assertRaises(stripe_client.MetricsUnavailable):
            stripe_client.get_business_data('sk_test')


class CheckoutSessionTests(TestCase):
    @override_settings(STRIPE_SECRET_KEY='sk_test_platform')
    @patch('stripe.checkout.Session.create')
    def test_creates_subscription_session_with_platform_key(self, m_create):
        m_create.return_value = {'id': 'cs_1', 'url': 'https://checkout.stripe.com/c/cs_1'}
        out = stripe_client.create_ad_checkout_session('home-1', 'price_1', 'https://trustmymrr.com')
        self.assertEqual(out, {'session_id': 'cs_1', 'url': 'https://checkout.stripe.com/c/cs_1'})
        kwargs = m_create.call_args.kwargs
        self.assertEqual(kwargs['api_key'], 'sk_test_platform')
        self.assertEqual(kwargs['mode'], 'subscription')
        self.assertEqual(kwargs['line_items'], [{'price': 'price_1', 'quantity': 1}])
        self.assertEqual(kwargs['success_url'], 'https://trustmymrr.com?ad_purchase=success&session_id={CHECKOUT_SESSION_ID}')
        self.assertEqual(kwargs['cancel_url'], 'https://trustmymrr.com?ad_purchase=cancelled')
        self.assertEqual(kwargs['metadata'], {'spotId': 'home-1', 'type': 'ad_purchase'})

    @override_settings(STRIPE_SECRET_KEY='')
    def test_missing_platform_key(self):
        with self.assertRaises(ImproperlyConfigured):
            stripe_client.create_ad_checkout_session('home-1', 'price_1', 'https://trustmymrr.com')
