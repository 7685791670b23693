from datetime import timedelta

from django.test import TestCase, override_settings
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient
from unittest.mock import patch

from api.models import Ad
from .factories import make_startup


class AdAPITest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.staff = get_user_model().objects.create_user(username='staff', password='pw', is_staff=True)
        self.startup = make_startup(website='https://acme.io', description='Verified MRR')
        now = timezone.now()
        self.ad = Ad.objects.create(
            spot_id='home-1', startup=self.startup, tagline='Grow faster', status=Ad.STATUS_ACTIVE,
            starts_at=now - timedelta(days=1), expires_at=now + timedelta(days=29),
        )

    def test_active_ads_are_public(self):
        resp = self.client.get('/api/ads/')
        self.assertEqual(resp.status_code, 200)
        ad = resp.json()[0]
        self.assertEqual(ad['spot_id'], 'home-1')
        self.assertTrue(ad['is_active'])
        self.assertEqual(ad['startup']['slug'], 'acme')
        self.assertEqual(ad['startup']['tagline'], 'Grow faster')

    def test_spot_availability(self):
        taken = self.client.get('/api/ads/spots/home-1/').json()
        self.assertFalse(taken['available'])
        self.assertEqual(taken['ad']['id'], self.ad.pk)
        free = self.client.get('/api/ads/spots/home-2/').json()
        self.assertTrue(free['available'])
        self.assertIsNone(free['ad'])

    def test_purchase_requires_staff(self):
        resp = self.client.post('/api/ads/', {'spot_id': 'home-2', 'startup': self.startup.pk}, format='json')
        self.assertIn(resp.status_code, (401, 403))

    def test_purchase_and_conflict(self):
        self.client.force_authenticate(user=self.staff)
        resp = self.client.post('/api/ads/', {'spot_id': 'home-2', 'startup': self.startup.pk, 'duration_months': 3}, format='json')
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.json()['status'], 'pending')
        resp = self.client.post('/api/ads/', {'spot_id': 'home-1', 'startup': self.startup.pk}, format='json')
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()['error'], 'This ad spot is already taken for the selected period')

    def test_status_and_cancel(self):
        self.client.force_authenticate(user=self.staff)
        resp = self.client.patch(f'/api/ads/{self.ad.pk}/status/', {'status': 'expired'}, format='json')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()['status'], 'expired')
        resp = self.client.patch(f'/api/ads/{self.ad.pk}/status/', {'status': 'bogus'}, format='json')
        self.assertEqual(resp.status_code, 400)
        resp = self.client.post(f'/api/ads/{self.ad.pk}/cancel/')
        self.assertEqual(resp.json()['status'], 'cancelled')
        self.assertEqual(self.client.post('/api/ads/999/cancel/').status_code, 404)


@override_settings(TRUSTMRR_BASE_URL='https://trustmymrr.com')
class AdCheckoutAPITest(TestCase):
    def setUp(self):
        self.client = APIClient()

    def test_missing_fields(self):
        resp = self.client.post('/api/checkout/ad/', {'spotId': 'home-1'}, format='json')
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()['error'], 'Missing required fields: spotId or stripePriceId')

    @patch('api.stripe_client.create_ad_checkout_session')
    def test_creates_session(self, m_create):
        m_create.return_value = {'session_id': 'cs_1', 'url': 'https://checkout.stripe.com/c/cs_1'}
        resp = self.client.post('/api/checkout/ad/', {'spotId': 'home-1', 'stripePriceId': 'price_1'}, format='json')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {'success': True, 'session_id': 'cs_1', 'url': 'https://checkout.stripe.com/c/cs_1'})
        m_create.assert_called_once_with('home-1', 'price_1', 'https://trustmymrr.com')

    @patch('api.stripe_client.create_ad_checkout_session', side_effect=Exception('No such price'))
    def test_provider_error(self, m_create):
        resp = self.client.post('/api/checkout/ad/', {'spotId': 'home-1', 'stripePriceId': 'price_x'}, format='json')
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json()['error'], 'No such price')
