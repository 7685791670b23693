from django.test import TestCase
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken

from .factories import make_startup


class CookieAuthTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        User = get_user_model()
        self.staff = User.objects.create_user(username='staff', password='pw12345', is_staff=True)
        User.objects.create_user(username='plain', password='pw12345')

    def test_login_sets_cookies_and_authenticates_staff_calls(self):
        resp = self.client.post('/api/login-cookie/', {'username': 'staff', 'password': 'pw12345'}, format='json')
        self.assertEqual(resp.status_code, 200)
        for name in ('access_token', 'refresh_token', 'auth_token'):
            self.assertIn(name, resp.cookies)
            self.assertTrue(resp.cookies[name]['httponly'])

        me = self.client.get('/api/me/').json()
        self.assertEqual(me['user']['username'], 'staff')

        startup = make_startup()
        resp = self.client.patch(f'/api/startups/id/{startup.pk}/', {'description': 'cookie edit'}, format='json')
        self.assertEqual(resp.status_code, 200)

    def test_login_rejects_bad_password_and_non_staff(self):
        resp = self.client.post('/api/login-cookie/', {'username': 'staff', 'password': 'nope'}, format='json')
        self.assertEqual(resp.status_code, 400)
        resp = self.client.post('/api/login-cookie/', {'username': 'plain', 'password': 'pw12345'}, format='json')
        self.assertEqual(resp.status_code, 400)
        resp = self.client.post('/api/login-cookie/', {}, format='json')
        self.assertEqual(resp.json()['error'], 'username and password required')

    def test_me_anonymous(self):
        self.assertEqual(self.client.get('/api/me/').json(), {'user': None})

    def test_refresh_rotates_cookies(self):
        self.client.post('/api/login-cookie/', {'username': 'staff', 'password': 'pw12345'}, format='json')
        old_refresh = self.client.cookies['refresh_token'].value
        resp = self.client.post('/api/token/refresh-cookie/')
        self.assertEqual(resp.status_code, 200)
        self.assertIn('access_token', resp.cookies)
        self.assertNotEqual(resp.cookies['refresh_token'].value, old_refresh)

    def test_refresh_without_or_with_bad_cookie(self):
        self.assertEqual(self.client.post('/api/token/refresh-cookie/').status_code, 400)
        self.client.cookies['refresh_token'] = 'garbage'
        resp = self.client.post('/api/token/refresh-cookie/')
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()['error'], 'invalid refresh')

    def test_jwt_logout_blacklists_refresh_token(self):
        self.client.post('/api/login-cookie/', {'username': 'staff', 'password': 'pw12345'}, format='json')
        resp = self.client.post('/api/token/logout/')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(BlacklistedToken.objects.count(), 1)
        self.assertEqual(resp.cookies['access_token'].value, '')

    def test_token_header_auth(self):
        resp = self.client.post('/api/token-auth/', {'username': 'staff', 'password': 'pw12345'}, format='json')
        token = resp.json()['token']
        self.client.credentials(HTTP_AUTHORIZATION='Token ' + token)
        startup = make_startup()
        resp = self.client.delete(f'/api/startups/id/{startup.pk}/')
        self.assertEqual(resp.status_code, 204)

    def test_invalid_token_cookie(self):
        self.client.cookies['auth_token'] = 'not-a-token'
        startup = make_startup()
        resp = self.client.delete(f'/api/startups/id/{startup.pk}/')
        self.assertEqual(resp.status_code, 401)
