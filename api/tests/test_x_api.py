import threading

from django.test import TestCase, override_settings
from django.core.cache import cache
from unittest.mock import patch, MagicMock
import requests

from api import x_api


def _response(name='Jane Doe', image='https://pbs.twimg.com/profile_images/1/a_normal.jpg'):
    resp = MagicMock()
    resp.raise_for_status.return_value = None
    resp.json.return_value = {'data': {'id': '1', 'name': name, 'username': 'jane', 'profile_image_url': image}}
    return resp


@override_settings(X_BEARER_TOKEN='test-token')
class FetchXUserProfileTests(TestCase):
    def setUp(self):
        cache.clear()

    @patch('api.x_api.requests.get')
    def test_fetches_large_avatar_and_caches(self, m_get):
        m_get.return_value = _response()
        profile = x_api.fetch_x_user_profile('@Jane ')
        self.assertEqual(profile, {
            'profile_image_url': 'https://pbs.twimg.com/profile_images/1/a_400x400.jpg',
            'display_name': 'Jane Doe',
        })
        args, kwargs = m_get.call_args
        self.assertEqual(args[0], 'https://api.x.com/2/users/by/username/Jane')
        self.assertEqual(kwargs['headers'], {'Authorization': 'Bearer test-token'})
        self.assertEqual(kwargs['params'], {'user.fields': 'profile_image_url,name'})

        # second lookup, any case, is served from the cache
        self.assertEqual(x_api.fetch_x_user_profile('jane'), profile)
        self.assertEqual(m_get.call_count, 1)

    @patch('api.x_api.requests.get')
    def test_http_error_returns_none(self, m_get):
        resp = _response()
        resp.raise_for_status.side_effect = requests.HTTPError('404')
        m_get.return_value = resp
        self.assertIsNone(x_api.fetch_x_user_profile('ghost'))

    @patch('api.x_api.requests.get', side_effect=requests.ConnectionError('down'))
    def test_network_error_returns_none(self, m_get):
        self.assertIsNone(x_api.fetch_x_user_profile('jane'))

    @override_settings(X_BEARER_TOKEN='')
    @patch('api.x_api.requests.get')
    def test_missing_token_skips_request(self, m_get):
        self.assertIsNone(x_api.fetch_x_user_profile('jane'))
        m_get.assert_not_called()

    @patch('api.x_api.requests.get')
    def test_multiple_profiles_keyed_by_lowercase_handle(self, m_get):
        def fake_get(url, **kwargs):
            if url.endswith('/ghost'):
                resp = _response()
                resp.raise_for_status.side_effect = requests.HTTPError('404')
                return resp
            return _response(name=url.rsplit('/', 1)[-1])

        m_get.side_effect = fake_get
        cache.set(x_api.CACHE_PREFIX + 'cached', {'profile_image_url': '', 'display_name': 'From cache'})
        out = x_api.fetch_multiple_x_user_profiles(['Adam', 'adam', '@ghost', 'cached', ''])
        self.assertEqual(set(out), {'adam', 'cached'})
        self.assertEqual(out['cached']['display_name'], 'From cache')
        self.assertEqual(out['adam']['display_name'], 'Adam')
        # duplicates and cached handles are not requested
        self.assertEqual(m_get.call_count, 2)

    @patch('api.x_api.requests.get')
    def test_clear_cache_for_one_or_all(self, m_get):
        m_get.return_value = _response()
        x_api.fetch_x_user_profile('jane')
        x_api.fetch_x_user_profile('adam')
        x_api.clear_x_user_cache('JANE')
        self.assertIsNone(cache.get(x_api.CACHE_PREFIX + 'jane'))
        self.assertIsNotNone(cache.get(x_api.CACHE_PREFIX + 'adam'))
        x_api.clear_x_user_cache()
        self.assertIsNone(cache.get(x_api.CACHE_PREFIX + 'adam'))

    @patch('api.x_api.requests.get')
    def test_clear_all_after_parallel_batch_fetch(self, m_get):
        names = [f'user{i}' for i in range(8)]
        # every request waits until all eight are in flight
        barrier = threading.Barrier(len(names), timeout=5)

        def fake_get(url, **kwargs):
            barrier.wait()
            return _response(name=url.rsplit('/', 1)[-1])

        m_get.side_effect = fake_get
        out = x_api.fetch_multiple_x_user_profiles(names)
        self.assertEqual(set(out), set(names))
        self.assertEqual(sorted(cache.get(x_api.CACHE_INDEX_KEY)), sorted(x_api.CACHE_PREFIX + n for n in names))

        x_api.clear_x_user_cache()
        self.assertEqual([n for n in names if cache.get(x_api.CACHE_PREFIX + n) is not None], [])
