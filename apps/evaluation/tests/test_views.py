from datetime import timedelta
from unittest import mock

from django.core.cache import cache
from django.db import OperationalError
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.catalog.models import Alert, AlertSegment, FeatureToggle, FeatureSegment

CHECK_URL = '/api/v1/public/features/check/'
WIDGET_URL = '/api/v1/public/alerts/widget/'


class PublicEndpointTestCase(APITestCase):
    def setUp(self):
        cache.clear()
        self.now = timezone.now()
        self.window = {
            'is_active_from': self.now - timedelta(days=1),
            'is_active_to': self.now + timedelta(days=1),
        }


class CheckFeaturesViewTest(PublicEndpointTestCase):
    def setUp(self):
        super().setUp()
        FeatureToggle.objects.create(name='open-feature', display_name='Open', **self.window)
        FeatureToggle.objects.create(name='off-feature', display_name='Off', is_enabled=False, **self.window)
        FeatureToggle.objects.create(
            name='staging-feature', display_name='Staging', environment='staging', **self.window)
        targeted = FeatureToggle.objects.create(
            name='premium-feature', display_name='Premium', targeting_enabled=True, **self.window)
        FeatureSegment.objects.create(feature=targeted, user_type='premium')

    def test_batch_check(self):
        response = self.client.post(CHECK_URL, {
            'features': ['open-feature', 'off-feature', 'staging-feature', 'premium-feature', 'unknown'],
            'userAttributes': {'userId': 'u1', 'userType': 'premium'},
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json(), {
            'open-feature': True,
            'off-feature': False,
            'staging-feature': False,
            'premium-feature': True,
            'unknown': False,
        })

    def test_environment_from_user_attributes(self):
        response = self.client.post(CHECK_URL, {
            'features': ['staging-feature'],
            'userAttributes': {'environment': 'staging'},
        }, format='json')
        self.assertEqual(response.json(), {'staging-feature': True})

    def test_targeted_feature_without_attributes_is_off(self):
        response = self.client.post(CHECK_URL, {'features': ['premium-feature', 'open-feature']}, format='json')
        self.assertEqual(response.json(), {'premium-feature': False, 'open-feature': True})

    def test_duplicate_names_collapse(self):
        response = self.client.post(CHECK_URL, {'features': ['open-feature', 'open-feature']}, format='json')
        self.assertEqual(response.json(), {'open-feature': True})

    def test_missing_features_array_is_rejected(self):
        response = self.client.post(CHECK_URL, {'userAttributes': {}}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()['error'], 'Features array is required')

    def test_features_must_be_a_list(self):
        response = self.client.post(CHECK_URL, {'features': 'open-feature'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unknown_user_attribute_is_rejected(self):
        response = self.client.post(CHECK_URL, {
            'features': ['open-feature'],
            'userAttributes': {'usertype': 'premium'},
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('usertype', response.json()['details']['userAttributes'])

    def test_padded_attribute_value_does_not_match_segment(self):
        response = self.client.post(CHECK_URL, {
            'features': ['premium-feature'],
            'userAttributes': {'userType': ' premium '},
        }, format='json')
        self.assertEqual(response.json(), {'premium-feature': False})

    def test_padded_environment_does_not_match(self):
        response = self.client.post(CHECK_URL, {
            'features': ['staging-feature'],
            'userAttributes': {'environment': 'staging '},
        }, format='json')
        self.assertEqual(response.json(), {'staging-feature': False})

    def test_long_current_page_is_accepted(self):
        response = self.client.post(CHECK_URL, {
            'features': ['open-feature'],
            'userAttributes': {'currentPage': '/search?q=' + 'x' * 500},
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json(), {'open-feature': True})

    def test_feature_names_are_echoed_verbatim(self):
        response = self.client.post(CHECK_URL, {'features': ['premium-feature ', 'open-feature']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json(), {'premium-feature ': False, 'open-feature': True})

    def test_blank_and_long_names_are_unknown_features(self):
        long_name = 'f' * 150
        response = self.client.post(CHECK_URL, {'features': ['open-feature', '', long_name]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json(), {'open-feature': True, '': False, long_name: False})

    def test_catalog_failure_degrades_to_all_disabled(self):
        with mock.patch(
            'apps.evaluation.views.CatalogRepository.list_feature_toggles_by_name',
            side_effect=OperationalError('database is gone'),
        ):
            response = self.client.post(CHECK_URL, {'features': ['open-feature', 'x']}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json(), {'open-feature': False, 'x': False})

    def test_health_check(self):
        response = self.client.get(CHECK_URL)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        body = response.json()
        self.assertEqual(body['status'], 'ok')
        # open, staging and premium toggles are enabled and active
        self.assertEqual(body['activeFeatures'], 3)
        self.assertIn('timestamp', body)

    def test_other_methods_are_not_allowed(self):
        response = self.client.put(CHECK_URL, {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)


class WidgetAlertsViewTest(PublicEndpointTestCase):
    def setUp(self):
        super().setUp()
        self.public_alert = Alert.objects.create(title='Everyone', body='Hello all', **self.window)
        self.premium_alert = Alert.objects.create(
            title='Premium', body='Hello premium', theme='modern', targeting_enabled=True, **self.window)
        AlertSegment.objects.create(alert=self.premium_alert, user_type='premium')
        Alert.objects.create(title='Disabled', body='-', is_enabled=False, **self.window)
        Alert.objects.create(
            title='Expired', body='-',
            is_active_from=self.now - timedelta(days=3),
            is_active_to=self.now - timedelta(days=2),
        )

    def titles(self, response):
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        return [alert['title'] for alert in response.json()]

    def test_anonymous_get_only_sees_untargeted(self):
        self.assertEqual(self.titles(self.client.get(WIDGET_URL)), ['Everyone'])

    def test_post_with_nested_attributes(self):
        response = self.client.post(WIDGET_URL, {'userAttributes': {'userType': 'premium'}}, format='json')
        self.assertEqual(self.titles(response), ['Premium', 'Everyone'])

    def test_post_with_flat_attributes(self):
        response = self.client.post(WIDGET_URL, {'userType': 'premium'}, format='json')
        self.assertEqual(self.titles(response), ['Premium', 'Everyone'])

    def test_get_with_query_attributes(self):
        response = self.client.get(WIDGET_URL, {'userType': 'premium'})
        self.assertEqual(self.titles(response), ['Premium', 'Everyone'])

    def test_padded_attribute_does_not_see_targeted_alert(self):
        response = self.client.post(WIDGET_URL, {'userAttributes': {'userType': 'premium '}}, format='json')
        self.assertEqual(self.titles(response), ['Everyone'])

    def test_non_matching_user(self):
        response = self.client.post(WIDGET_URL, {'userAttributes': {'userType': 'free'}}, format='json')
        self.assertEqual(self.titles(response), ['Everyone'])

    def test_empty_attributes_are_anonymous(self):
        response = self.client.post(WIDGET_URL, {'userAttributes': {'userType': ''}}, format='json')
        self.assertEqual(self.titles(response), ['Everyone'])

    def test_payload_omits_targeting_data(self):
        response = self.client.post(WIDGET_URL, {'userAttributes': {'userType': 'premium'}}, format='json')
        alert = response.json()[0]
        self.assertEqual(
            set(alert),
            {'id', 'title', 'body', 'theme', 'isActiveFrom', 'isActiveTo', 'createdAt'},
        )
        self.assertEqual(alert['id'], self.premium_alert.pk)
        self.assertEqual(alert['theme'], 'modern')

    def test_unknown_attribute_is_rejected(self):
        response = self.client.post(WIDGET_URL, {'userAttributes': {'plan': 'pro'}}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_catalog_failure_serves_no_alerts(self):
        with mock.patch(
            'apps.evaluation.views.CatalogRepository.list_active_alerts',
            side_effect=OperationalError('database is gone'),
        ):
            response = self.client.get(WIDGET_URL)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json(), [])


class PublicCorsTest(PublicEndpointTestCase):
    def test_preflight(self):
        response = self.client.options(
            CHECK_URL,
            HTTP_ORIGIN='https://shop.example',
            HTTP_ACCESS_CONTROL_REQUEST_METHOD='POST',
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response['Access-Control-Allow-Origin'], '*')
        self.assertEqual(response['Access-Control-Allow-Methods'], 'GET, POST, OPTIONS')
        self.assertEqual(response['Access-Control-Allow-Headers'], 'Content-Type, Authorization')
        self.assertEqual(response['Access-Control-Max-Age'], '86400')

    def test_headers_on_regular_responses(self):
        response = self.client.get(WIDGET_URL, HTTP_ORIGIN='https://shop.example')
        self.assertEqual(response['Access-Control-Allow-Origin'], '*')

    def test_headers_on_errors(self):
        response = self.client.post(CHECK_URL, {}, format='json', HTTP_ORIGIN='https://shop.example')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response['Access-Control-Allow-Origin'], '*')

    def test_management_api_is_not_open(self):
        response = self.client.get('/api/v1/alerts/', HTTP_ORIGIN='https://shop.example')
        self.assertNotEqual(response.get('Access-Control-Allow-Origin'), '*')
