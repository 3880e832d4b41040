# apps/evaluation/client.py
"""Client for the public feature-check and widget-alert endpoints.

Meant for services that embed Beacon. Feature results are cached per
(feature set, user attributes) for ``cache_timeout`` seconds; any change of
user attributes drops the whole cache. Failures never reach the caller:
features read as disabled and no alerts are shown.
"""
import json
import logging
import threading
import time

import requests
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from .types import DEFAULT_ENVIRONMENT, UnknownAttributeError, UserContext

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TIMEOUT = 300


def _is_transient(exc):
    if isinstance(exc, (requests.ConnectionError, requests.Timeout)):
        return True
    # only 5xx responses are retried
    if isinstance(exc, requests.HTTPError) and exc.response is not None:
        return exc.response.status_code >= 500
    return False


class FeatureToggleClient:
    def __init__(
        self,
        api_url,
        alerts_url=None,
        user_attributes=None,
        user_id=None,
        environment=DEFAULT_ENVIRONMENT,
        cache_timeout=DEFAULT_CACHE_TIMEOUT,
        timeout=5,
        session=None,
    ):
        self.api_url = api_url
        self.alerts_url = alerts_url
        self.user_attributes = self._checked(user_attributes or {})
        self.user_id = user_id
        self.environment = environment
        self.cache_timeout = cache_timeout
        self.timeout = timeout
        self.session = session or requests.Session()
        self._cache = {}
        self._lock = threading.Lock()

    @staticmethod
    def _checked(attributes):
        unknown = set(attributes) - set(UserContext.ATTRIBUTE_KEYS)
        if unknown:
            raise UnknownAttributeError(unknown)
        return dict(attributes)

    def get_user_attributes(self):
        attributes = {key: value for key, value in self.user_attributes.items() if value is not None}
        if self.environment:
            attributes['environment'] = self.environment
        if self.user_id:
            attributes['userId'] = self.user_id
        return attributes

    def _cache_key(self, features):
        return json.dumps(
            {'features': sorted(set(features)), 'userAttributes': self.get_user_attributes()},
            sort_keys=True,
        )

    def _cached(self, key):
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None
            results, stored_at = entry
            if time.monotonic() - stored_at >= self.cache_timeout:
                del self._cache[key]
                return None
            return results

    @retry(
        retry=retry_if_exception(_is_transient),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        reraise=True,
    )
    def _post(self, url, payload):
        response = self.session.post(url, json=payload, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def check_features(self, features):
        if isinstance(features, str):
            features = [features]
        features = list(features)

        key = self._cache_key(features)
        cached = self._cached(key)
        if cached is not None:
            logger.debug(f"Returning cached result for features: {features}")
            return dict(cached)

        try:
            results = self._post(self.api_url, {
                'features': features,
                'userAttributes': self.get_user_attributes(),
            })
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Failed to check features {features}: {e}")
            return {feature: False for feature in features}

        with self._lock:
            self._cache[key] = (dict(results), time.monotonic())
        return dict(results)

    def check(self, feature_name):
        return bool(self.check_features([feature_name]).get(feature_name, False))

    def preload(self, features):
        self.check_features(features)

    def clear_cache(self):
        with self._lock:
            self._cache.clear()
        logger.debug("Feature cache cleared")

    def refresh(self, features=None):
        if features is None:
            self.clear_cache()
            return None
        if isinstance(features, str):
            features = [features]
        with self._lock:
            self._cache.pop(self._cache_key(features), None)
        return self.check_features(features)

    def update_user_attributes(self, user_attributes=None, user_id=None, environment=None):
        old_attributes = self.get_user_attributes()

        if user_attributes is not None:
            self.user_attributes = self._checked(user_attributes)
        if user_id is not None:
            self.user_id = user_id
        if environment is not None:
            self.environment = environment

        if self.get_user_attributes() != old_attributes:
            self.clear_cache()
            logger.debug("User attributes changed, cache cleared")

    def cache_stats(self):
        with self._lock:
            return {'size': len(self._cache), 'keys': list(self._cache)}

    def fetch_alerts(self):
        if not self.alerts_url:
            return []
        try:
            return self._post(self.alerts_url, {'userAttributes': self.get_user_attributes()})
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Failed to fetch alerts: {e}")
            return []
