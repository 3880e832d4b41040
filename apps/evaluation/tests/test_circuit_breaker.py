from unittest import mock

from django.core.cache import cache
from django.db import OperationalError
from django.test import SimpleTestCase

from apps.evaluation.circuit_breaker import CircuitBreaker, CircuitState


class CircuitBreakerTest(SimpleTestCase):
    def setUp(self):
        cache.clear()
        self.calls = 0
        self.failing = True
        self.breaker = CircuitBreaker(
            failure_threshold=2,
            recovery_timeout=30,
            expected_exception=OperationalError,
            fallback=lambda *args, **kwargs: 'fallback',
        )

        @self.breaker
        def load(value):
            self.calls += 1
            if self.failing:
                raise OperationalError('boom')
            return value

        self.load = load

    def state(self):
        return self.breaker.get_state(self.load.circuit_name)

    def test_success_passes_through(self):
        self.failing = False
        self.assertEqual(self.load('ok'), 'ok')
        self.assertEqual(self.state()['state'], CircuitState.CLOSED.value)

    def test_failure_serves_fallback(self):
        self.assertEqual(self.load('ok'), 'fallback')
        self.assertEqual(self.state()['failure_count'], 1)
        self.assertEqual(self.state()['state'], CircuitState.CLOSED.value)

    def test_opens_after_threshold_and_short_circuits(self):
        self.load('a')
        self.load('a')
        self.assertEqual(self.state()['state'], CircuitState.OPEN.value)

        self.assertEqual(self.load('a'), 'fallback')
        self.assertEqual(self.calls, 2)

    @mock.patch('apps.evaluation.circuit_breaker.time.time')
    def test_half_open_probe_closes_on_success(self, mock_time):
        mock_time.return_value = 1000.0
        self.load('a')
        self.load('a')

        mock_time.return_value = 1031.0
        self.failing = False
        self.assertEqual(self.load('b'), 'b')
        self.assertEqual(self.state(), {
            'state': CircuitState.CLOSED.value,
            'failure_count': 0,
            'last_failure_time': None,
        })

    @mock.patch('apps.evaluation.circuit_breaker.time.time')
    def test_failed_probe_reopens(self, mock_time):
        mock_time.return_value = 1000.0
        self.load('a')
        self.load('a')

        mock_time.return_value = 1031.0
        self.assertEqual(self.load('a'), 'fallback')
        self.assertEqual(self.state()['state'], CircuitState.OPEN.value)
        self.assertEqual(self.calls, 3)

        # still inside the fresh recovery window
        mock_time.return_value = 1040.0
        self.load('a')
        self.assertEqual(self.calls, 3)

    def test_unexpected_exceptions_propagate(self):
        breaker = CircuitBreaker(expected_exception=OperationalError)

        @breaker
        def broken():
            raise KeyError('bug')

        with self.assertRaises(KeyError):
            broken()
        self.assertEqual(breaker.get_state(broken.circuit_name)['failure_count'], 0)

    def test_missing_fallback_returns_none(self):
        breaker = CircuitBreaker(expected_exception=OperationalError)

        @breaker
        def broken():
            raise OperationalError('boom')

        self.assertIsNone(broken())

    def test_reset(self):
        self.load('a')
        self.load('a')
        self.breaker.reset(self.load.circuit_name)
        self.failing = False
        self.assertEqual(self.load('c'), 'c')
        self.assertEqual(self.calls, 3)
