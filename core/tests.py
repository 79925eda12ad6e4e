"""
Tests for the Redis rate limiter.

Test Cases:
1. An unreachable Redis is not reconnected on every request
2. Reconnect after the retry window
3. One client lookup per limited request
"""
from unittest.mock import MagicMock, patch

import redis
from django.test import SimpleTestCase, override_settings
from rest_framework.response import Response

from core import rate_limiting


def _ok():
    return Response({'ok': True})


@override_settings(RATE_LIMIT_ENABLED=True, REDIS_URL='redis://localhost:6379/0')
class RedisClientTestCase(SimpleTestCase):

    def setUp(self):
        for name, value in (('_redis_client', None), ('_retry_connect_at', 0.0)):
            patcher = patch.object(rate_limiting, name, value)
            patcher.start()
            self.addCleanup(patcher.stop)

        self.broken = MagicMock()
        self.broken.ping.side_effect = redis.ConnectionError('Connection refused')

    def test_failed_connect_is_not_retried_immediately(self):
        """
        Test: Redis outage does not cost a connect attempt per request.

        Given: Redis refuses connections
        When: Two requests ask for a client back to back
        Then: Both get None and only one connect is attempted
        """
        with patch.object(redis.Redis, 'from_url', return_value=self.broken) as from_url:
            self.assertIsNone(rate_limiting.get_redis_client())
            self.assertIsNone(rate_limiting.get_redis_client())

        from_url.assert_called_once()

    def test_reconnects_after_retry_window(self):
        healthy = MagicMock()
        clock = [100.0, 100.0, 100.0 + rate_limiting.CONNECT_RETRY_SECONDS + 1]

        with patch.object(redis.Redis, 'from_url', side_effect=[self.broken, healthy]), \
                patch('core.rate_limiting.time') as fake_time:
            fake_time.monotonic.side_effect = clock
            self.assertIsNone(rate_limiting.get_redis_client())
            self.assertIs(rate_limiting.get_redis_client(), healthy)

        # Cached from now on
        self.assertIs(rate_limiting.get_redis_client(), healthy)

    def test_limited_call_fails_open_with_single_connect(self):
        with patch.object(redis.Redis, 'from_url', return_value=self.broken) as from_url:
            response = rate_limiting._limited_call('post:Checkout', MagicMock(), 5, 60, _ok)

        self.assertEqual(response.data, {'ok': True})
        from_url.assert_called_once()

    def test_limited_call_uses_one_client(self):
        client = MagicMock()
        client.incr.return_value = 1
        client.ttl.return_value = 60
        request = MagicMock()
        request.user.is_authenticated = True
        request.user.pk = 7

        with patch('core.rate_limiting.get_redis_client', return_value=client) as get_client:
            response = rate_limiting._limited_call('post:Checkout', request, 5, 60, _ok)

        get_client.assert_called_once()
        client.incr.assert_called_once_with('rate_limit:post:Checkout:user:7')
        client.expire.assert_called_once_with('rate_limit:post:Checkout:user:7', 60)
        self.assertEqual(response['X-RateLimit-Remaining'], '4')
