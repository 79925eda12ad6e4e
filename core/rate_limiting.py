"""
Redis-based rate limiting for API endpoints.

Fixed window counter keyed by endpoint and caller (user id when
authenticated, client IP otherwise). Used to slow down coupon code
guessing and checkout flooding.
"""
import logging
import time
from functools import wraps
from typing import Optional, Tuple

import redis
from django.conf import settings
from rest_framework import status
from rest_framework.response import Response

logger = logging.getLogger(__name__)

_redis_client = None
_retry_connect_at = 0.0

# Seconds to wait after a failed connect before trying Redis again
CONNECT_RETRY_SECONDS = 30


def get_redis_client() -> Optional[redis.Redis]:
    """
    Lazily connect to Redis; returns None when it is unreachable.

    After a failed connect, returns None without connecting for
    CONNECT_RETRY_SECONDS.
    """
    global _redis_client, _retry_connect_at
    if _redis_client is None:
        if time.monotonic() < _retry_connect_at:
            return None
        try:
            client = redis.Redis.from_url(
                settings.REDIS_URL,
                decode_responses=True,
                socket_connect_timeout=5
            )
            client.ping()
        except (redis.ConnectionError, redis.TimeoutError) as e:
            logger.warning(f"Redis connection failed: {e}. Rate limiting will be disabled.")
            _retry_connect_at = time.monotonic() + CONNECT_RETRY_SECONDS
            return None
        _redis_client = client
    return _redis_client


def get_client_ip(request):
    """Extract client IP address from request."""
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0].strip()
    else:
        ip = request.META.get('REMOTE_ADDR', 'unknown')
    return ip


def get_caller_identity(request) -> str:
    user = getattr(request, 'user', None)
    if user is not None and user.is_authenticated:
        return f"user:{user.pk}"
    return f"ip:{get_client_ip(request)}"


def _limit_response(max_requests: int, window_seconds: int, ttl: int) -> Response:
    return Response(
        {
            'success': False,
            'message': 'Rate limit exceeded',
            'detail': f'Maximum {max_requests} requests per {window_seconds} seconds allowed.',
            'retry_after': ttl
        },
        status=status.HTTP_429_TOO_MANY_REQUESTS,
        headers={
            'X-RateLimit-Limit': str(max_requests),
            'X-RateLimit-Remaining': '0',
            'X-RateLimit-Reset': str(ttl),
            'Retry-After': str(ttl)
        }
    )


def _hit(client: redis.Redis, key: str, window_seconds: int) -> Tuple[int, int]:
    current_count = client.incr(key)
    if current_count == 1:
        client.expire(key, window_seconds)
    return current_count, client.ttl(key)


def _limited_call(scope, request, max_requests, window_seconds, call):
    if not getattr(settings, 'RATE_LIMIT_ENABLED', True):
        return call()

    client = get_redis_client()
    if client is None:
        return call()

    try:
        key = f"rate_limit:{scope}:{get_caller_identity(request)}"
        current_count, ttl = _hit(client, key, window_seconds)
    except redis.RedisError as e:
        logger.error(f"Redis error in rate limiting: {e}")
        # Fail open
        return call()

    if current_count > max_requests:
        logger.warning(f"Rate limit exceeded for {key}")
        return _limit_response(max_requests, window_seconds, ttl)

    response = call()
    response['X-RateLimit-Limit'] = str(max_requests)
    response['X-RateLimit-Remaining'] = str(max(0, max_requests - current_count))
    response['X-RateLimit-Reset'] = str(ttl)
    return response


def rate_limit(max_requests: Optional[int] = None, window_seconds: int = 60,
               setting_name: Optional[str] = None):
    """
    Rate limiting decorator for DRF view methods.

    Args:
        max_requests: Maximum number of requests allowed in the window
        window_seconds: Time window in seconds
        setting_name: Django setting holding max_requests (read per request)

    Usage:
        @rate_limit(setting_name='COUPON_VALIDATE_RATE_LIMIT')
        def post(self, request):
            ...
    """
    def decorator(view_func):
        @wraps(view_func)
        def wrapper(self, request, *args, **kwargs):
            limit = max_requests
            if setting_name:
                limit = getattr(settings, setting_name, limit or 20)
            return _limited_call(
                view_func.__name__ + ':' + self.__class__.__name__,
                request,
                limit or 20,
                window_seconds,
                lambda: view_func(self, request, *args, **kwargs),
            )
        return wrapper
    return decorator


class RateLimitMixin:
    """
    Mixin for class-based views limiting unsafe (write) requests.

    Usage:
        class MyView(RateLimitMixin, APIView):
            rate_limit_setting = 'CHECKOUT_RATE_LIMIT'
            rate_limit_window_seconds = 60
    """
    rate_limit_max_requests = 20
    rate_limit_setting = None
    rate_limit_window_seconds = 60

    def get_rate_limit(self) -> int:
        if self.rate_limit_setting:
            return getattr(settings, self.rate_limit_setting, self.rate_limit_max_requests)
        return self.rate_limit_max_requests

    def post(self, request, *args, **kwargs):
        return _limited_call(
            self.__class__.__name__,
            request,
            self.get_rate_limit(),
            self.rate_limit_window_seconds,
            lambda: super(RateLimitMixin, self).post(request, *args, **kwargs),
        )
