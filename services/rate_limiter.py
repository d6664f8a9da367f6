# services/rate_limiter.py

import logging

import redis
from db.extensions import redis_client

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Fixed-window attempt counter kept in Redis.

    Each identifier gets a key that expires with the window, so counts reset
    without a cleanup job. When Redis is unreachable the limiter lets requests
    through and logs the failure.
    """

    def __init__(self, prefix, max_attempts=5, window_seconds=15 * 60, client=None):
        self.prefix = prefix
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self._client = client

    @property
    def client(self):
        return self._client if self._client is not None else redis_client

    def _key(self, identifier):
        return f'{self.prefix}:{identifier}'

    def is_rate_limited(self, identifier):
        try:
            count = self.client.get(self._key(identifier))
        except redis.exceptions.RedisError as e:
            logger.error(f"Rate limiter unavailable, allowing request: {str(e)}")
            return False
        return count is not None and int(count) >= self.max_attempts

    def record_attempt(self, identifier):
        key = self._key(identifier)
        try:
            count = self.client.incr(key)
            if count == 1:
                self.client.expire(key, self.window_seconds)
            return count
        except redis.exceptions.RedisError as e:
            logger.error(f"Could not record attempt for {identifier}: {str(e)}")
            return None

    def remaining_seconds(self, identifier):
        try:
            ttl = self.client.ttl(self._key(identifier))
        except redis.exceptions.RedisError:
            return 0
        return max(0, ttl or 0)

    def reset(self, identifier):
        try:
            self.client.delete(self._key(identifier))
        except redis.exceptions.RedisError as e:
            logger.error(f"Could not reset attempts for {identifier}: {str(e)}")
