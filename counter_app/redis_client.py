"""
Shared Redis connection setup for the Redis-backed strategies.
"""

import redis

from counter_app.config import settings


def connect_redis(url: str = None) -> redis.Redis:
    """
    Create a Redis client and test the connection immediately.

    Args:
        url: Redis URL (defaults to settings.redis_url)

    Raises:
        redis.exceptions.RedisError: if the server can't be reached
    """
    client = redis.from_url(
        url or settings.redis_url,
        decode_responses=False,
        socket_connect_timeout=2,
        socket_timeout=2,
    )
    client.ping()
    return client
