"""
Factory for creating counter store instances.
Simple, clean factory with singleton caching.
"""

import logging
from enum import Enum

from redis.exceptions import RedisError

from .strategies import CounterStoreStrategy, InMemoryCounterStore, RedisCounterStore
from counter_app.config import settings
from counter_app.redis_client import connect_redis

logger = logging.getLogger(__name__)


class StorageBackend(Enum):
    """Available storage backends (shared by counters and trackers)"""
    MEMORY = "memory"
    REDIS = "redis"


class CounterStoreFactory:
    """
    Simple factory for creating counter store instances.

    Gets configuration from settings (not passed as parameters).
    """

    _instance: CounterStoreStrategy = None  # Single cached instance

    @classmethod
    def create(cls, backend: StorageBackend) -> CounterStoreStrategy:
        """
        Create or return cached counter store instance.

        Args:
            backend: Type of storage backend (from enum)

        Returns:
            Singleton counter store instance
        """
        # Return cached instance if exists
        if cls._instance is not None:
            return cls._instance

        if backend == StorageBackend.REDIS:
            try:
                redis_client = connect_redis()
                cls._instance = RedisCounterStore(redis_client, key_prefix=settings.redis_key_prefix)
                logger.info("✅ Redis counter store initialized")

            except RedisError as e:
                logger.warning("⚠️  Redis connection failed: %s", e)
                logger.warning("⚠️  Falling back to in-memory counter store")
                cls._instance = InMemoryCounterStore()

        elif backend == StorageBackend.MEMORY:
            cls._instance = InMemoryCounterStore()
            logger.info("✅ In-memory counter store initialized")

        else:
            raise ValueError(f"Unknown storage backend: {backend}")

        return cls._instance

    @classmethod
    def clear_instance(cls):
        """Clear cached instance (for testing)"""
        cls._instance = None
