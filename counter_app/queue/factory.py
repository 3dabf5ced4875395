"""
Factory for creating queue instances.
Simple, clean factory with singleton caching.
"""

import logging
from enum import Enum

from redis.exceptions import RedisError

from .strategies import QueueStrategy, RedisStreamQueue, InMemoryQueue
from counter_app.config import settings
from counter_app.redis_client import connect_redis

logger = logging.getLogger(__name__)


class QueueBackend(Enum):
    """Available queue backends"""
    REDIS_STREAMS = "redis_streams"
    MEMORY = "memory"


class QueueFactory:
    """
    Simple factory for creating queue instances.

    Gets configuration from settings (not passed as parameters).
    """

    _instance: QueueStrategy = None  # Single cached instance

    @classmethod
    def create(cls, backend: QueueBackend) -> QueueStrategy:
        """
        Create or return cached queue instance.

        Args:
            backend: Type of queue backend (from enum)

        Returns:
            Singleton queue instance
        """
        # Return cached instance if exists
        if cls._instance is not None:
            return cls._instance

        if backend == QueueBackend.REDIS_STREAMS:
            try:
                redis_client = connect_redis()
                cls._instance = RedisStreamQueue(
                    redis_client,
                    consumer_group=settings.queue_consumer_group,
                    consumer_name=settings.queue_consumer_name or None,
                    claim_idle_ms=settings.queue_claim_idle_ms
                )
                logger.info("✅ Redis queue initialized")

            except RedisError as e:
                logger.warning("⚠️  Redis connection failed: %s", e)
                logger.warning("⚠️  Falling back to in-memory queue")
                cls._instance = InMemoryQueue()

        elif backend == QueueBackend.MEMORY:
            cls._instance = InMemoryQueue()
            logger.info("✅ In-memory queue initialized")

        else:
            raise ValueError(f"Unknown queue backend: {backend}")

        return cls._instance

    @classmethod
    def clear_instance(cls):
        """Clear cached instance (for testing)"""
        cls._instance = None
