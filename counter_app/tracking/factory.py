"""
Factory for creating visit/visitor tracker instances.
Same backend switch as the counter store (settings.storage_backend).
"""

import logging

from redis.exceptions import RedisError

from .activity import ActivityTrackerStrategy, InMemoryActivityTracker, RedisActivityTracker
from .visitors import VisitorTrackerStrategy, InMemoryVisitorTracker, RedisVisitorTracker
from counter_app.config import settings
from counter_app.redis_client import connect_redis
from counter_app.storage.factory import StorageBackend

logger = logging.getLogger(__name__)


class TrackerFactory:
    """
    Simple factory for the two ping logs.

    Both trackers share one backend choice; each is cached separately.
    """

    _activity: ActivityTrackerStrategy = None
    _visitors: VisitorTrackerStrategy = None

    @classmethod
    def _redis_client(cls):
        try:
            return connect_redis()
        except RedisError as e:
            logger.warning("⚠️  Redis connection failed: %s", e)
            logger.warning("⚠️  Falling back to in-memory trackers")
            return None

    @classmethod
    def create_activity_tracker(cls, backend: StorageBackend) -> ActivityTrackerStrategy:
        """
        Create or return cached activity tracker.

        Args:
            backend: Type of storage backend (from enum)
        """
        if cls._activity is not None:
            return cls._activity

        if backend == StorageBackend.REDIS:
            client = cls._redis_client()
            if client is not None:
                cls._activity = RedisActivityTracker(client, key_prefix=settings.redis_key_prefix)
                logger.info("✅ Redis activity tracker initialized")
            else:
                cls._activity = InMemoryActivityTracker()

        elif backend == StorageBackend.MEMORY:
            cls._activity = InMemoryActivityTracker()
            logger.info("✅ In-memory activity tracker initialized")

        else:
            raise ValueError(f"Unknown storage backend: {backend}")

        return cls._activity

    @classmethod
    def create_visitor_tracker(cls, backend: StorageBackend) -> VisitorTrackerStrategy:
        """
        Create or return cached unique visitor tracker.

        Args:
            backend: Type of storage backend (from enum)
        """
        if cls._visitors is not None:
            return cls._visitors

        if backend == StorageBackend.REDIS:
            client = cls._redis_client()
            if client is not None:
                cls._visitors = RedisVisitorTracker(client, key_prefix=settings.redis_key_prefix)
                logger.info("✅ Redis visitor tracker initialized")
            else:
                cls._visitors = InMemoryVisitorTracker()

        elif backend == StorageBackend.MEMORY:
            cls._visitors = InMemoryVisitorTracker()
            logger.info("✅ In-memory visitor tracker initialized")

        else:
            raise ValueError(f"Unknown storage backend: {backend}")

        return cls._visitors

    @classmethod
    def clear_instances(cls):
        """Clear cached instances (for testing)"""
        cls._activity = None
        cls._visitors = None
