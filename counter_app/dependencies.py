"""
Singleton wiring for hosts embedding the counter.

This module builds the counter store, trackers, queue and service once
from settings, so every caller in a process shares the same instances.

Pattern: Dependency Injection
- Loose coupling between components
- Easy to test (construct SiteCounterService with your own parts)
- Flexible (swap implementations via config)
"""

from datetime import datetime, timezone
from functools import lru_cache

from counter_app.config import settings
from counter_app.queue.factory import QueueBackend, QueueFactory
from counter_app.queue.strategies import QueueStrategy
from counter_app.services.counter_service import SiteCounterService
from counter_app.storage.factory import CounterStoreFactory, StorageBackend
from counter_app.storage.strategies import CounterStoreStrategy
from counter_app.tracking.activity import ActivityTrackerStrategy
from counter_app.tracking.factory import TrackerFactory
from counter_app.tracking.visitors import VisitorTrackerStrategy


def utc_now() -> datetime:
    """The host's clock; the counter core itself never calls this"""
    return datetime.now(timezone.utc)


@lru_cache()
def get_counter_store() -> CounterStoreStrategy:
    """Get counter store instance (singleton)"""
    return CounterStoreFactory.create(StorageBackend(settings.storage_backend))


@lru_cache()
def get_activity_tracker() -> ActivityTrackerStrategy:
    """Get visit ping log instance (singleton)"""
    return TrackerFactory.create_activity_tracker(StorageBackend(settings.storage_backend))


@lru_cache()
def get_visitor_tracker() -> VisitorTrackerStrategy:
    """Get visitor ping log instance (singleton)"""
    return TrackerFactory.create_visitor_tracker(StorageBackend(settings.storage_backend))


@lru_cache()
def get_queue() -> QueueStrategy:
    """Get queue instance (singleton)"""
    return QueueFactory.create(QueueBackend(settings.queue_backend))


@lru_cache()
def get_counter_service() -> SiteCounterService:
    """
    Get SiteCounterService with all dependencies injected.

    Uses the wall clock as "now"; tests and replays build their own
    service with a fixed now_provider instead.
    """
    return SiteCounterService(
        counters=get_counter_store(),
        activity=get_activity_tracker(),
        visitors=get_visitor_tracker(),
        now_provider=utc_now,
    )
