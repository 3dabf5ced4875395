"""
Test configuration and fixtures for the site counter.
This centralizes all test setup, making individual tests clean.
"""

import uuid
from datetime import datetime, timezone

import pytest
from redis.exceptions import RedisError

from counter_app import dependencies
from counter_app.queue.factory import QueueFactory
from counter_app.redis_client import connect_redis
from counter_app.schemas.site import SiteRef
from counter_app.services.counter_service import SiteCounterService
from counter_app.storage.factory import CounterStoreFactory
from counter_app.storage.strategies import InMemoryCounterStore, RedisCounterStore
from counter_app.tracking.activity import InMemoryActivityTracker, RedisActivityTracker
from counter_app.tracking.factory import TrackerFactory
from counter_app.tracking.visitors import InMemoryVisitorTracker, RedisVisitorTracker

SITE_TOKEN = "4d73838feca02647cd000001"


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


class FrozenClock:
    """now_provider that only moves when a test says so"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def freeze(self, now: datetime):
        self.now = now


@pytest.fixture(autouse=True)
def clear_singletons():
    """Every test starts with fresh factory and dependency singletons"""
    yield
    CounterStoreFactory.clear_instance()
    TrackerFactory.clear_instances()
    QueueFactory.clear_instance()
    for getter in (
        dependencies.get_counter_store,
        dependencies.get_activity_tracker,
        dependencies.get_visitor_tracker,
        dependencies.get_queue,
        dependencies.get_counter_service,
    ):
        getter.cache_clear()


@pytest.fixture
def redis_namespace():
    """
    Live Redis client plus a throwaway key prefix.
    Skips the test when Redis isn't reachable.
    """
    try:
        client = connect_redis()
    except RedisError as e:
        pytest.skip(f"Redis not available: {e}")

    prefix = f"test-{uuid.uuid4().hex[:12]}"
    yield client, prefix

    keys = list(client.scan_iter(f"{prefix}:*"))
    if keys:
        client.delete(*keys)


@pytest.fixture(params=["memory", "redis"])
def counter_store(request):
    if request.param == "memory":
        return InMemoryCounterStore()
    client, prefix = request.getfixturevalue("redis_namespace")
    return RedisCounterStore(client, key_prefix=prefix)


@pytest.fixture(params=["memory", "redis"])
def activity_tracker(request):
    if request.param == "memory":
        return InMemoryActivityTracker()
    client, prefix = request.getfixturevalue("redis_namespace")
    return RedisActivityTracker(client, key_prefix=prefix)


@pytest.fixture(params=["memory", "redis"])
def visitor_tracker(request):
    if request.param == "memory":
        return InMemoryVisitorTracker()
    client, prefix = request.getfixturevalue("redis_namespace")
    return RedisVisitorTracker(client, key_prefix=prefix)


@pytest.fixture
def clock():
    return FrozenClock(utc(2011, 1, 1))


@pytest.fixture
def site():
    return SiteRef(site_id=SITE_TOKEN, time_zone="Europe/Helsinki")


@pytest.fixture
def service(clock):
    """Service over fresh in-memory parts with a frozen clock"""
    return SiteCounterService(
        counters=InMemoryCounterStore(),
        activity=InMemoryActivityTracker(),
        visitors=InMemoryVisitorTracker(),
        now_provider=clock,
        active_window=900,
        session_gap=300,
    )
