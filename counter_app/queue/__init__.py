"""
Event queue module for the site counter.
Implements Strategy Pattern for flexible queue backends.
"""

from .strategies import QueueStrategy, RedisStreamQueue, InMemoryQueue
from .factory import QueueFactory, QueueBackend
from .models import PageviewEvent, VisitEvent, VisitorEvent, TrackingEvent

__all__ = [
    "QueueStrategy",
    "RedisStreamQueue",
    "InMemoryQueue",
    "QueueFactory",
    "QueueBackend",
    "PageviewEvent",
    "VisitEvent",
    "VisitorEvent",
    "TrackingEvent",
]
