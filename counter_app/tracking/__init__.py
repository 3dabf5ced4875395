"""
Ping tracking module.

Append-only logs of visit pings (active visitors) and visitor pings
(unique visitors per local day), with in-memory and Redis strategies.
"""

from .activity import (
    ActivityTrackerStrategy,
    InMemoryActivityTracker,
    RedisActivityTracker,
    count_visits,
)
from .visitors import VisitorTrackerStrategy, InMemoryVisitorTracker, RedisVisitorTracker
from .factory import TrackerFactory

__all__ = [
    "ActivityTrackerStrategy",
    "InMemoryActivityTracker",
    "RedisActivityTracker",
    "count_visits",
    "VisitorTrackerStrategy",
    "InMemoryVisitorTracker",
    "RedisVisitorTracker",
    "TrackerFactory",
]
