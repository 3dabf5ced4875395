"""
Counter storage module.

This module implements the Strategy Pattern for pluggable pageview
counter storage (in-memory or Redis).
"""

from .strategies import CounterStoreStrategy, InMemoryCounterStore, RedisCounterStore
from .factory import CounterStoreFactory, StorageBackend

__all__ = [
    "CounterStoreStrategy",
    "InMemoryCounterStore",
    "RedisCounterStore",
    "CounterStoreFactory",
    "StorageBackend",
]
