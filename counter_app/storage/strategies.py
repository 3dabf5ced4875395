"""
Counter store strategies using Strategy Pattern.

Allows switching where pageview counts live:
- InMemory: Development/testing, single process
- Redis: Shared between processes and workers, atomic HINCRBY

Both keep the same logical layout, one sparse document per (site, year):

    site -> year -> month(1..12) -> day(1..31) -> hour(0..23) -> count

A bucket that was never incremented reads as 0.
"""

import threading
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple

from counter_app.clock import HOURS_PER_DAY, HourBucket, check_calendar_day

MONTHS_PER_YEAR = 12
MAX_DAYS_PER_MONTH = 31
GRID_SIZE = MONTHS_PER_YEAR * MAX_DAYS_PER_MONTH * HOURS_PER_DAY


class CounterStoreStrategy(ABC):
    """
    Abstract base class for counter stores.

    Writes only ever add 1 to a bucket; reads are dense (every hour of the
    requested day is reported, zero-filled). Reading an unknown site is not
    an error.
    """

    @abstractmethod
    def increment(self, site_id: str, bucket: HourBucket) -> None:
        """
        Add one pageview to a bucket, creating the (site, year) document
        if it doesn't exist yet.

        Args:
            site_id: Site token
            bucket: Local (year, month, day, hour) of the pageview
        """
        pass

    @abstractmethod
    def hour_counts(self, site_id: str, year: int, month: int, day: int) -> List[Tuple[int, int]]:
        """
        Get pageviews per hour for one local day.

        Returns:
            Exactly 24 (hour, count) pairs in ascending hour order

        Raises:
            InvalidArgument: if (year, month, day) is not a real day
        """
        pass

    def day_total(self, site_id: str, year: int, month: int, day: int) -> int:
        """Total pageviews for one local day"""
        return sum(count for _, count in self.hour_counts(site_id, year, month, day))

    @abstractmethod
    def has_any_count(self, site_id: str) -> bool:
        """True once any pageview has ever been counted for the site"""
        pass


def _grid_offset(month: int, day: int, hour: int = 0) -> int:
    return ((month - 1) * MAX_DAYS_PER_MONTH + (day - 1)) * HOURS_PER_DAY + hour


class _SiteCounters:
    """Everything one site has counted, behind one lock"""

    __slots__ = ("lock", "years", "total")

    def __init__(self):
        self.lock = threading.Lock()
        self.years: Dict[int, List[int]] = {}
        self.total = 0


class InMemoryCounterStore(CounterStoreStrategy):
    """
    In-memory counter store.

    Each (site, year) document is a dense 12x31x24 grid allocated on the
    first increment of that year, so reads are plain slices and zero-fill
    comes for free. Locks are per site: two sites never contend.

    Pros:
    - Very fast (no network overhead)
    - Simple (no external dependencies)

    Cons:
    - Lost on restart
    - Not shared between worker processes

    Used in development/testing environments.
    """

    def __init__(self):
        self._sites: Dict[str, _SiteCounters] = {}
        self._registry_lock = threading.Lock()

    def _get_site(self, site_id: str, create: bool = False) -> Optional[_SiteCounters]:
        site = self._sites.get(site_id)
        if site is None and create:
            with self._registry_lock:
                site = self._sites.setdefault(site_id, _SiteCounters())
        return site

    def increment(self, site_id: str, bucket: HourBucket) -> None:
        site = self._get_site(site_id, create=True)

        with site.lock:
            grid = site.years.get(bucket.year)
            if grid is None:
                grid = site.years[bucket.year] = [0] * GRID_SIZE
            grid[_grid_offset(bucket.month, bucket.day, bucket.hour)] += 1
            site.total += 1

    def hour_counts(self, site_id: str, year: int, month: int, day: int) -> List[Tuple[int, int]]:
        check_calendar_day(year, month, day)

        site = self._get_site(site_id)
        counts = [0] * HOURS_PER_DAY

        if site is not None:
            start = _grid_offset(month, day)
            with site.lock:
                grid = site.years.get(year)
                if grid is not None:
                    counts = grid[start:start + HOURS_PER_DAY]

        return list(enumerate(counts))

    def has_any_count(self, site_id: str) -> bool:
        site = self._get_site(site_id)
        if site is None:
            return False
        with site.lock:
            return site.total > 0


class RedisCounterStore(CounterStoreStrategy):
    """
    Redis implementation of the counter store.

    Key layout (with the default "counter" prefix):

        counter:counts:{site}:{year}    hash, one per (site, year)
            "{m}:{d}:{h}"   pageviews in that hour
            "{m}:{d}"       day total
            "{m}"           month total
            "c"             year total
        counter:counts:{site}:total     pageviews across all years

    One increment touches all of those inside a single MULTI/EXEC, so the
    roll-ups always equal the sum of their hours and readers never see a
    half-applied pageview.
    """

    def __init__(self, redis_client, key_prefix: str = "counter"):
        """
        Initialize Redis counter store.

        Args:
            redis_client: Redis client instance (redis.Redis)
            key_prefix: Namespace for all keys
        """
        self.redis = redis_client
        self.key_prefix = key_prefix

    def _year_key(self, site_id: str, year: int) -> str:
        return f"{self.key_prefix}:counts:{site_id}:{year}"

    def _total_key(self, site_id: str) -> str:
        return f"{self.key_prefix}:counts:{site_id}:total"

    def increment(self, site_id: str, bucket: HourBucket) -> None:
        key = self._year_key(site_id, bucket.year)
        day_field = f"{bucket.month}:{bucket.day}"

        with self.redis.pipeline(transaction=True) as pipe:
            pipe.hincrby(key, f"{day_field}:{bucket.hour}", 1)
            pipe.hincrby(key, day_field, 1)
            pipe.hincrby(key, str(bucket.month), 1)
            pipe.hincrby(key, "c", 1)
            pipe.incr(self._total_key(site_id))
            pipe.execute()

    def hour_counts(self, site_id: str, year: int, month: int, day: int) -> List[Tuple[int, int]]:
        check_calendar_day(year, month, day)

        fields = [f"{month}:{day}:{hour}" for hour in range(HOURS_PER_DAY)]
        values = self.redis.hmget(self._year_key(site_id, year), fields)

        return [(hour, int(value) if value else 0) for hour, value in enumerate(values)]

    def day_total(self, site_id: str, year: int, month: int, day: int) -> int:
        """Read the day roll-up instead of summing 24 fields"""
        check_calendar_day(year, month, day)

        value = self.redis.hget(self._year_key(site_id, year), f"{month}:{day}")
        return int(value) if value else 0

    def has_any_count(self, site_id: str) -> bool:
        value = self.redis.get(self._total_key(site_id))
        return bool(value) and int(value) > 0
