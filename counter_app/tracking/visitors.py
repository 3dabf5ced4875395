"""
Unique visitor tracking.

Visitor pings are (site, visitor id, local date) rows, stored as they
arrive. Uniqueness is a read-time distinct count over one exact date
string; the caller works out which local date "today" is.
"""

import threading
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Dict, List

from counter_app.clock import LocalDate
from counter_app.errors import InvalidArgument


def _check_date(local_date: str) -> str:
    # Raises InvalidArgument for anything that isn't YYYY-MM-DD
    LocalDate.parse(local_date)
    return local_date


class VisitorTrackerStrategy(ABC):
    """Abstract base class for visitor ping logs"""

    @abstractmethod
    def record(self, site_id: str, visitor_id: str, local_date: str) -> None:
        """
        Append a visitor ping (no dedup at write time).

        Args:
            site_id: Site token
            visitor_id: Opaque visitor identifier
            local_date: Site-local day as YYYY-MM-DD
        """
        pass

    @abstractmethod
    def unique_count(self, site_id: str, local_date: str) -> int:
        """Number of distinct visitor ids recorded for exactly local_date"""
        pass


class _SiteVisitors:
    __slots__ = ("lock", "dates")

    def __init__(self):
        self.lock = threading.Lock()
        self.dates: Dict[str, List[str]] = defaultdict(list)


class InMemoryVisitorTracker(VisitorTrackerStrategy):
    """In-memory visitor log, per site and date"""

    def __init__(self):
        self._sites: Dict[str, _SiteVisitors] = {}
        self._registry_lock = threading.Lock()

    def _get_site(self, site_id: str, create: bool = False):
        site = self._sites.get(site_id)
        if site is None and create:
            with self._registry_lock:
                site = self._sites.setdefault(site_id, _SiteVisitors())
        return site

    def record(self, site_id: str, visitor_id: str, local_date: str) -> None:
        if not visitor_id:
            raise InvalidArgument("visitor_id must not be empty")
        _check_date(local_date)

        site = self._get_site(site_id, create=True)
        with site.lock:
            site.dates[local_date].append(visitor_id)

    def unique_count(self, site_id: str, local_date: str) -> int:
        _check_date(local_date)

        site = self._get_site(site_id)
        if site is None:
            return 0
        with site.lock:
            return len(set(site.dates.get(local_date, ())))


class RedisVisitorTracker(VisitorTrackerStrategy):
    """
    Redis visitor log: one list per (site, date).

    Lists keep every ping like the in-memory log does; the distinct count
    happens on read.
    """

    def __init__(self, redis_client, key_prefix: str = "counter"):
        self.redis = redis_client
        self.key_prefix = key_prefix

    def _key(self, site_id: str, local_date: str) -> str:
        return f"{self.key_prefix}:visitors:{site_id}:{local_date}"

    def record(self, site_id: str, visitor_id: str, local_date: str) -> None:
        if not visitor_id:
            raise InvalidArgument("visitor_id must not be empty")
        _check_date(local_date)

        self.redis.rpush(self._key(site_id, local_date), visitor_id)

    def unique_count(self, site_id: str, local_date: str) -> int:
        _check_date(local_date)

        return len(set(self.redis.lrange(self._key(site_id, local_date), 0, -1)))
