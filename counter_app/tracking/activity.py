"""
Active visitor tracking.

Visit pings are raw (site, timestamp) rows: the tracker never merges or
drops them on write. "Active visitors" is worked out on read by grouping
the pings in the trailing window into visits: a ping no further than
`session_gap` seconds from the first ping of the current visit belongs
to that visit, anything later starts a new one.

    pings 11:45, 11:50, 11:55, now 12:00, window 15m, gap 5m
    -> [11:45, 11:50] [11:55] -> 2 active visitors
"""

import bisect
import threading
import uuid
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List

from counter_app.clock import Instant, to_epoch
from counter_app.errors import InvalidArgument


def count_visits(timestamps: Iterable[float], session_gap: float) -> int:
    """
    Group pings into visits and count them.

    Args:
        timestamps: Ping times in epoch seconds (any order)
        session_gap: Max distance from a visit's first ping, in seconds

    Returns:
        Number of visits
    """
    visits = 0
    visit_start = None

    for ts in sorted(timestamps):
        if visit_start is None or ts - visit_start > session_gap:
            visits += 1
            visit_start = ts

    return visits


def _check_durations(window: float, session_gap: float) -> None:
    if window < 0 or session_gap < 0:
        raise InvalidArgument(
            f"window and session_gap must be non-negative (got {window}, {session_gap})"
        )


class ActivityTrackerStrategy(ABC):
    """
    Abstract base class for visit ping logs.

    Reads only look at pings with now - window <= ts <= now.
    """

    @abstractmethod
    def record(self, site_id: str, timestamp: Instant) -> None:
        """Append a visit ping (no dedup)"""
        pass

    @abstractmethod
    def timestamps_between(self, site_id: str, start: float, end: float) -> List[float]:
        """Ping times with start <= ts <= end, ascending"""
        pass

    def active_count(
        self,
        site_id: str,
        now: Instant,
        window: float = 900,
        session_gap: float = 300
    ) -> int:
        """
        Count visits active in the trailing window ending at now.

        Args:
            site_id: Site token
            now: End of the window (inclusive)
            window: Window length in seconds (start is inclusive)
            session_gap: See count_visits()
        """
        _check_durations(window, session_gap)
        end = to_epoch(now)
        return count_visits(self.timestamps_between(site_id, end - window, end), session_gap)


class _SitePings:
    __slots__ = ("lock", "timestamps")

    def __init__(self):
        self.lock = threading.Lock()
        self.timestamps: List[float] = []  # kept sorted


class InMemoryActivityTracker(ActivityTrackerStrategy):
    """
    In-memory ping log: one sorted timestamp list per site.

    Pings may arrive out of order; insort keeps the list sorted so a
    window read is two bisects and a slice.
    """

    def __init__(self):
        self._sites: Dict[str, _SitePings] = {}
        self._registry_lock = threading.Lock()

    def _get_site(self, site_id: str, create: bool = False):
        site = self._sites.get(site_id)
        if site is None and create:
            with self._registry_lock:
                site = self._sites.setdefault(site_id, _SitePings())
        return site

    def record(self, site_id: str, timestamp: Instant) -> None:
        ts = to_epoch(timestamp)
        site = self._get_site(site_id, create=True)
        with site.lock:
            bisect.insort(site.timestamps, ts)

    def timestamps_between(self, site_id: str, start: float, end: float) -> List[float]:
        site = self._get_site(site_id)
        if site is None:
            return []
        with site.lock:
            lo = bisect.bisect_left(site.timestamps, start)
            hi = bisect.bisect_right(site.timestamps, end)
            return site.timestamps[lo:hi]


class RedisActivityTracker(ActivityTrackerStrategy):
    """
    Redis ping log: one sorted set per site, scored by timestamp.

    Members get a random suffix so two pings at the same second are both
    kept (ZADD would otherwise collapse them).
    """

    def __init__(self, redis_client, key_prefix: str = "counter"):
        self.redis = redis_client
        self.key_prefix = key_prefix

    def _key(self, site_id: str) -> str:
        return f"{self.key_prefix}:visits:{site_id}"

    def record(self, site_id: str, timestamp: Instant) -> None:
        ts = to_epoch(timestamp)
        member = f"{ts}:{uuid.uuid4().hex}"
        self.redis.zadd(self._key(site_id), {member: ts})

    def timestamps_between(self, site_id: str, start: float, end: float) -> List[float]:
        rows = self.redis.zrangebyscore(self._key(site_id), start, end, withscores=True)
        return [float(score) for _, score in rows]
