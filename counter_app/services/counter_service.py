import logging
from typing import Callable, List, Optional

from counter_app.clock import ClockView, HourBucket, Instant
from counter_app.config import settings
from counter_app.errors import InvalidArgument
from counter_app.schemas.counter import ChartData, ChartPoint, CounterData
from counter_app.schemas.site import SiteRef
from counter_app.services.chart_aggregator import ChartAggregator
from counter_app.storage.strategies import CounterStoreStrategy
from counter_app.tracking.activity import ActivityTrackerStrategy
from counter_app.tracking.visitors import VisitorTrackerStrategy

logger = logging.getLogger(__name__)

# Returns the current instant (aware datetime or epoch seconds)
NowProvider = Callable[[], Instant]


def _require_site_id(site_id: str) -> None:
    if not isinstance(site_id, str) or not site_id:
        raise InvalidArgument(f"site_id must be a non-empty string, got {site_id!r}")


class SiteCounterService:
    """
    Site counter service with dependency injection for storage and clock.

    This is the whole in-process API the host talks to:
    - Write side: pageviews, visit pings, visitor pings
    - Read side: today's pageviews, charts, active/unique visitors, tracked flag

    The counter store and trackers are injected (memory or Redis), and so
    is "now": the service never looks at the system clock itself. Every
    read also takes an explicit `now` that wins over the provider.
    """

    def __init__(
        self,
        counters: CounterStoreStrategy,
        activity: ActivityTrackerStrategy,
        visitors: VisitorTrackerStrategy,
        now_provider: NowProvider,
        active_window: Optional[int] = None,
        session_gap: Optional[int] = None
    ):
        """
        Initialize the service with its dependencies.

        Args:
            counters: Pageview counter store
            activity: Visit ping log (active visitors)
            visitors: Visitor ping log (unique visitors)
            now_provider: Callable returning the current instant
            active_window: Trailing window in seconds (default from settings)
            session_gap: Visit grouping distance in seconds (default from settings)
        """
        self.counters = counters
        self.activity = activity
        self.visitors = visitors
        self.now_provider = now_provider
        self.charts = ChartAggregator(counters)
        self.active_window = settings.active_window_seconds if active_window is None else active_window
        self.session_gap = settings.visit_session_seconds if session_gap is None else session_gap

    def _clock(self, site: SiteRef, now: Optional[Instant] = None) -> ClockView:
        return ClockView(site.tz, self.now_provider() if now is None else now)

    # Write side

    def increment_pageview(self, site: SiteRef, instant: Instant) -> HourBucket:
        """
        Count one pageview in the local hour it happened in.

        Returns:
            The bucket that was incremented
        """
        bucket = self._clock(site, instant).bucket_for(instant)
        self.counters.increment(site.site_id, bucket)
        logger.debug("Pageview for %s counted in %s", site.site_id, bucket)
        return bucket

    def record_visit(self, site_id: str, instant: Instant) -> None:
        _require_site_id(site_id)
        self.activity.record(site_id, instant)

    def record_visitor(self, site_id: str, visitor_id: str, local_date: str) -> None:
        _require_site_id(site_id)
        self.visitors.record(site_id, visitor_id, local_date)

    # Read side

    def pageviews_today(self, site: SiteRef, now: Optional[Instant] = None) -> int:
        return self.charts.pageviews_today(site.site_id, self._clock(site, now))

    def chart_today(self, site: SiteRef, now: Optional[Instant] = None) -> List[ChartPoint]:
        return self.charts.chart_today(site.site_id, self._clock(site, now))

    def chart_yesterday(self, site: SiteRef, now: Optional[Instant] = None) -> List[ChartPoint]:
        return self.charts.chart_yesterday(site.site_id, self._clock(site, now))

    def active_visitors(self, site_id: str, now: Optional[Instant] = None) -> int:
        """Visits active in the trailing window ending at now"""
        _require_site_id(site_id)
        if now is None:
            now = self.now_provider()
        return self.activity.active_count(site_id, now, self.active_window, self.session_gap)

    def visitors_today(self, site: SiteRef, now: Optional[Instant] = None) -> int:
        """Distinct visitors for the site's local date of now"""
        today = self._clock(site, now).today()
        return self.visitors.unique_count(site.site_id, today.isoformat())

    def is_tracked(self, site_id: str) -> bool:
        """True once the site has counted at least one pageview"""
        _require_site_id(site_id)
        return self.counters.has_any_count(site_id)

    # Combined read models

    def counter_data(self, site: SiteRef, now: Optional[Instant] = None) -> CounterData:
        """Headline numbers, all evaluated against one "now" """
        if now is None:
            now = self.now_provider()
        return CounterData(
            pageviews_today=self.pageviews_today(site, now),
            active_visitors=self.active_visitors(site.site_id, now),
            visitors_today=self.visitors_today(site, now),
        )

    def chart_data(self, site: SiteRef, now: Optional[Instant] = None) -> ChartData:
        clock = self._clock(site, now)
        return ChartData(
            today=self.charts.chart_today(site.site_id, clock),
            yesterday=self.charts.chart_yesterday(site.site_id, clock),
        )
