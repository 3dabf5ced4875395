"""
Hour-by-hour pageview charts built on top of a counter store.
"""

from typing import List

from counter_app.clock import HOURS_PER_DAY, ClockView, LocalDate
from counter_app.errors import InvalidArgument
from counter_app.schemas.counter import ChartPoint
from counter_app.storage.strategies import CounterStoreStrategy

FULL_DAY = range(HOURS_PER_DAY)


class ChartAggregator:
    """
    Turns sparse counter reads into dense chart series.

    "Today" only covers the hours that have started so far (0 through the
    current local hour); later hours can't have data yet. "Yesterday" is
    always the full 24 hours.
    """

    def __init__(self, counters: CounterStoreStrategy):
        self.counters = counters

    def chart_for(self, site_id: str, day: LocalDate, hours: range = FULL_DAY) -> List[ChartPoint]:
        """
        Get (hour, count) pairs for the given hours of one local day.

        Args:
            site_id: Site token
            day: Local calendar day
            hours: Ascending range within 0..23

        Returns:
            One pair per hour in `hours`, zero-filled, ascending

        Raises:
            InvalidArgument: if `hours` leaves 0..23 or isn't ascending
        """
        if hours.step < 1 or (len(hours) and (hours[0] < 0 or hours[-1] >= HOURS_PER_DAY)):
            raise InvalidArgument(f"Hour range must be ascending within 0..23, got {hours!r}")

        counts = dict(self.counters.hour_counts(site_id, day.year, day.month, day.day))
        return [(hour, counts[hour]) for hour in hours]

    def chart_today(self, site_id: str, clock: ClockView) -> List[ChartPoint]:
        return self.chart_for(site_id, clock.today(), range(clock.current_hour() + 1))

    def chart_yesterday(self, site_id: str, clock: ClockView) -> List[ChartPoint]:
        return self.chart_for(site_id, clock.yesterday(), FULL_DAY)

    def pageviews_today(self, site_id: str, clock: ClockView) -> int:
        today = clock.today()
        return self.counters.day_total(site_id, today.year, today.month, today.day)
