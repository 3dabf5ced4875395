"""
Tests for visit ping (active visitors) and visitor ping (unique visitors) logs.
"""
import threading

import pytest

from conftest import utc
from counter_app.errors import InvalidArgument
from counter_app.tracking.activity import InMemoryActivityTracker, count_visits
from counter_app.tracking.visitors import InMemoryVisitorTracker

SITE = "site-a"
OTHER_SITE = "site-b"
MINUTE = 60


class TestCountVisits:
    """Test grouping of pings into visits"""

    def test_no_pings(self):
        assert count_visits([], session_gap=300) == 0

    def test_five_minute_pings(self):
        """11:45 and 11:50 are one visit, 11:55 is ten minutes after its start"""
        pings = [0, 5 * MINUTE, 10 * MINUTE]

        assert count_visits(pings, session_gap=5 * MINUTE) == 2

    def test_order_does_not_matter(self):
        assert count_visits([600, 0, 300], session_gap=300) == 2

    def test_gap_is_measured_from_visit_start(self):
        """Pings one minute apart still split once the visit is older than the gap"""
        pings = [minute * MINUTE for minute in range(12)]

        assert count_visits(pings, session_gap=5 * MINUTE) == 2

    def test_duplicate_pings_stay_in_one_visit(self):
        assert count_visits([100, 100, 100], session_gap=300) == 1

    def test_zero_gap_counts_distinct_times(self):
        assert count_visits([1, 2, 2, 3], session_gap=0) == 3


class TestActivityTracker:
    """Behaviour shared by all activity trackers"""

    def test_three_pings_make_two_active_visitors(self, activity_tracker):
        for minute in (45, 50, 55):
            activity_tracker.record(SITE, utc(2011, 11, 11, 11, minute))

        now = utc(2011, 11, 11, 12)

        assert activity_tracker.active_count(SITE, now, window=15 * MINUTE, session_gap=5 * MINUTE) == 2

    def test_window_lower_bound_is_inclusive(self, activity_tracker):
        activity_tracker.record(SITE, utc(2011, 11, 11, 11, 45))

        assert activity_tracker.active_count(SITE, utc(2011, 11, 11, 12), window=900) == 1
        assert activity_tracker.active_count(SITE, utc(2011, 11, 11, 12, 0, 1), window=900) == 0

    def test_pings_after_now_are_ignored(self, activity_tracker):
        activity_tracker.record(SITE, utc(2011, 11, 11, 12))
        activity_tracker.record(SITE, utc(2011, 11, 11, 12, 0, 1))

        assert activity_tracker.active_count(SITE, utc(2011, 11, 11, 12), window=900) == 1

    def test_same_second_pings_are_both_stored(self, activity_tracker):
        ts = utc(2011, 11, 11, 11, 59).timestamp()
        activity_tracker.record(SITE, ts)
        activity_tracker.record(SITE, ts)

        assert activity_tracker.timestamps_between(SITE, ts, ts) == [ts, ts]

    def test_epoch_and_datetime_pings_mix(self, activity_tracker):
        activity_tracker.record(SITE, int(utc(2011, 11, 11, 11, 45).timestamp()))
        activity_tracker.record(SITE, utc(2011, 11, 11, 11, 55))

        assert activity_tracker.active_count(SITE, utc(2011, 11, 11, 12), window=900, session_gap=300) == 2

    def test_sites_are_kept_apart(self, activity_tracker):
        activity_tracker.record(SITE, utc(2011, 11, 11, 11, 50))

        assert activity_tracker.active_count(OTHER_SITE, utc(2011, 11, 11, 12)) == 0

    def test_negative_window_rejected(self, activity_tracker):
        with pytest.raises(InvalidArgument):
            activity_tracker.active_count(SITE, utc(2011, 11, 11, 12), window=-1)


class TestInMemoryActivityTracker:

    def test_out_of_order_pings_stay_sorted(self):
        tracker = InMemoryActivityTracker()
        for ts in (300, 100, 200):
            tracker.record(SITE, ts)

        assert tracker.timestamps_between(SITE, 0, 1000) == [100.0, 200.0, 300.0]

    def test_concurrent_records(self):
        tracker = InMemoryActivityTracker()

        def worker(offset):
            for i in range(500):
                tracker.record(SITE, offset + i)

        threads = [threading.Thread(target=worker, args=(n * 1000,)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(tracker.timestamps_between(SITE, 0, 10_000)) == 2000


class TestVisitorTracker:
    """Behaviour shared by all visitor trackers"""

    def test_distinct_visitors_per_date(self, visitor_tracker):
        visitor_tracker.record(SITE, "A", "2011-01-01")
        visitor_tracker.record(SITE, "B", "2011-01-01")
        visitor_tracker.record(SITE, "C", "2011-01-02")

        assert visitor_tracker.unique_count(SITE, "2011-01-01") == 2
        assert visitor_tracker.unique_count(SITE, "2011-01-02") == 1

    def test_repeat_visitor_counted_once(self, visitor_tracker):
        for _ in range(3):
            visitor_tracker.record(SITE, "A", "2011-01-01")

        assert visitor_tracker.unique_count(SITE, "2011-01-01") == 1

    def test_unknown_site_and_date(self, visitor_tracker):
        visitor_tracker.record(SITE, "A", "2011-01-01")

        assert visitor_tracker.unique_count(OTHER_SITE, "2011-01-01") == 0
        assert visitor_tracker.unique_count(SITE, "2011-01-03") == 0

    @pytest.mark.parametrize("value", ["2011-1-1", "01/01/2011", "2011-02-30"])
    def test_malformed_dates_rejected(self, visitor_tracker, value):
        with pytest.raises(InvalidArgument):
            visitor_tracker.record(SITE, "A", value)
        with pytest.raises(InvalidArgument):
            visitor_tracker.unique_count(SITE, value)

    def test_empty_visitor_rejected(self, visitor_tracker):
        with pytest.raises(InvalidArgument):
            visitor_tracker.record(SITE, "", "2011-01-01")


class TestInMemoryVisitorTracker:

    def test_pings_are_kept_not_deduplicated(self):
        tracker = InMemoryVisitorTracker()
        tracker.record(SITE, "A", "2011-01-01")
        tracker.record(SITE, "A", "2011-01-01")

        assert tracker._sites[SITE].dates["2011-01-01"] == ["A", "A"]
