"""
Tests for the site counter service (the host-facing API).

Scenarios mirror how a site in Europe/Helsinki sees its own traffic.
"""
from datetime import datetime

import pytest
from pydantic import ValidationError

from conftest import utc
from counter_app.clock import HourBucket
from counter_app.errors import InvalidArgument
from counter_app.schemas.counter import ChartData, CounterData
from counter_app.schemas.site import SiteRef


class TestPageviews:

    def test_pageviews_today(self, service, site, clock):
        for _ in range(200):
            service.increment_pageview(site, utc(2011, 1, 6, 4, 30))  # 06:30 local

        clock.freeze(utc(2011, 1, 6, 12))
        assert service.pageviews_today(site) == 200

        clock.freeze(utc(2011, 1, 1))
        assert service.pageviews_today(site) == 0

    def test_increment_returns_local_bucket(self, service, site):
        bucket = service.increment_pageview(site, utc(2011, 1, 5, 22, 30))

        assert bucket == HourBucket(2011, 1, 6, 0)

    def test_pageview_near_midnight_counts_for_local_day(self, service, site):
        service.increment_pageview(site, utc(2011, 1, 5, 22, 30))  # 00:30 on the 6th locally

        assert service.pageviews_today(site, now=utc(2011, 1, 6, 12)) == 1
        assert service.pageviews_today(site, now=utc(2011, 1, 5, 12)) == 0

    def test_same_instant_different_zones(self, service):
        helsinki = SiteRef(site_id="hel", time_zone="Europe/Helsinki")
        new_york = SiteRef(site_id="nyc", time_zone="America/New_York")
        instant = utc(2011, 1, 6, 3)  # 05:00 on the 6th / 22:00 on the 5th

        service.increment_pageview(helsinki, instant)
        service.increment_pageview(new_york, instant)

        assert service.counters.hour_counts("hel", 2011, 1, 6)[5] == (5, 1)
        assert service.counters.hour_counts("nyc", 2011, 1, 5)[22] == (22, 1)

    def test_naive_instant_rejected(self, service, site):
        with pytest.raises(InvalidArgument):
            service.increment_pageview(site, datetime(2011, 1, 6, 12))


class TestCharts:

    def test_chart_today(self, service, site, clock):
        clock.freeze(utc(2011, 6, 8, 12))
        for _ in range(100):
            service.counters.increment(site.site_id, HourBucket(2011, 6, 8, 7))
        for _ in range(300):
            service.counters.increment(site.site_id, HourBucket(2011, 6, 8, 10))

        expected = [(hour, 0) for hour in range(16)]
        expected[7] = (7, 100)
        expected[10] = (10, 300)

        assert service.chart_today(site) == expected

    def test_chart_yesterday(self, service, site, clock):
        clock.freeze(utc(2011, 12, 7, 14))
        for _ in range(20):
            service.counters.increment(site.site_id, HourBucket(2011, 12, 6, 3))
        for _ in range(10):
            service.counters.increment(site.site_id, HourBucket(2011, 12, 6, 6))

        expected = [(hour, 0) for hour in range(24)]
        expected[3] = (3, 20)
        expected[6] = (6, 10)

        assert service.chart_yesterday(site) == expected
        assert service.chart_yesterday(site) == expected  # reads don't change anything

    def test_chart_yesterday_for_new_site(self, service, site):
        assert service.chart_yesterday(site, now=utc(2011, 1, 1)) == [(hour, 0) for hour in range(24)]

    def test_chart_data(self, service, site):
        service.increment_pageview(site, utc(2011, 6, 7, 5))   # 08:00 yesterday
        service.increment_pageview(site, utc(2011, 6, 8, 5))   # 08:00 today

        data = service.chart_data(site, now=utc(2011, 6, 8, 9))  # 12:00 local

        assert isinstance(data, ChartData)
        assert len(data.today) == 13
        assert data.today[8] == (8, 1)
        assert len(data.yesterday) == 24
        assert data.yesterday[8] == (8, 1)


class TestVisitors:

    def test_active_visitors(self, service, site, clock):
        for minute in (45, 50, 55):
            service.record_visit(site.site_id, utc(2011, 11, 11, 11, minute))

        clock.freeze(utc(2011, 11, 11, 12))
        assert service.active_visitors(site.site_id) == 2

    def test_active_visitors_window_from_constructor(self, site, clock):
        from counter_app.services.counter_service import SiteCounterService
        from counter_app.storage.strategies import InMemoryCounterStore
        from counter_app.tracking.activity import InMemoryActivityTracker
        from counter_app.tracking.visitors import InMemoryVisitorTracker

        wide = SiteCounterService(
            InMemoryCounterStore(),
            InMemoryActivityTracker(),
            InMemoryVisitorTracker(),
            now_provider=clock,
            active_window=3600,
            session_gap=0,
        )
        for minute in (0, 30, 59):
            wide.record_visit(site.site_id, utc(2011, 11, 11, 11, minute))

        assert wide.active_visitors(site.site_id, now=utc(2011, 11, 11, 12)) == 3

    def test_visitors_today(self, service, site, clock):
        service.record_visitor(site.site_id, "A", "2011-01-01")
        service.record_visitor(site.site_id, "B", "2011-01-01")
        service.record_visitor(site.site_id, "C", "2011-01-02")

        clock.freeze(utc(2011, 1, 1, 12))
        assert service.visitors_today(site) == 2

        # Still New Year's Day in Helsinki
        clock.freeze(utc(2010, 12, 31, 23))
        assert service.visitors_today(site) == 2

        clock.freeze(utc(2011, 1, 2))
        assert service.visitors_today(site) == 1

    def test_counter_data(self, service, site):
        service.increment_pageview(site, utc(2011, 11, 11, 9))
        service.record_visit(site.site_id, utc(2011, 11, 11, 11, 55))
        service.record_visitor(site.site_id, "A", "2011-11-11")

        data = service.counter_data(site, now=utc(2011, 11, 11, 12))

        assert data == CounterData(pageviews_today=1, active_visitors=1, visitors_today=1)

    def test_empty_site_id_rejected(self, service):
        with pytest.raises(InvalidArgument):
            service.record_visit("", utc(2011, 11, 11, 12))
        with pytest.raises(InvalidArgument):
            service.record_visitor("", "A", "2011-01-01")


class TestTracked:

    def test_untracked_until_first_pageview(self, service, site):
        assert service.is_tracked(site.site_id) is False

        service.increment_pageview(site, utc(2011, 1, 6, 12))

        assert service.is_tracked(site.site_id) is True
        assert service.is_tracked(site.site_id) is True

    def test_visits_alone_do_not_track(self, service, site):
        service.record_visit(site.site_id, utc(2011, 1, 6, 12))
        service.record_visitor(site.site_id, "A", "2011-01-06")

        assert service.is_tracked(site.site_id) is False


class TestSiteRef:

    def test_unknown_zone_rejected(self):
        with pytest.raises(ValidationError):
            SiteRef(site_id="x", time_zone="Helsinki")

    def test_empty_site_id_rejected(self):
        with pytest.raises(ValidationError):
            SiteRef(site_id="", time_zone="Europe/Helsinki")

    def test_tz(self, site):
        assert str(site.tz) == "Europe/Helsinki"
