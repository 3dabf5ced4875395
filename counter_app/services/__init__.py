from .chart_aggregator import ChartAggregator
from .counter_service import SiteCounterService

__all__ = [
    "ChartAggregator",
    "SiteCounterService",
]
