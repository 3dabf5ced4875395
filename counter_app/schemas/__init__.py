from .site import SiteRef
from .counter import ChartPoint, ChartData, CounterData

__all__ = [
    "SiteRef",
    "ChartPoint",
    "ChartData",
    "CounterData",
]
