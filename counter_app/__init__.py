"""
Per-site pageview counter: hourly buckets in the site's local time,
active and unique visitors, and the "tracked" flag.
"""

__version__ = "1.0.0"
