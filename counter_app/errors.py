"""
Exceptions raised by the counter core.

Unknown sites are not errors (reads return zeros), so the only thing
the core rejects is a malformed argument from the caller.
"""


class CounterError(Exception):
    """Base class for counter errors"""


class InvalidArgument(CounterError, ValueError):
    """
    Raised when a caller passes coordinates or values the counter can't
    store faithfully (day 32, hour 24, naive datetimes, bad date strings).
    """
