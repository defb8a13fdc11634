"""Set difference of time-of-day interval lists backed by an AVL interval tree."""

from timediff.models import InvalidIntervalError, SubtractionReport, TimeInterval
from timediff.services.subtraction import (
    IntervalSubtractionService,
    subtract_interval_lists,
)
from timediff.utils.interval_tree import IntervalTree

__version__ = "1.0.0"

__all__ = [
    "InvalidIntervalError",
    "IntervalSubtractionService",
    "IntervalTree",
    "SubtractionReport",
    "TimeInterval",
    "subtract_interval_lists",
]
