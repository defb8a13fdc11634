from .subtraction import IntervalSubtractionService, subtract_interval_lists

__all__ = [
    "IntervalSubtractionService",
    "subtract_interval_lists",
]
