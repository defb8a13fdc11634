from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import Enum

# MARK: - Errors


class InvalidIntervalError(ValueError):
    """Raised when an interval is constructed with ``start > end``."""


# MARK: - Enums


class Ordering(Enum):
    BEFORE = "before"
    EQUAL = "equal"
    AFTER = "after"


# MARK: - Models


def format_time(value: time) -> str:
    """Render ``HH:MM``, or ``HH:MM:SS`` when the seconds are non-zero."""
    if value.second or value.microsecond:
        return value.isoformat(timespec="seconds")
    return value.isoformat(timespec="minutes")


@dataclass(frozen=True, slots=True)
class TimeInterval:
    """Half-open time-of-day interval ``[start, end)``.

    Equality and hashing are structural, so two intervals with the same
    endpoints are interchangeable everywhere in the tree and the services.
    """

    start: time
    end: time

    def __post_init__(self) -> None:
        if not isinstance(self.start, time) or not isinstance(self.end, time):
            raise InvalidIntervalError(
                "Interval endpoints must be datetime.time values, got "
                f"{type(self.start).__name__} and {type(self.end).__name__}"
            )
        if self.start > self.end:
            raise InvalidIntervalError(
                "Start time cannot be after end time in an interval: "
                f"{format_time(self.start)} > {format_time(self.end)}"
            )

    @classmethod
    def from_hm(
        cls, start_hour: int, start_minute: int, end_hour: int, end_minute: int
    ) -> "TimeInterval":
        return cls(time(start_hour, start_minute), time(end_hour, end_minute))

    @classmethod
    def parse(cls, start: str, end: str) -> "TimeInterval":
        """Build an interval from ISO ``HH:MM[:SS]`` strings."""

        try:
            start_time = time.fromisoformat(start)
            end_time = time.fromisoformat(end)
        except (TypeError, ValueError) as e:
            raise InvalidIntervalError(f"Invalid time value: {e}") from e
        return cls(start_time, end_time)

    @property
    def is_empty(self) -> bool:
        return self.start == self.end

    def duration(self) -> timedelta:
        return datetime.combine(date.min, self.end) - datetime.combine(
            date.min, self.start
        )

    def __str__(self) -> str:
        return f"({format_time(self.start)}-{format_time(self.end)})"


@dataclass
class SubtractionReport:
    residuals: list[TimeInterval]
    subtrahends_applied: int = 0
    subtrahends_skipped: int = 0  # None or empty entries in the removal list
    conflicts_resolved: int = 0
    pieces_reinserted: int = 0
    tree_height: int = 0


__all__ = [
    "InvalidIntervalError",
    "Ordering",
    "TimeInterval",
    "SubtractionReport",
    "format_time",
]
