"""Synthetic workload generators for stress testing the subtraction service."""

from __future__ import annotations

import random
from datetime import time
from typing import List, Optional, Tuple

from timediff.models import TimeInterval

MINUTES_PER_DAY = 24 * 60


def minute_to_time(minute: int) -> time:
    # 24:00 is not representable, clamp to the last minute of the day
    minute = max(0, min(minute, MINUTES_PER_DAY - 1))
    return time(minute // 60, minute % 60)


def time_to_minute(value: time) -> int:
    return value.hour * 60 + value.minute


def generate_intervals(
    count: int,
    *,
    rng: random.Random,
    day_start: int = 6 * 60,
    day_end: int = 20 * 60,
    max_length: int = 120,
    granularity: int = 5,
) -> List[TimeInterval]:
    """Create ``count`` random non-empty intervals inside ``[day_start, day_end)``.

    Endpoints are multiples of ``granularity`` minutes so that generated
    intervals frequently share starts and touch each other.
    """

    intervals: List[TimeInterval] = []
    slots = max(1, (day_end - day_start) // granularity)
    for _ in range(count):
        start = day_start + rng.randrange(slots) * granularity
        length = granularity * rng.randint(1, max(1, max_length // granularity))
        end = min(start + length, day_end)
        if end <= start:
            end = start + granularity
        intervals.append(TimeInterval(minute_to_time(start), minute_to_time(end)))
    return intervals


def generate_workload(
    base_count: int = 200,
    remove_count: int = 100,
    *,
    seed: int = 0,
    rng: Optional[random.Random] = None,
) -> Tuple[List[TimeInterval], List[TimeInterval]]:
    """Return a deterministic ``(base, to_remove)`` pair for the given seed."""

    rng = rng or random.Random(seed)
    base = generate_intervals(base_count, rng=rng, max_length=180)
    to_remove = generate_intervals(remove_count, rng=rng, max_length=60)
    return base, to_remove


__all__ = [
    "MINUTES_PER_DAY",
    "minute_to_time",
    "time_to_minute",
    "generate_intervals",
    "generate_workload",
]
