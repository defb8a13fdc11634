from collections import Counter
from typing import Iterable, List, Optional

from timediff.models import TimeInterval
from timediff.utils.interval_math import later_of
from timediff.utils.synthetic import minute_to_time, time_to_minute


def iv(start: str, end: str) -> TimeInterval:
    """Shorthand for ``TimeInterval.parse``."""
    return TimeInterval.parse(start, end)


def multiset(intervals: Iterable[TimeInterval]) -> Counter:
    return Counter(intervals)


def sort_key(interval: TimeInterval):
    return (interval.start, interval.end)


def minutes(interval: TimeInterval) -> set:
    return set(range(time_to_minute(interval.start), time_to_minute(interval.end)))


def covered_minutes(intervals: Iterable[TimeInterval]) -> set:
    covered = set()
    for interval in intervals:
        covered |= minutes(interval)
    return covered


def reference_difference(
    base: Iterable[TimeInterval], to_remove: Iterable[TimeInterval]
) -> List[TimeInterval]:
    """Brute-force difference on a one-minute grid.

    Each base interval is cut independently into the maximal runs of minutes
    that no subtrahend covers.
    """

    removed = covered_minutes(to_remove)
    result: List[TimeInterval] = []
    for interval in base:
        run_start: Optional[int] = None
        for minute in range(time_to_minute(interval.start), time_to_minute(interval.end) + 1):
            free = minute < time_to_minute(interval.end) and minute not in removed
            if free and run_start is None:
                run_start = minute
            elif not free and run_start is not None:
                result.append(TimeInterval(minute_to_time(run_start), minute_to_time(minute)))
                run_start = None
    return sorted(result, key=sort_key)


def check_node(node) -> tuple:
    """Independently recompute ``(height, max_end)`` of a tree node and assert
    the cached values and the AVL balance."""

    if node is None:
        return 0, None
    left_height, left_max = check_node(node.left)
    right_height, right_max = check_node(node.right)

    assert abs(left_height - right_height) <= 1, f"unbalanced at {node.interval}"
    height = 1 + max(left_height, right_height)
    assert node.height == height, f"stale height at {node.interval}"

    expected_max = node.interval.end
    for child_max in (left_max, right_max):
        if child_max is not None:
            expected_max = later_of(expected_max, child_max)
    assert node.max_end == expected_max, f"stale max_end at {node.interval}"
    return height, expected_max


def check_tree(tree) -> None:
    check_node(tree._root)
    tree.validate()
