"""Arithmetic on half-open :class:`TimeInterval` values.

Intervals are ordered by start time only, so two distinct intervals sharing a
start compare as :attr:`Ordering.EQUAL`.  Overlap is strict: intervals that
merely touch (``a.end == b.start``) do not overlap.
"""

from __future__ import annotations

from datetime import time
from typing import Optional, Tuple

from timediff.models import Ordering, TimeInterval


Remainder = Tuple[TimeInterval, ...]


def compare(a: TimeInterval, b: TimeInterval) -> Ordering:
    if a.start < b.start:
        return Ordering.BEFORE
    if b.start < a.start:
        return Ordering.AFTER
    return Ordering.EQUAL


def later_of(t1: time, t2: time) -> time:
    return t1 if t1 > t2 else t2


def overlaps(a: Optional[TimeInterval], b: Optional[TimeInterval]) -> bool:
    if a is None or b is None:
        return False
    return a.start < b.end and a.end > b.start


def contains_within(outer: TimeInterval, inner: TimeInterval) -> bool:
    """Return True when ``inner`` lies inside ``outer`` (equal bounds count)."""

    return outer.start <= inner.start and inner.end <= outer.end


def subtract_interval(a: TimeInterval, b: TimeInterval) -> Remainder:
    """Return the pieces of ``a`` that are not covered by ``b``.

    The result holds zero, one or two disjoint, non-empty intervals in
    ascending order.  When ``a`` is fully covered the result is the empty
    tuple; when the two do not overlap, or ``b`` is empty, ``a`` is returned
    unchanged.

    Examples::

        (09:00-09:30) - (09:00-09:15) = (09:15-09:30)
        (09:00-10:00) - (08:30-10:15) = ()
        (09:00-09:30) - (10:00-11:00) = (09:00-09:30)
    """

    if b.is_empty or not overlaps(a, b):
        return (a,)

    if contains_within(a, b):
        pieces = (TimeInterval(a.start, b.start), TimeInterval(b.end, a.end))
        return tuple(piece for piece in pieces if not piece.is_empty)

    if contains_within(b, a):
        return ()

    # One-sided overlap
    if a.start < b.start:
        return (TimeInterval(a.start, b.start),)
    return (TimeInterval(b.end, a.end),)


__all__ = [
    "Remainder",
    "compare",
    "later_of",
    "overlaps",
    "contains_within",
    "subtract_interval",
]
