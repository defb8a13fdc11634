"""AVL-balanced interval tree for time-of-day intervals.

Intervals are stored in a binary-search tree ordered by start time and every
node caches the latest ``end`` found in its subtree (``max_end``) so overlap
queries can skip entire subtrees.  The subtraction service rebuilds the tree
once per call and then removes and reinserts intervals many times, so both
``insert`` and ``delete`` keep the tree height-balanced with the classic AVL
rotations.

Two details are easy to get wrong and are covered by the tests:

* ``insert`` chooses the rotation case from the position of the new key
  relative to the unbalanced child, while ``delete`` chooses it from the
  balance factor of the unbalanced child itself.
* A missing child never contributes to ``max_end``; there is no "minimal time"
  sentinel.

Nodes never leave the tree.  Queries return :class:`TimeInterval` values.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from typing import Iterable, Iterator, List, NamedTuple, Optional, Tuple

from timediff.models import Ordering, TimeInterval
from timediff.utils.interval_math import compare, later_of, overlaps


class TreeInvariantError(AssertionError):
    """Raised by :meth:`IntervalTree.validate` when the tree is corrupt."""


class NodeView(NamedTuple):
    """Read-only snapshot of a node used for diagnostics."""

    interval: TimeInterval
    height: int
    max_end: time
    depth: int


@dataclass(slots=True)
class _Node:
    interval: TimeInterval
    max_end: time
    height: int = 1
    left: Optional["_Node"] = None
    right: Optional["_Node"] = None

    def update(self) -> None:
        """Recompute ``height`` and the ``max_end`` cache after mutations."""

        candidate = self.interval.end
        if self.left is not None:
            candidate = later_of(candidate, self.left.max_end)
        if self.right is not None:
            candidate = later_of(candidate, self.right.max_end)
        self.max_end = candidate
        self.height = 1 + max(_height(self.left), _height(self.right))


def _height(node: Optional[_Node]) -> int:
    return node.height if node is not None else 0


def _balance_factor(node: Optional[_Node]) -> int:
    if node is None:
        return 0
    return _height(node.left) - _height(node.right)


class IntervalTree:
    """Augmented AVL tree keyed by interval start.

    Duplicate intervals are allowed.  Intervals with the same start are ranked
    equal and are inserted to the left, so their relative order only depends on
    insertion history.
    """

    __slots__ = ("_root", "_size")

    def __init__(self, intervals: Optional[Iterable[TimeInterval]] = None) -> None:
        self._root: Optional[_Node] = None
        self._size = 0
        if intervals is not None:
            self.insert_all(intervals)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def insert(self, interval: Optional[TimeInterval]) -> None:
        if interval is None:
            return
        self._root = self._insert(self._root, interval)
        self._size += 1

    def insert_all(self, intervals: Iterable[Optional[TimeInterval]]) -> None:
        for interval in intervals:
            self.insert(interval)

    def delete(self, interval: Optional[TimeInterval]) -> bool:
        """Remove one interval equal to ``interval``.

        Returns True when a node was removed.  Deleting ``None`` or a value
        that is not stored leaves the tree untouched.
        """

        if interval is None or self._root is None:
            return False
        self._root, removed = self._delete(self._root, interval)
        if removed:
            self._size -= 1
        return removed

    def find_overlapping(self, query: Optional[TimeInterval]) -> List[TimeInterval]:
        """Return every stored interval that overlaps ``query``."""

        found: List[TimeInterval] = []
        if query is None:
            return found
        self._collect_overlapping(self._root, query, found)
        return found

    def collect_all(self) -> List[TimeInterval]:
        """Return all stored intervals in ascending start order."""

        return list(self)

    @property
    def height(self) -> int:
        return _height(self._root)

    def walk(self, order: str = "inorder") -> Iterator[NodeView]:
        """Yield node snapshots in ``inorder`` or ``preorder`` sequence."""

        if order not in {"inorder", "preorder"}:
            raise ValueError(f"Unknown traversal order: {order}")
        yield from self._walk(self._root, 0, order == "preorder")

    def validate(self) -> None:
        """Check the ordering, AVL and ``max_end`` invariants of every node."""

        count = self._validate(self._root)[0]
        if count != self._size:
            raise TreeInvariantError(
                f"Tree holds {count} nodes but tracks a size of {self._size}"
            )

    def __iter__(self) -> Iterator[TimeInterval]:
        for view in self._walk(self._root, 0, False):
            yield view.interval

    def __len__(self) -> int:
        return self._size

    def __repr__(self) -> str:
        return f"IntervalTree(size={self._size}, height={self.height})"

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _insert(self, node: Optional[_Node], interval: TimeInterval) -> _Node:
        if node is None:
            return _Node(interval=interval, max_end=interval.end)
        if compare(interval, node.interval) is Ordering.AFTER:
            node.right = self._insert(node.right, interval)
        else:
            node.left = self._insert(node.left, interval)
        node.update()

        balance = _height(node.left) - _height(node.right)
        if balance > 1:
            # Left-right when the new key went into the left child's right side
            if compare(interval, node.left.interval) is Ordering.AFTER:
                node.left = self._rotate_left(node.left)
            return self._rotate_right(node)
        if balance < -1:
            # Right-left when the new key went into the right child's left side
            if compare(interval, node.right.interval) is not Ordering.AFTER:
                node.right = self._rotate_right(node.right)
            return self._rotate_left(node)
        return node

    def _delete(
        self, node: Optional[_Node], interval: TimeInterval
    ) -> Tuple[Optional[_Node], bool]:
        if node is None:
            return None, False

        if node.interval == interval:
            if node.left is None:
                return node.right, True
            if node.right is None:
                return node.left, True
            successor = self._min_node(node.right)
            node.interval = successor.interval
            node.right, _ = self._delete(node.right, successor.interval)
        else:
            order = compare(interval, node.interval)
            if order is Ordering.AFTER:
                node.right, removed = self._delete(node.right, interval)
            else:
                node.left, removed = self._delete(node.left, interval)
                # Rotations can move an equal-start interval to the right side
                if not removed and order is Ordering.EQUAL:
                    node.right, removed = self._delete(node.right, interval)
            if not removed:
                return node, False

        node.update()
        return self._rebalance_after_delete(node), True

    def _rebalance_after_delete(self, node: _Node) -> _Node:
        balance = _height(node.left) - _height(node.right)
        if balance > 1:
            if _balance_factor(node.left) < 0:
                node.left = self._rotate_left(node.left)
            return self._rotate_right(node)
        if balance < -1:
            if _balance_factor(node.right) > 0:
                node.right = self._rotate_right(node.right)
            return self._rotate_left(node)
        return node

    def _min_node(self, node: _Node) -> _Node:
        while node.left is not None:
            node = node.left
        return node

    def _rotate_left(self, node: _Node) -> _Node:
        assert node.right is not None
        new_root = node.right
        node.right = new_root.left
        new_root.left = node
        node.update()
        new_root.update()
        return new_root

    def _rotate_right(self, node: _Node) -> _Node:
        assert node.left is not None
        new_root = node.left
        node.left = new_root.right
        new_root.right = node
        node.update()
        new_root.update()
        return new_root

    def _collect_overlapping(
        self, node: Optional[_Node], query: TimeInterval, found: List[TimeInterval]
    ) -> None:
        if node is None:
            return
        if overlaps(node.interval, query):
            found.append(node.interval)
        # Nothing on the left can overlap unless it ends after the query starts.
        if node.left is not None and node.left.max_end > query.start:
            self._collect_overlapping(node.left, query, found)
        # Everything on the right starts at or after this node's start.
        if node.interval.start < query.end:
            self._collect_overlapping(node.right, query, found)

    def _walk(
        self, node: Optional[_Node], depth: int, preorder: bool
    ) -> Iterator[NodeView]:
        if node is None:
            return
        view = NodeView(node.interval, node.height, node.max_end, depth)
        if preorder:
            yield view
        yield from self._walk(node.left, depth + 1, preorder)
        if not preorder:
            yield view
        yield from self._walk(node.right, depth + 1, preorder)

    def _validate(
        self, node: Optional[_Node]
    ) -> Tuple[int, int, Optional[time], Optional[time], Optional[time]]:
        """Return ``(count, height, max_end, min_start, max_start)`` of a subtree."""

        if node is None:
            return 0, 0, None, None, None

        left_count, left_height, left_max, left_lo, left_hi = self._validate(node.left)
        right_count, right_height, right_max, right_lo, right_hi = self._validate(
            node.right
        )
        start = node.interval.start

        if left_hi is not None and left_hi > start:
            raise TreeInvariantError(f"Left subtree of {node.interval} starts later")
        if right_lo is not None and right_lo < start:
            raise TreeInvariantError(f"Right subtree of {node.interval} starts earlier")

        height = 1 + max(left_height, right_height)
        if node.height != height:
            raise TreeInvariantError(
                f"Node {node.interval} caches height {node.height}, expected {height}"
            )
        if abs(left_height - right_height) > 1:
            raise TreeInvariantError(
                f"Node {node.interval} is unbalanced ({left_height} vs {right_height})"
            )

        expected_max = node.interval.end
        for child_max in (left_max, right_max):
            if child_max is not None:
                expected_max = later_of(expected_max, child_max)
        if node.max_end != expected_max:
            raise TreeInvariantError(
                f"Node {node.interval} caches max_end {node.max_end}, "
                f"expected {expected_max}"
            )

        return (
            left_count + right_count + 1,
            height,
            expected_max,
            left_lo if left_lo is not None else start,
            right_hi if right_hi is not None else start,
        )


__all__ = ["IntervalTree", "NodeView", "TreeInvariantError"]
