import logging
from typing import Iterable, List, Optional, Sequence

from timediff.common.profiling import profile_function, profile_section
from timediff.common.settings import debug_print_enabled, validate_tree_enabled
from timediff.models import SubtractionReport, TimeInterval
from timediff.utils.interval_logger import IntervalLogger
from timediff.utils.interval_math import subtract_interval
from timediff.utils.interval_tree import IntervalTree

logger = logging.getLogger(__name__)


class IntervalSubtractionService:
    """Subtract one list of time intervals from another.

    The base intervals are loaded into an :class:`IntervalTree`.  Every interval
    to remove is then applied to the tree's current content: overlapping
    intervals are deleted and their residual pieces are inserted back, where a
    later subtrahend may split them again.  Applying the subtrahends one by one
    against the shrinking tree yields the difference against their union.
    """

    @staticmethod
    def subtract(
        base: Iterable[Optional[TimeInterval]],
        to_remove: Iterable[Optional[TimeInterval]],
    ) -> List[TimeInterval]:
        return IntervalSubtractionService.subtract_with_report(base, to_remove).residuals

    @staticmethod
    @profile_function()
    def subtract_with_report(
        base: Iterable[Optional[TimeInterval]],
        to_remove: Iterable[Optional[TimeInterval]],
    ) -> SubtractionReport:
        with profile_section("subtraction.build_tree"):
            tree = IntervalTree(base)
        logger.debug("Loaded %d base intervals (height %d)", len(tree), tree.height)

        report = SubtractionReport(residuals=[])
        for step, subtrahend in enumerate(to_remove, start=1):
            if subtrahend is None or subtrahend.is_empty:
                report.subtrahends_skipped += 1
                continue

            conflicts, pieces = IntervalSubtractionService._apply(tree, subtrahend)
            report.subtrahends_applied += 1
            report.conflicts_resolved += len(conflicts)
            report.pieces_reinserted += len(pieces)
            logger.debug(
                "Step %d: removed %s, %d conflicts, %d pieces reinserted",
                step,
                subtrahend,
                len(conflicts),
                len(pieces),
            )

            if validate_tree_enabled():
                tree.validate()
            if debug_print_enabled():
                IntervalLogger.print_tree(tree, title=f"After removing {subtrahend}")

        report.residuals = tree.collect_all()
        report.tree_height = tree.height
        logger.debug(
            "Subtraction finished: %d residual intervals", len(report.residuals)
        )
        return report

    @staticmethod
    def _apply(
        tree: IntervalTree, subtrahend: TimeInterval
    ) -> tuple[Sequence[TimeInterval], Sequence[TimeInterval]]:
        """Remove ``subtrahend`` from the tree, returning conflicts and pieces."""

        conflicts = tree.find_overlapping(subtrahend)

        pieces: List[TimeInterval] = []
        for conflict in conflicts:
            pieces.extend(subtract_interval(conflict, subtrahend))

        for conflict in conflicts:
            tree.delete(conflict)
        tree.insert_all(pieces)
        return conflicts, pieces


def subtract_interval_lists(
    base: Iterable[Optional[TimeInterval]],
    to_remove: Iterable[Optional[TimeInterval]],
) -> List[TimeInterval]:
    """Return the parts of ``base`` not covered by any interval in ``to_remove``.

    The result is sorted by start time and never contains ``None``; an empty
    list means everything was subtracted away.
    """

    return IntervalSubtractionService.subtract(base, to_remove)
