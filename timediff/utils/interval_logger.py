from datetime import timedelta
from typing import Iterable, Optional

from rich import box, table

from timediff.common.console import get_console
from timediff.models import SubtractionReport, TimeInterval
from timediff.utils.interval_tree import IntervalTree
from timediff.utils.utils import style_duration, style_interval, style_time

DEPTH_COLORS = ["white", "cyan", "green", "yellow", "magenta", "blue"]


class IntervalLogger:

    @staticmethod
    def style_depth(depth: int) -> str:
        """Apply conditional styling to a node depth."""
        color = DEPTH_COLORS[depth % len(DEPTH_COLORS)]
        return f"[{color}]{depth}[/{color}]"

    @staticmethod
    def interval_table(
        intervals: Iterable[TimeInterval], title: Optional[str] = None
    ) -> table.Table:
        interval_table = table.Table(title=title, box=box.ROUNDED)
        interval_table.add_column("#", justify="right", style="dim")
        interval_table.add_column("Interval")
        interval_table.add_column("Duration", justify="right")

        total = timedelta(0)
        rows = 0
        for index, interval in enumerate(intervals, start=1):
            duration = interval.duration()
            total += duration
            rows += 1
            interval_table.add_row(
                str(index), style_interval(interval), style_duration(duration)
            )

        if rows == 0:
            interval_table.add_row("", "[dim]()[/dim]", "")
        else:
            interval_table.add_section()
            interval_table.add_row("", "[bold]Total[/bold]", style_duration(total))
        return interval_table

    @staticmethod
    def tree_table(
        tree: IntervalTree, order: str = "inorder", title: Optional[str] = None
    ) -> table.Table:
        # One row per node with the cached height and max end
        tree_table = table.Table(
            title=title or f"Interval tree ({order})", style="dim", box=box.SIMPLE
        )
        tree_table.add_column("Depth", justify="right")
        tree_table.add_column("Interval")
        tree_table.add_column("Height", justify="right")
        tree_table.add_column("Max end")

        views = list(tree.walk(order))
        if not views:
            tree_table.add_row("", "[dim]Tree is empty[/dim]", "", "")
            return tree_table

        for view in views:
            tree_table.add_row(
                IntervalLogger.style_depth(view.depth),
                "  " * view.depth + style_interval(view.interval),
                str(view.height),
                style_time(view.max_end),
            )
        return tree_table

    @staticmethod
    def report_table(report: SubtractionReport) -> table.Table:
        summary_table = table.Table(style="dim", box=box.SIMPLE)
        summary_table.add_column("Subtrahends")
        summary_table.add_column("Skipped")
        summary_table.add_column("Conflicts")
        summary_table.add_column("Pieces reinserted")
        summary_table.add_column("Residuals")
        summary_table.add_column("Tree height")
        summary_table.add_row(
            str(report.subtrahends_applied),
            str(report.subtrahends_skipped),
            str(report.conflicts_resolved),
            str(report.pieces_reinserted),
            str(len(report.residuals)),
            str(report.tree_height),
        )
        return summary_table

    @staticmethod
    def print_tree(tree: IntervalTree, title: Optional[str] = None) -> None:
        console = get_console()
        for order in ("inorder", "preorder"):
            order_title = f"{title} ({order})" if title else None
            console.print(IntervalLogger.tree_table(tree, order, order_title))

    @staticmethod
    def print(report: SubtractionReport) -> None:
        console = get_console()
        console.print(IntervalLogger.report_table(report))
        console.print(IntervalLogger.interval_table(report.residuals, "Residual intervals"))
