import itertools
import random

import pytest
from rich.console import Console

from timediff import subtract_interval_lists
from timediff.common.settings import clear_settings_cache
from timediff.services.subtraction import IntervalSubtractionService
from timediff.utils.interval_logger import IntervalLogger
from timediff.utils.interval_tree import IntervalTree

from tests.fixtures import (
    EXPECTED_RESIDUALS,
    OVERLAPPING_BASE,
    OVERLAPPING_SUBTRAHENDS,
    SUBTRACT_FROM,
    SUBTRACT_THESE,
    generate_workload,
)
from tests.utils import iv, multiset, reference_difference, sort_key


# MARK: Scenarios


def test_remove_leading_quarter():
    assert subtract_interval_lists([iv("09:00", "10:00")], [iv("09:00", "09:15")]) == [
        iv("09:15", "10:00")
    ]


def test_remove_covering_interval():
    assert subtract_interval_lists([iv("09:00", "10:00")], [iv("08:30", "10:15")]) == []


def test_remove_disjoint_interval():
    assert subtract_interval_lists([iv("09:00", "09:30")], [iv("10:00", "11:00")]) == [
        iv("09:00", "09:30")
    ]


def test_remove_overlaps_on_both_sides_of_untouched_interval():
    base = [iv("08:00", "08:30"), iv("07:00", "09:30"), iv("09:00", "09:30")]
    to_remove = [iv("09:00", "10:00")]

    residuals = sorted(subtract_interval_lists(base, to_remove), key=sort_key)
    assert residuals == [iv("07:00", "09:00"), iv("08:00", "08:30")]
    assert residuals == reference_difference(base, to_remove)


def test_reference_data_set(console: Console):
    residuals = subtract_interval_lists(SUBTRACT_FROM, SUBTRACT_THESE)

    console.print(IntervalLogger.interval_table(residuals, "Residual intervals"))
    assert residuals == EXPECTED_RESIDUALS
    assert [str(interval) for interval in residuals] == ["(07:00-07:15)", "(12:15-12:50)"]


# MARK: Edge cases


def test_empty_inputs():
    assert subtract_interval_lists([], []) == []
    assert subtract_interval_lists([], [iv("09:00", "10:00")]) == []


def test_nothing_to_remove_returns_base_in_start_order():
    base = [iv("11:00", "12:00"), iv("07:00", "08:00"), iv("09:00", "10:00")]
    assert subtract_interval_lists(base, []) == sorted(base, key=sort_key)


def test_duplicates_in_base_are_preserved():
    base = [iv("09:00", "10:00"), iv("09:00", "10:00")]
    residuals = subtract_interval_lists(base, [iv("09:30", "09:45")])
    assert multiset(residuals) == multiset(
        [iv("09:00", "09:30"), iv("09:00", "09:30"), iv("09:45", "10:00"), iv("09:45", "10:00")]
    )


def test_none_and_empty_subtrahends_are_skipped():
    report = IntervalSubtractionService.subtract_with_report(
        [iv("09:00", "10:00")],
        [iv("09:15", "09:30"), None, iv("09:40", "09:40"), iv("09:45", "10:30")],
    )
    assert report.residuals == [iv("09:00", "09:15"), iv("09:30", "09:45")]
    assert report.subtrahends_applied == 2
    assert report.subtrahends_skipped == 2
    assert report.conflicts_resolved == 2
    assert report.pieces_reinserted == 3
    assert report.tree_height == 2


def test_result_never_contains_none():
    residuals = subtract_interval_lists(
        [iv("09:00", "10:00"), None, iv("10:00", "11:00")],
        [iv("08:00", "12:00")],
    )
    assert residuals == []


@pytest.mark.parametrize("seed", range(4))
def test_disjoint_subtrahends_leave_base_unchanged(seed):
    base, _ = generate_workload(120, 0, seed=seed)
    # generated workloads live inside 06:00-20:00
    to_remove = [iv("00:00", "06:00"), iv("20:00", "23:00"), iv("05:00", "05:59")]
    assert multiset(subtract_interval_lists(base, to_remove)) == multiset(base)


# MARK: Order independence


def test_subtrahend_order_does_not_matter():
    expected = sorted(subtract_interval_lists(OVERLAPPING_BASE, OVERLAPPING_SUBTRAHENDS), key=sort_key)
    assert expected == reference_difference(OVERLAPPING_BASE, OVERLAPPING_SUBTRAHENDS)

    for permutation in itertools.permutations(OVERLAPPING_SUBTRAHENDS):
        residuals = subtract_interval_lists(OVERLAPPING_BASE, permutation)
        assert sorted(residuals, key=sort_key) == expected


@pytest.mark.parametrize("seed", range(3))
def test_random_subtrahend_order_does_not_matter(seed):
    base, to_remove = generate_workload(60, 25, seed=seed)
    expected = sorted(subtract_interval_lists(base, to_remove), key=sort_key)

    rng = random.Random(seed)
    for _ in range(5):
        shuffled = list(to_remove)
        rng.shuffle(shuffled)
        assert sorted(subtract_interval_lists(base, shuffled), key=sort_key) == expected


# MARK: Cross-check


@pytest.mark.parametrize("seed", range(8))
def test_matches_minute_grid_reference(seed):
    base, to_remove = generate_workload(80, 40, seed=seed)
    residuals = subtract_interval_lists(base, to_remove)

    assert [interval.start for interval in residuals] == sorted(
        interval.start for interval in residuals
    )
    assert all(not interval.is_empty for interval in residuals)
    assert sorted(residuals, key=sort_key) == reference_difference(base, to_remove)


# MARK: Settings


def test_validate_flag_checks_tree_after_every_step(monkeypatch):
    calls = []
    original_validate = IntervalTree.validate

    def spy(tree):
        calls.append(len(tree))
        original_validate(tree)

    monkeypatch.setattr(IntervalTree, "validate", spy)
    monkeypatch.setenv("TIMEDIFF_VALIDATE_TREE", "1")
    clear_settings_cache()

    subtract_interval_lists(SUBTRACT_FROM, SUBTRACT_THESE)
    assert len(calls) == len(SUBTRACT_THESE)


def test_validation_is_off_by_default(monkeypatch):
    calls = []
    monkeypatch.setattr(IntervalTree, "validate", lambda tree: calls.append(tree))

    subtract_interval_lists(SUBTRACT_FROM, SUBTRACT_THESE)
    assert calls == []


def test_debug_print_renders_tree_after_every_step(monkeypatch, capsys):
    monkeypatch.setenv("TIMEDIFF_DEBUG_PRINT", "yes")
    clear_settings_cache()

    subtract_interval_lists([iv("09:00", "10:00")], [iv("09:15", "09:30")])
    output = capsys.readouterr().out
    # titles may wrap, so look for single tokens
    assert "(09:15-09:30)" in output
    assert "(inorder)" in output
    assert "(preorder)" in output
