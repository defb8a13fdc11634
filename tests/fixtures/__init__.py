"""Helper fixtures with reference data and deterministic synthetic workloads."""

from timediff.utils.synthetic import generate_intervals, generate_workload

from .reference_data import (
    EXPECTED_RESIDUALS,
    OVERLAPPING_BASE,
    OVERLAPPING_SUBTRAHENDS,
    SUBTRACT_FROM,
    SUBTRACT_THESE,
)

__all__ = [
    "generate_intervals",
    "generate_workload",
    "EXPECTED_RESIDUALS",
    "OVERLAPPING_BASE",
    "OVERLAPPING_SUBTRAHENDS",
    "SUBTRACT_FROM",
    "SUBTRACT_THESE",
]
