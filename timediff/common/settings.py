"""Environment-driven feature flag helpers for the subtraction service."""

from __future__ import annotations

import logging
import os
from functools import lru_cache

_TRUTHY = {"1", "true", "yes", "on"}

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "quiet": logging.CRITICAL,
}


@lru_cache(maxsize=None)
def debug_print_enabled() -> bool:
    """Return True when the tree should be rendered after every subtraction step."""

    return os.getenv("TIMEDIFF_DEBUG_PRINT", "0").lower() in _TRUTHY


@lru_cache(maxsize=None)
def validate_tree_enabled() -> bool:
    """Return True when tree invariants are checked after every subtraction step.

    Validation walks the whole tree, so it turns the linear-logarithmic
    algorithm into a quadratic one.  Enable it in CI or while debugging only.
    """

    return os.getenv("TIMEDIFF_VALIDATE_TREE", "0").lower() in _TRUTHY


@lru_cache(maxsize=None)
def get_log_verbosity() -> str:
    """Return the configured log verbosity for library and tool runs."""

    verbosity = os.getenv("TIMEDIFF_LOG_VERBOSITY", "info").lower()
    return verbosity if verbosity in _LOG_LEVELS else "info"


def get_log_level(verbosity: str | None = None) -> int:
    return _LOG_LEVELS.get((verbosity or get_log_verbosity()).lower(), logging.INFO)


def configure_logging(verbosity: str | None = None) -> None:
    """Configure the root logger for command line tools and the API server."""

    logging.basicConfig(
        level=get_log_level(verbosity),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def clear_settings_cache() -> None:
    """Forget cached values so tests can change the environment."""

    debug_print_enabled.cache_clear()
    validate_tree_enabled.cache_clear()
    get_log_verbosity.cache_clear()


__all__ = [
    "debug_print_enabled",
    "validate_tree_enabled",
    "get_log_verbosity",
    "get_log_level",
    "configure_logging",
    "clear_settings_cache",
]
