import pytest
from rich.console import Console

from timediff.common.console import get_console
from timediff.common.profiling import Profiler
from timediff.common.settings import clear_settings_cache

_ENV_VARS = (
    "TIMEDIFF_LOG_VERBOSITY",
    "TIMEDIFF_DEBUG_PRINT",
    "TIMEDIFF_VALIDATE_TREE",
    "TIMEDIFF_PROFILE",
    "TIMEDIFF_PROFILE_DIR",
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Run every test with the default settings and profiling disabled."""

    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    clear_settings_cache()
    Profiler.reset()
    yield
    clear_settings_cache()
    Profiler.reset()


@pytest.fixture
def console() -> Console:
    return get_console()
